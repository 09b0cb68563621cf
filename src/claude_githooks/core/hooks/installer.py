"""
Git hook script installer.

Writes generated hook scripts into ``<project>/.git/hooks/`` and undoes
that on removal. Pre-existing hooks that the framework did not create are
backed up before being overwritten and restored when the managed script
is removed:

    .git/hooks/commit-msg               <- managed script
    .git/hooks/commit-msg.bak.1706443200123   <- previous user hook

Ownership is decided by the presence of OWNERSHIP_MARKER in the file;
a file without it is never deleted.
"""

from __future__ import annotations

import shutil
import time
from pathlib import Path

from claude_githooks.core.hooks.logger import HookLogger, default_logger

OWNERSHIP_MARKER = "claude-githooks managed hook"
BACKUP_INFIX = ".bak."


class ScriptInstaller:
    """
    Install, back up and restore a single git hook file.

    Shared by every hook kind. All filesystem mutation is skipped (and
    logged) when ``dry_run`` is set.
    """

    def __init__(
        self,
        project_root: Path,
        git_hook_name: str,
        logger: HookLogger | None = None,
        dry_run: bool = False,
    ):
        self.project_root = Path(project_root)
        self.git_hook_name = git_hook_name
        self.logger = logger or default_logger()
        self.dry_run = dry_run

    @property
    def hooks_dir(self) -> Path:
        return self.project_root / ".git" / "hooks"

    @property
    def hook_path(self) -> Path:
        return self.hooks_dir / self.git_hook_name

    def is_owned(self) -> bool:
        """Whether the current hook file carries the ownership marker."""
        path = self.hook_path
        if not path.is_file():
            return False
        try:
            return OWNERSHIP_MARKER in path.read_text(encoding="utf-8", errors="replace")
        except OSError:
            return False

    def list_backups(self) -> list[Path]:
        """Backups for this git hook, oldest first."""
        if not self.hooks_dir.is_dir():
            return []
        prefix = f"{self.git_hook_name}{BACKUP_INFIX}"
        return sorted(
            (p for p in self.hooks_dir.iterdir() if p.name.startswith(prefix)),
            key=lambda p: p.name,
        )

    def backup_existing(self) -> Path | None:
        """
        Copy a pre-existing unmanaged hook aside.

        Symlinks, empty files and our own scripts are not backed up.

        Returns:
            Path of the backup, or None if nothing was copied
        """
        path = self.hook_path
        if path.is_symlink() or not path.is_file():
            return None
        if path.stat().st_size == 0 or self.is_owned():
            return None

        backup = path.with_name(f"{path.name}{BACKUP_INFIX}{int(time.time() * 1000)}")
        self.logger.info(f"Backing up existing hook to {backup}")
        shutil.copy2(path, backup)
        return backup

    def install(self, script: str) -> bool:
        """
        Write ``script`` as the git hook and mark it executable.

        Raises:
            OSError: If the hooks directory or file cannot be written
        """
        if self.dry_run:
            self.logger.info(f"[DRY RUN] Would install {self.git_hook_name} at {self.hook_path}")
            return True

        self.hooks_dir.mkdir(parents=True, exist_ok=True)
        self.backup_existing()

        path = self.hook_path
        if path.is_symlink():
            # Replace the link itself rather than writing through it
            path.unlink()

        path.write_text(script, encoding="utf-8")
        path.chmod(0o755)
        return True

    def uninstall(self) -> bool:
        """
        Delete the managed hook and restore the most recent backup.

        Returns:
            True if the hook was removed (or there was nothing to remove),
            False if the file exists but is not ours

        Raises:
            OSError: If the file cannot be read, deleted or restored
        """
        path = self.hook_path
        if not path.exists():
            self.logger.info(f"Hook {self.git_hook_name} doesn't exist, nothing to remove")
            return True

        content = path.read_text(encoding="utf-8", errors="replace")
        if OWNERSHIP_MARKER not in content:
            self.logger.warn(
                f"Hook {self.git_hook_name} exists but wasn't created by claude-githooks. "
                "Skipping removal."
            )
            return False

        if self.dry_run:
            self.logger.info(f"[DRY RUN] Would remove {path}")
            return True

        path.unlink()

        backups = self.list_backups()
        if backups:
            latest = backups[-1]
            self.logger.info(f"Restoring backup hook from {latest}")
            shutil.copy2(latest, path)
            path.chmod(0o755)

        return True

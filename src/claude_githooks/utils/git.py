"""
Git utilities for claude-githooks.

Hooks only ever inspect the repository; they never mutate it. All queries
go through the ``GitInspector`` protocol so tests can substitute a fake.
The shipped implementation shells out to ``git`` and degrades to empty
results when git is missing or the query fails.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class GitCommit(BaseModel):
    """A commit as seen by ``git log``."""

    hash: str = Field(description="Full commit hash")
    author: str = Field(default="", description="Author name")
    subject: str = Field(default="", description="First line of the message")


@runtime_checkable
class GitInspector(Protocol):
    """Read-only git queries used by hooks and middleware."""

    def current_branch(self) -> str | None: ...

    def staged_files(self) -> list[str]: ...

    def staged_diff(self) -> str: ...

    def diff(self, from_ref: str, to_ref: str) -> str: ...

    def changed_files(self, from_ref: str, to_ref: str) -> list[str]: ...

    def recent_commits(self, count: int = 5) -> list[GitCommit]: ...

    def remote_tracking_ref(self) -> str | None: ...


class SubprocessGitInspector:
    """GitInspector backed by the ``git`` executable."""

    def __init__(self, cwd: Path | None = None):
        self.cwd = Path(cwd) if cwd is not None else Path.cwd()

    def _run(self, *args: str) -> str:
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.cwd,
                capture_output=True,
                text=True,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            logger.debug("git %s failed: %s", " ".join(args), (e.stderr or "").strip())
            return ""
        except FileNotFoundError:
            # Git not installed
            logger.debug("git executable not found")
            return ""
        return result.stdout

    @staticmethod
    def _lines(output: str) -> list[str]:
        return [line for line in output.strip().split("\n") if line]

    def current_branch(self) -> str | None:
        return self._run("symbolic-ref", "--short", "HEAD").strip() or None

    def staged_files(self) -> list[str]:
        return self._lines(self._run("diff", "--cached", "--name-only"))

    def staged_diff(self) -> str:
        return self._run("diff", "--cached").strip()

    def diff(self, from_ref: str, to_ref: str) -> str:
        return self._run("diff", from_ref, to_ref).strip()

    def changed_files(self, from_ref: str, to_ref: str) -> list[str]:
        return self._lines(self._run("diff", "--name-only", from_ref, to_ref))

    def recent_commits(self, count: int = 5) -> list[GitCommit]:
        commits = []
        for line in self._lines(self._run("log", f"-{count}", "--format=%H|%an|%s")):
            parts = line.split("|", 2)
            if len(parts) == 3:
                commits.append(GitCommit(hash=parts[0], author=parts[1], subject=parts[2]))
        return commits

    def remote_tracking_ref(self) -> str | None:
        return (
            self._run("rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}").strip() or None
        )


def find_git_root(start: Path | None = None) -> Path | None:
    """
    Find the top-level directory of the enclosing git work tree.

    Asks git first and falls back to walking upward for a ``.git`` entry.

    Returns:
        Path to the repository root, or None outside a repository
    """
    start = (start or Path.cwd()).resolve()

    toplevel = SubprocessGitInspector(start)._run("rev-parse", "--show-toplevel").strip()
    if toplevel:
        return Path(toplevel)

    for candidate in (start, *start.parents):
        if (candidate / ".git").exists():
            return candidate
    return None

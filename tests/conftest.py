"""
Pytest configuration and shared fixtures.

Provides a temporary project with a ``.git/hooks`` directory, a recording
logger, and fake git and analysis collaborators so hooks never shell out
to git or reach the network.
"""

from pathlib import Path

import pytest

from claude_githooks.core.config.loader import clear_cache
from claude_githooks.core.hooks.base_hook import BaseHook
from claude_githooks.core.hooks.errors import ServiceError
from claude_githooks.core.hooks.models import HookResult
from claude_githooks.utils.git import GitCommit

# ==============================================================================
# Environment isolation
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep user config, API keys and cached settings out of every test."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    for var in ("CLAUDE_GITHOOKS_MODEL", "CLAUDE_GITHOOKS_MAX_TOKENS", "CLAUDE_GITHOOKS_TIMEOUT"):
        monkeypatch.delenv(var, raising=False)
    clear_cache()
    yield
    clear_cache()


# ==============================================================================
# Directory Fixtures
# ==============================================================================


@pytest.fixture
def project_dir(tmp_path):
    """
    Provide a temporary project directory.

    Creates:
    - .git/hooks/
    """
    project = tmp_path / "project"
    (project / ".git" / "hooks").mkdir(parents=True)
    return project


@pytest.fixture
def hooks_dir(project_dir):
    return project_dir / ".git" / "hooks"


# ==============================================================================
# Fakes
# ==============================================================================


class RecordingLogger:
    """HookLogger that keeps every message for assertions."""

    def __init__(self):
        self.records: list[tuple[str, str]] = []

    def _record(self, level: str, message: str) -> None:
        self.records.append((level, message))

    def debug(self, message: str) -> None:
        self._record("debug", message)

    def info(self, message: str) -> None:
        self._record("info", message)

    def warn(self, message: str) -> None:
        self._record("warn", message)

    def error(self, message: str) -> None:
        self._record("error", message)

    def success(self, message: str) -> None:
        self._record("success", message)

    def messages(self, level: str) -> list[str]:
        return [message for lvl, message in self.records if lvl == level]


class FakeGitInspector:
    """GitInspector with canned answers."""

    def __init__(
        self,
        *,
        branch: str | None = "main",
        staged: list[str] | None = None,
        staged_diff: str = "",
        diff: str = "",
        changed: list[str] | None = None,
        upstream: str | None = None,
    ):
        self.branch = branch
        self.staged = staged or []
        self._staged_diff = staged_diff
        self._diff = diff
        self.changed = changed or []
        self.upstream = upstream
        self.diff_calls: list[tuple[str, str]] = []

    def current_branch(self) -> str | None:
        return self.branch

    def staged_files(self) -> list[str]:
        return list(self.staged)

    def staged_diff(self) -> str:
        return self._staged_diff

    def diff(self, from_ref: str, to_ref: str) -> str:
        self.diff_calls.append((from_ref, to_ref))
        return self._diff

    def changed_files(self, from_ref: str, to_ref: str) -> list[str]:
        return list(self.changed)

    def recent_commits(self, count: int = 5) -> list[GitCommit]:
        return [GitCommit(hash="abc123", author="Dev", subject="feat: start")][:count]

    def remote_tracking_ref(self) -> str | None:
        return self.upstream


class FakeAnalysisService:
    """AnalysisService returning a fixed reply, or failing like an unreachable API."""

    def __init__(self, reply: str | None = None):
        self.reply = reply
        self.prompts: list[str] = []

    def analyze(self, prompt, *, model, max_tokens, temperature=None, cache_response=False):
        self.prompts.append(prompt)
        if self.reply is None:
            raise ServiceError("service unavailable")
        return self.reply


class SampleHook(BaseHook):
    """Minimal enhanced hook used across registry and pipeline tests."""

    name = "Sample Hook"
    description = "Does nothing useful"
    git_hook_name = "commit-msg"

    def __init__(self, *args, **kwargs):
        self.executed_with: list[list[str]] = []
        super().__init__(*args, **kwargs)

    def execute(self, args):
        self.executed_with.append(list(args))
        return HookResult.success("sample ran")


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture
def fake_git():
    return FakeGitInspector()


@pytest.fixture
def unavailable_service():
    return FakeAnalysisService(reply=None)


def write_file(path: Path, content: str, mode: int | None = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    if mode is not None:
        path.chmod(mode)
    return path

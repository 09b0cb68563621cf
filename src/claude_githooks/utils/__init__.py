"""Utility modules for claude-githooks."""

from .git import GitCommit, GitInspector, SubprocessGitInspector, find_git_root

__all__ = [
    "find_git_root",
    "GitCommit",
    "GitInspector",
    "SubprocessGitInspector",
]

"""
post-merge hook: summary of what a merge brought in.

Summarizes the changes between ORIG_HEAD and HEAD. The summary comes from
the analysis service when available, otherwise from file statistics.
Delivery follows ``notifyMethod``: terminal output or a file.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping
from typing import Any

from claude_githooks.core.hooks.base_hook import BaseHook
from claude_githooks.core.hooks.errors import ServiceError
from claude_githooks.core.hooks.models import HookResult
from claude_githooks.core.hooks.schema import POST_HOOK_SCHEMA

DEPENDENCY_FILES = (
    "pyproject.toml",
    "requirements.txt",
    "poetry.lock",
    "uv.lock",
    "package.json",
    "package-lock.json",
)


def summarize_files(files: list[str]) -> str:
    """Plain-text summary of changed files, grouped by top-level directory."""
    groups = Counter(path.split("/", 1)[0] if "/" in path else "." for path in files)
    lines = [f"{len(files)} file(s) changed by merge"]
    for directory, count in sorted(groups.items()):
        lines.append(f"  {directory}/: {count}" if directory != "." else f"  (root): {count}")

    dependencies = [path for path in files if path.rsplit("/", 1)[-1] in DEPENDENCY_FILES]
    if dependencies:
        lines.append("Dependency files changed: " + ", ".join(dependencies))
    return "\n".join(lines)


class PostMergeHook(BaseHook):
    name = "Merge Summary"
    description = "Summarizes changes brought in by a merge"
    git_hook_name = "post-merge"
    schema = POST_HOOK_SCHEMA

    def get_fallback_prompt(self, template_name: str, variables: Mapping[str, Any]) -> str:
        return (
            f"Summarize these merged changes in a {variables.get('format')} format for a developer. "
            "Mention dependency changes and potential breaking changes.\n\n"
            f"Files:\n{variables.get('files', '')}\n\n"
            f"Diff:\n{variables.get('diff', '')}"
        )

    def deliver(self, summary: str) -> None:
        method = self.config.get("notifyMethod", "terminal")
        output_file = self.config.get("outputFile")
        if method == "file" and output_file:
            path = self.project_root / output_file
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(summary + "\n", encoding="utf-8")
            self.logger.info(f"Merge summary written to {path}")
            return
        self.logger.info(summary)

    def execute(self, args: list[str]) -> HookResult:
        files = self.git.changed_files("ORIG_HEAD", "HEAD")
        if not files:
            return HookResult.skipped("No changes from merge")

        try:
            diff = self.git.diff("ORIG_HEAD", "HEAD")
            prompt = self.format_prompt(
                "merge_summary",
                {
                    "files": "\n".join(files),
                    "diff": diff[: int(self.config.get("maxDiffSize", 100000))],
                    "format": self.config.get("summaryFormat", "detailed"),
                },
            )
            summary = self.analyze(prompt).strip() or summarize_files(files)
        except ServiceError as e:
            self.logger.debug(f"Analysis unavailable ({e}), using file statistics")
            summary = summarize_files(files)

        self.deliver(summary)
        return HookResult.success("Merge summary generated", data={"summary": summary, "files": files})


HOOK_CLASS = PostMergeHook

"""
pre-commit hook: review of staged changes.

The staged diff is sent to the analysis service for review. There is no
meaningful local review, so when the service is unavailable the commit is
allowed through with a note.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from claude_githooks.core.hooks.base_hook import BaseHook
from claude_githooks.core.hooks.errors import ServiceError
from claude_githooks.core.hooks.models import HookIssue, HookResult, HookResultStatus
from claude_githooks.core.services.analysis import extract_json_result

MAX_DIFF_SIZE = 100000


class PreCommitHook(BaseHook):
    name = "Code Review"
    description = "Reviews staged changes before they are committed"
    git_hook_name = "pre-commit"

    def staged_changes(self) -> tuple[list[str], str]:
        repository = self.context.repository if self.context is not None else {}
        files = repository.get("staged_files")
        diff = repository.get("staged_diff")
        if files is None:
            files = self.git.staged_files()
        if diff is None:
            diff = self.git.staged_diff()
        return files, diff

    def get_fallback_prompt(self, template_name: str, variables: Mapping[str, Any]) -> str:
        return (
            "You are reviewing a git commit before it is made. Respond with JSON only: "
            '{"issues": [{"severity": "critical|high|medium|low", "description": str, '
            '"file": str, "line": str}]}.\n'
            f"Strictness: {variables.get('strictness')}.\n\n"
            f"Staged files:\n{variables.get('files', '')}\n\n"
            f"Diff:\n{variables.get('diff', '')}"
        )

    def execute(self, args: list[str]) -> HookResult:
        files, diff = self.staged_changes()
        if not files:
            return HookResult.skipped("No staged changes to review")

        prompt = self.format_prompt(
            "code_review",
            {
                "files": "\n".join(files),
                "diff": diff[:MAX_DIFF_SIZE],
                "strictness": self.strictness.value,
            },
        )

        try:
            response = self.analyze(prompt, cache_response=True)
        except ServiceError as e:
            self.logger.warn(f"Skipping code review: {e}")
            return HookResult.success("Code review skipped, analysis service unavailable")

        review = extract_json_result(response, default={"issues": []})
        issues = [
            HookIssue(
                severity=str(raw.get("severity", "medium")),
                description=str(raw.get("description", "")),
                file=str(raw.get("file", "")),
                line=str(raw.get("line", "")),
            )
            for raw in review.get("issues") or []
            if isinstance(raw, dict) and raw.get("description")
        ]

        if not issues:
            return HookResult.success(f"Reviewed {len(files)} staged file(s), no issues found")

        should_block = False
        for issue in issues:
            location = f" ({issue.file})" if issue.file else ""
            if self.handle_blocking(issue.severity, f"{issue.description}{location}"):
                should_block = True

        return HookResult(
            status=HookResultStatus.WARNING,
            message=f"Code review found {len(issues)} issue(s)",
            issues=issues,
            should_block=should_block,
        )


HOOK_CLASS = PreCommitHook

"""
commit-msg hook: commit message validation.

Asks the analysis service to review the message. When the service is
unavailable, falls back to local checks: conventional-commit format and
subject/body line lengths.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from claude_githooks.core.hooks.base_hook import BaseHook
from claude_githooks.core.hooks.errors import ServiceError
from claude_githooks.core.hooks.models import HookIssue, HookResult, HookResultStatus
from claude_githooks.core.hooks.schema import COMMIT_MSG_SCHEMA
from claude_githooks.core.services.analysis import extract_json_result

CONVENTIONAL_COMMIT = re.compile(
    r"^(feat|fix|docs|style|refactor|perf|test|build|ci|chore|revert)"
    r"(\([\w./-]+\))?!?: \S.*"
)

# Messages git generates itself are never validated
SKIP_PREFIXES = ("Merge ", "Revert \"", "fixup! ", "squash! ")


def read_commit_message(path: Path) -> str:
    """Commit message without git's comment lines."""
    lines = path.read_text(encoding="utf-8").splitlines()
    return "\n".join(line for line in lines if not line.startswith("#")).strip()


class CommitMsgHook(BaseHook):
    name = "Commit Message Validator"
    description = "Validates commit messages for format, clarity and length"
    git_hook_name = "commit-msg"
    schema = COMMIT_MSG_SCHEMA

    def check_locally(self, message: str) -> list[HookIssue]:
        issues: list[HookIssue] = []
        subject, _, body = message.partition("\n")
        limits = self.config.get("maxLength") or {}

        if self.config.get("conventionalCommits", True) and not CONVENTIONAL_COMMIT.match(subject):
            issues.append(
                HookIssue(
                    severity="medium",
                    description="Subject does not follow the conventional commits format "
                    "(type(scope): description)",
                )
            )

        subject_limit = limits.get("subject", 72)
        if len(subject) > subject_limit:
            issues.append(
                HookIssue(
                    severity="medium",
                    description=f"Subject is {len(subject)} characters (limit {subject_limit})",
                )
            )

        body_limit = limits.get("body", 100)
        for number, line in enumerate(body.splitlines(), start=2):
            if len(line) > body_limit:
                issues.append(
                    HookIssue(
                        severity="low",
                        description=f"Body line is {len(line)} characters (limit {body_limit})",
                        line=str(number),
                    )
                )

        return issues

    def check_with_service(self, message: str) -> list[HookIssue]:
        prompt = self.format_prompt(
            "commit_msg",
            {
                "message": message,
                "strictness": self.strictness.value,
                "conventional_commits": self.config.get("conventionalCommits", True),
            },
        )
        response = self.analyze(prompt, max_tokens=1000, cache_response=True)
        verdict = extract_json_result(response, default={"valid": True, "issues": []})

        issues = []
        for raw in verdict.get("issues") or []:
            if isinstance(raw, dict) and raw.get("description"):
                issues.append(
                    HookIssue(
                        severity=str(raw.get("severity", "medium")),
                        description=str(raw["description"]),
                    )
                )
            elif isinstance(raw, str):
                issues.append(HookIssue(description=raw))
        return issues

    def get_fallback_prompt(self, template_name: str, variables: Mapping[str, Any]) -> str:
        return (
            "Review this git commit message. Respond with JSON only: "
            '{"valid": bool, "issues": [{"severity": "low|medium|high", "description": str}]}.\n'
            f"Strictness: {variables.get('strictness')}. "
            f"Require conventional commits: {variables.get('conventional_commits')}.\n\n"
            f"Commit message:\n{variables.get('message', '')}"
        )

    def execute(self, args: list[str]) -> HookResult:
        if not args:
            return HookResult.failure("No commit message file provided")

        message = read_commit_message(self.project_root / args[0])
        if not message:
            return HookResult.skipped("Empty commit message")
        if message.startswith(SKIP_PREFIXES):
            return HookResult.skipped("Generated commit message, not validated")

        try:
            issues = self.check_with_service(message)
        except ServiceError as e:
            self.logger.debug(f"Analysis unavailable ({e}), using local checks")
            issues = self.check_locally(message)

        if not issues:
            return HookResult.success("Commit message looks good")

        should_block = False
        for issue in issues:
            if self.handle_blocking(issue.severity, issue.description):
                should_block = True

        return HookResult(
            status=HookResultStatus.WARNING,
            message=f"Commit message has {len(issues)} issue(s)",
            issues=issues,
            should_block=should_block,
        )


HOOK_CLASS = CommitMsgHook

"""
pre-push hook: security audit of outgoing changes.

Audits the diff between the upstream branch and HEAD for credentials,
sensitive data and risky dependency changes. Without the analysis service
the audit falls back to regex scanning of added lines.
"""

from __future__ import annotations

import fnmatch
import re
from collections.abc import Mapping
from typing import Any

from claude_githooks.core.hooks.base_hook import BaseHook
from claude_githooks.core.hooks.errors import ServiceError
from claude_githooks.core.hooks.models import HookIssue, HookResult, HookResultStatus
from claude_githooks.core.hooks.schema import PRE_PUSH_SCHEMA
from claude_githooks.core.services.analysis import extract_json_result

CREDENTIAL_PATTERNS: list[tuple[str, str, re.Pattern[str]]] = [
    ("critical", "AWS access key", re.compile(r"AKIA[0-9A-Z]{16}")),
    ("critical", "Private key", re.compile(r"-----BEGIN (?:RSA |EC |OPENSSH |DSA )?PRIVATE KEY-----")),
    ("high", "GitHub token", re.compile(r"gh[pousr]_[A-Za-z0-9]{36,}")),
    (
        "high",
        "Hardcoded secret",
        re.compile(r"(?i)(api[_-]?key|secret|password|passwd|token)\s*[:=]\s*['\"][^'\"]{8,}['\"]"),
    ),
]


def is_excluded(path: str, patterns: list[str]) -> bool:
    return any(fnmatch.fnmatch(path, p) or fnmatch.fnmatch(f"/{path}", p) for p in patterns)


def added_lines(diff: str) -> list[tuple[str, int, str]]:
    """(file, line number, text) for every line added in a unified diff."""
    added: list[tuple[str, int, str]] = []
    current_file = ""
    line_number = 0
    hunk = re.compile(r"^@@ -\d+(?:,\d+)? \+(\d+)")

    for line in diff.splitlines():
        if line.startswith("+++ "):
            target = line[4:]
            current_file = target[2:] if target.startswith("b/") else target
        elif match := hunk.match(line):
            line_number = int(match.group(1))
        elif line.startswith("+"):
            added.append((current_file, line_number, line[1:]))
            line_number += 1
        elif not line.startswith("-"):
            line_number += 1
    return added


class PrePushHook(BaseHook):
    name = "Security Audit"
    description = "Audits outgoing commits for credentials and sensitive data"
    git_hook_name = "pre-push"
    schema = PRE_PUSH_SCHEMA

    def outgoing_range(self) -> tuple[str, str]:
        upstream = self.git.remote_tracking_ref()
        if upstream:
            return upstream, "HEAD"
        max_commits = int(self.config.get("maxCommits", 10))
        return f"HEAD~{max_commits}", "HEAD"

    def scan_locally(self, diff: str) -> list[HookIssue]:
        excluded = list(self.config.get("excludePatterns") or [])
        issues = []
        for path, line_number, text in added_lines(diff):
            if is_excluded(path, excluded):
                continue
            for severity, label, pattern in CREDENTIAL_PATTERNS:
                if pattern.search(text):
                    issues.append(
                        HookIssue(
                            severity=severity,
                            description=f"{label} detected",
                            file=path,
                            line=str(line_number),
                        )
                    )
                    break
        return issues

    def audit_with_service(self, diff: str) -> list[HookIssue]:
        prompt = self.format_prompt(
            "security_audit",
            {
                "diff": diff[: int(self.config.get("maxDiffSize", 100000))],
                "audit_types": ", ".join(self.config.get("auditTypes") or []),
                "strictness": self.strictness.value,
            },
        )
        response = self.analyze(prompt, max_tokens=2000)
        audit = extract_json_result(response, default={"issues": []})
        return [
            HookIssue(
                severity=str(raw.get("severity", "medium")),
                description=str(raw.get("description", "")),
                file=str(raw.get("file", "")),
                line=str(raw.get("line", "")),
            )
            for raw in audit.get("issues") or []
            if isinstance(raw, dict) and raw.get("description")
        ]

    def get_fallback_prompt(self, template_name: str, variables: Mapping[str, Any]) -> str:
        return (
            "Audit this diff of commits about to be pushed. Look for: "
            f"{variables.get('audit_types')}. Respond with JSON only: "
            '{"issues": [{"severity": "critical|high|medium|low", "description": str, '
            '"file": str, "line": str}]}.\n\n'
            f"Diff:\n{variables.get('diff', '')}"
        )

    def execute(self, args: list[str]) -> HookResult:
        from_ref, to_ref = self.outgoing_range()
        diff = self.git.diff(from_ref, to_ref)
        if not diff:
            return HookResult.skipped("No outgoing changes to audit")

        try:
            issues = self.audit_with_service(diff)
        except ServiceError as e:
            self.logger.debug(f"Analysis unavailable ({e}), scanning locally")
            issues = self.scan_locally(diff)

        if not issues:
            return HookResult.success("Security audit passed")

        should_block = False
        for issue in issues:
            location = f" in {issue.file}:{issue.line}" if issue.file else ""
            if self.handle_blocking(issue.severity, f"{issue.description}{location}"):
                should_block = True

        return HookResult(
            status=HookResultStatus.WARNING,
            message=f"Security audit found {len(issues)} issue(s)",
            issues=issues,
            should_block=should_block,
        )


HOOK_CLASS = PrePushHook

"""
External analysis service.

Hooks delegate their analysis (message review, security audit, merge
summary) to a language model through the ``AnalysisService`` capability:

    service = create_analysis_service(project_root)
    text = service.analyze(prompt, model="...", max_tokens=1000)
    result = extract_json_result(text, default={"valid": True, "issues": []})

Responses are treated as opaque text expected to contain a JSON object.
``extract_json_result`` never raises; an unparseable response degrades to
the caller's default. Transport failures raise ServiceError, which every
hook catches and answers with its local fallback. Retries are a caller
concern and are not attempted here.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import httpx

from claude_githooks.core.config.env import read_env_file
from claude_githooks.core.config.loader import load_settings
from claude_githooks.core.config.models import FrameworkSettings
from claude_githooks.core.hooks.errors import ServiceError
from claude_githooks.core.services.cache import ResponseCache

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"
API_KEY_ENV_VAR = "ANTHROPIC_API_KEY"


@runtime_checkable
class AnalysisService(Protocol):
    """Send a prompt, get text back."""

    def analyze(
        self,
        prompt: str,
        *,
        model: str,
        max_tokens: int,
        temperature: float | None = None,
        cache_response: bool = False,
    ) -> str: ...


class AnthropicAnalysisService:
    """
    AnalysisService backed by the Anthropic Messages API.

    Example:
        >>> service = AnthropicAnalysisService(api_key="sk-...")
        >>> service.analyze("Review this diff", model="claude-3-5-sonnet-20241022", max_tokens=500)
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://api.anthropic.com",
        timeout: float = 60.0,
        cache: ResponseCache | None = None,
        client: httpx.Client | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache = cache
        self._client = client

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.api_key or "",
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }

    def _post(self, payload: dict[str, Any]) -> httpx.Response:
        url = f"{self.base_url}/v1/messages"
        if self._client is not None:
            return self._client.post(url, headers=self._headers(), json=payload, timeout=self.timeout)
        with httpx.Client(timeout=self.timeout) as client:
            return client.post(url, headers=self._headers(), json=payload)

    def analyze(
        self,
        prompt: str,
        *,
        model: str,
        max_tokens: int,
        temperature: float | None = None,
        cache_response: bool = False,
    ) -> str:
        """
        Send ``prompt`` and return the concatenated text of the reply.

        Raises:
            ServiceError: If no API key is configured, the request fails,
                or the response is not a Messages API reply
        """
        if not self.api_key:
            raise ServiceError(f"{API_KEY_ENV_VAR} is not set")

        cache_key = None
        if cache_response and self.cache is not None:
            cache_key = ResponseCache.make_key(model, temperature, prompt)
            if (cached := self.cache.get(cache_key)) is not None:
                logger.debug("Using cached analysis response")
                return cached

        payload: dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if temperature is not None:
            payload["temperature"] = temperature

        try:
            response = self._post(payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise ServiceError(
                f"Analysis request failed with status {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise ServiceError(f"Analysis request failed: {e}") from e
        except ValueError as e:
            raise ServiceError(f"Analysis response was not JSON: {e}") from e

        blocks = data.get("content") if isinstance(data, dict) else None
        if not isinstance(blocks, list):
            raise ServiceError("Analysis response has no content")

        text = "".join(
            block.get("text", "")
            for block in blocks
            if isinstance(block, dict) and block.get("type") == "text"
        )

        if cache_key is not None and self.cache is not None:
            self.cache.set(cache_key, text)
        return text


def create_analysis_service(
    project_root: Path,
    settings: FrameworkSettings | None = None,
    env: Mapping[str, str] | None = None,
) -> AnthropicAnalysisService:
    """
    Build the default service for a project.

    The API key comes from the process environment, falling back to the
    project's ``.env`` file.
    """
    settings = settings or load_settings(project_root)
    if env is None:
        env = read_env_file(Path(project_root) / ".env")
    api_key = os.environ.get(API_KEY_ENV_VAR) or env.get(API_KEY_ENV_VAR)

    cache = (
        ResponseCache.for_project(project_root, settings.cache_ttl_seconds)
        if settings.cache_enabled
        else None
    )
    return AnthropicAnalysisService(
        api_key,
        base_url=settings.api_base_url,
        timeout=settings.timeout_seconds,
        cache=cache,
    )


_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)


def extract_json_result(text: str | None, default: dict[str, Any]) -> dict[str, Any]:
    """
    Pull the first JSON object out of a model response.

    Tries a fenced ```json block first, then the outermost braces. Any
    failure returns a copy of ``default``.
    """
    if not text:
        return copy.deepcopy(default)

    candidates = [m.group(1) for m in _FENCED_JSON.finditer(text)]
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start : end + 1])

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    logger.debug("No JSON object found in analysis response")
    return copy.deepcopy(default)

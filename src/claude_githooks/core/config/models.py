"""
Framework settings for claude-githooks.

These models define the structure of ``.claude/githooks.json`` and
``~/.config/claude-githooks/config.json``, with validation via Pydantic.
Per-hook options live separately in ``.claude/hooks.json``.
"""

from pydantic import BaseModel, ConfigDict, Field


class FrameworkSettings(BaseModel):
    """
    Settings shared by every hook.

    Controls how the analysis service is called and whether its
    responses are cached on disk.
    """

    model_config = ConfigDict(extra="ignore")

    model: str = Field(
        default="claude-3-5-sonnet-20241022",
        description="Model identifier passed to the analysis service",
    )
    max_tokens: int = Field(
        default=2000,
        ge=1,
        description="Maximum tokens to generate per analysis request",
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Sampling temperature for analysis requests",
    )
    api_base_url: str = Field(
        default="https://api.anthropic.com",
        description="Base URL of the Anthropic API",
    )
    timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="HTTP timeout for a single analysis request",
    )
    cache_enabled: bool = Field(
        default=True,
        description="Cache analysis responses under .claude/cache/",
    )
    cache_ttl_seconds: int = Field(
        default=24 * 60 * 60,
        ge=0,
        description="How long a cached response stays valid",
    )

"""Collaborator services used by hooks: external analysis and response caching."""

from .analysis import (
    AnalysisService,
    AnthropicAnalysisService,
    create_analysis_service,
    extract_json_result,
)
from .cache import ResponseCache

__all__ = [
    "AnalysisService",
    "AnthropicAnalysisService",
    "ResponseCache",
    "create_analysis_service",
    "extract_json_result",
]

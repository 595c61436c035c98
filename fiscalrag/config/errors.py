"""
Error Taxonomy - Consistent error codes across the application.

Usage:
    from fiscalrag.config.errors import ErrorCode, FiscalRAGError

    raise FiscalRAGError(ErrorCode.CONFIG_INVALID_RULESET, "Unknown article type")
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for machine-readable error responses."""

    # Configuration errors (raised at load time only)
    CONFIG_INVALID_RULESET = "CONFIG_INVALID_RULESET"
    CONFIG_MISSING_TABLE = "CONFIG_MISSING_TABLE"

    # Search errors
    SEARCH_INVALID_QUERY = "SEARCH_INVALID_QUERY"
    SEARCH_UNKNOWN_VERSION = "SEARCH_UNKNOWN_VERSION"

    # Provider errors (embedding, vector store, cache, completion)
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
    PROVIDER_INVALID_RESPONSE = "PROVIDER_INVALID_RESPONSE"

    # Comparison path
    COMPARISON_PARTIAL_FAILURE = "COMPARISON_PARTIAL_FAILURE"

    # LLM/Model errors
    LLM_UNAVAILABLE = "LLM_UNAVAILABLE"
    LLM_RATE_LIMITED = "LLM_RATE_LIMITED"
    LLM_INVALID_RESPONSE = "LLM_INVALID_RESPONSE"

    # Security errors
    SECURITY_RATE_LIMITED = "SECURITY_RATE_LIMITED"

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"


class FiscalRAGError(Exception):
    """Base exception with error code support."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-friendly dictionary."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(FiscalRAGError):
    """Malformed rule, keyword or metadata table."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.CONFIG_INVALID_RULESET, message, details)


class SearchError(FiscalRAGError):
    """Search domain errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.SEARCH_INVALID_QUERY, message, details)


class ProviderUnavailableError(FiscalRAGError):
    """An external provider (embedding, vector store, cache, completion) is down."""

    def __init__(
        self,
        provider: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.provider = provider
        super().__init__(
            ErrorCode.PROVIDER_UNAVAILABLE,
            message,
            {"provider": provider, **(details or {})},
        )


class ComparisonPartialFailure(FiscalRAGError):
    """One branch of a cross-version comparison failed."""

    def __init__(
        self,
        failed_versions: list[str],
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.failed_versions = failed_versions
        super().__init__(
            ErrorCode.COMPARISON_PARTIAL_FAILURE,
            message,
            {"failed_versions": failed_versions, **(details or {})},
        )


class LLMError(FiscalRAGError):
    """LLM/model errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.LLM_UNAVAILABLE, message, details)

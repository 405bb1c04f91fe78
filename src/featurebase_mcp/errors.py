"""
Exception hierarchy for featurebase-mcp.

All exceptions inherit from FeaturebaseError, allowing callers to catch
every server-specific failure with a single except clause.

Exception Categories:
    - ConfigurationMissingError: A credential or origin was never supplied
    - TransportError: The Featurebase API answered with a non-2xx status
    - InvalidResponseBodyError: A 2xx response body is not valid JSON
    - MalformedProjectionError: A ``select`` expression cannot be parsed
    - UnknownOperationError / MissingArgumentsError: Bad tool invocation

The MCP boundary flattens all of these into a single outward error code,
so the taxonomy here exists for logging and for programmatic callers of
the dispatcher.
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Configuration errors: 1xxx
ERROR_CONFIG_MISSING = 1001

# Transport errors: 2xxx
ERROR_TRANSPORT_FAILED = 2001
ERROR_INVALID_RESPONSE_BODY = 2002

# Projection errors: 3xxx
ERROR_MALFORMED_PROJECTION = 3001

# Dispatch errors: 4xxx
ERROR_UNKNOWN_OPERATION = 4001
ERROR_MISSING_ARGUMENTS = 4002


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class FeaturebaseError(Exception):
    """
    Base exception for all featurebase-mcp errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        """Format error for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Configuration Errors
# =============================================================================


@dataclass
class ConfigurationMissingError(FeaturebaseError):
    """
    Raised when a required setting was never supplied.

    Always raised before any network call is attempted.

    Attributes:
        setting: Name of the missing setting (e.g., "api_key", "org_url")
        flag: Command-line flag that provides it
        env_var: Environment variable that provides it
    """

    setting: str = ""
    flag: str = ""
    env_var: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Missing required setting: {self.setting}"
        if self.code == 0:
            self.code = ERROR_CONFIG_MISSING
        if not self.suggestion and (self.flag or self.env_var):
            sources = " or ".join(s for s in (self.flag, self.env_var) if s)
            self.suggestion = f"Provide it via {sources}"
        self.context.update({
            "setting": self.setting,
            "flag": self.flag,
            "env_var": self.env_var,
        })


# =============================================================================
# Transport Errors
# =============================================================================


@dataclass
class TransportError(FeaturebaseError):
    """
    Raised when an outbound request does not succeed.

    Attributes:
        status_code: HTTP status of the response (0 for network failures)
        detail: Best-effort message extracted from the response body
        url: The request URL (never includes credentials)
    """

    status_code: int = 0
    detail: str = ""
    url: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"HTTP {self.status_code}: {self.detail}"
        if self.code == 0:
            self.code = ERROR_TRANSPORT_FAILED
        self.context.update({
            "status_code": self.status_code,
            "detail": self.detail,
            "url": self.url,
        })


@dataclass
class InvalidResponseBodyError(FeaturebaseError):
    """Raised when a successful response cannot be decoded as JSON."""

    status_code: int = 0
    url: str = ""
    body_excerpt: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Response from {self.url or 'server'} is not valid JSON (HTTP {self.status_code})"
        if self.code == 0:
            self.code = ERROR_INVALID_RESPONSE_BODY
        self.context.update({
            "status_code": self.status_code,
            "url": self.url,
            "body_excerpt": self.body_excerpt,
        })


# =============================================================================
# Projection Errors
# =============================================================================


@dataclass
class MalformedProjectionError(FeaturebaseError):
    """
    Raised when a projection expression cannot be parsed.

    Attributes:
        expression: The full expression that failed to parse
        position: Character offset where parsing stopped
        reason: What the parser expected at that position
    """

    expression: str = ""
    position: int = 0
    reason: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Malformed select expression {self.expression!r} at position {self.position}: {self.reason}"
        if self.code == 0:
            self.code = ERROR_MALFORMED_PROJECTION
        if not self.suggestion:
            self.suggestion = 'Use comma-separated fields with optional nesting, e.g. "id,title,author(name)"'
        self.context.update({
            "expression": self.expression,
            "position": self.position,
            "reason": self.reason,
        })


# =============================================================================
# Dispatch Errors
# =============================================================================


@dataclass
class OperationError(FeaturebaseError):
    """
    Base class for errors raised while dispatching a tool call.

    Attributes:
        operation: Name of the requested operation
    """

    operation: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        self.context["operation"] = self.operation


@dataclass
class UnknownOperationError(OperationError):
    """Raised when a tool name is not in the catalogue."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Unknown tool: {self.operation}"
        if self.code == 0:
            self.code = ERROR_UNKNOWN_OPERATION
        if not self.suggestion:
            self.suggestion = "Run 'featurebase-mcp tools' to list available tools"
        super().__post_init__()


@dataclass
class MissingArgumentsError(OperationError):
    """Raised when required tool inputs are absent."""

    missing: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Missing required arguments for {self.operation}: {', '.join(self.missing)}"
        if self.code == 0:
            self.code = ERROR_MISSING_ARGUMENTS
        super().__post_init__()
        self.context["missing"] = list(self.missing)

"""
Exception hierarchy for fileagent.

All fileagent exceptions inherit from FileAgentError, allowing callers to
catch every fileagent-specific exception with a single except clause.

Exception Categories:
    - ToolError: registry lookups and registration problems
    - GatewayError: transport or protocol failure talking to the model
    - ConfigError: invalid settings detected at startup

Tool failures that happen while a tool runs are NOT raised. They are
returned as failed ToolOutputs and sent back to the model as ToolResults.
Only the registry raises ToolError subclasses, and the agent loop converts
ToolNotFoundError into a ToolResult as well.

Design Principles:
    - All errors have error codes for programmatic handling
    - All errors include context (tool, model, url where applicable)
    - All errors provide actionable suggestions where possible
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Tool errors: 2xxx
ERROR_TOOL_NOT_FOUND = 2001
ERROR_TOOL_DUPLICATE = 2010
ERROR_REGISTRY_FROZEN = 2011

# Gateway errors: 6xxx
ERROR_GATEWAY_CONNECTION = 6001
ERROR_GATEWAY_TIMEOUT = 6002
ERROR_GATEWAY_RESPONSE = 6003
ERROR_GATEWAY_MODEL_NOT_FOUND = 6004
ERROR_GATEWAY_AUTH = 6005

# Config errors: 7xxx
ERROR_CONFIG_INVALID = 7001


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class FileAgentError(Exception):
    """
    Base exception for all fileagent errors.

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
# Tool Errors
# =============================================================================


@dataclass
class ToolError(FileAgentError):
    """
    Base class for tool registry errors.

    Attributes:
        tool: Name of the tool involved
    """

    tool: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        self.context["tool"] = self.tool


@dataclass
class ToolNotFoundError(ToolError):
    """Raised when a tool is not registered."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Tool not found: {self.tool}"
        if self.code == 0:
            self.code = ERROR_TOOL_NOT_FOUND
        if not self.suggestion:
            self.suggestion = "Check tool name spelling or register the tool"
        super().__post_init__()


@dataclass
class DuplicateToolError(ToolError):
    """Raised when two tools are registered under the same name."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Tool already registered: {self.tool}"
        if self.code == 0:
            self.code = ERROR_TOOL_DUPLICATE
        super().__post_init__()


@dataclass
class RegistryFrozenError(ToolError):
    """Raised when registering into a registry after startup."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Registry is frozen, cannot register {self.tool}"
        if self.code == 0:
            self.code = ERROR_REGISTRY_FROZEN
        super().__post_init__()


# =============================================================================
# Gateway Errors
# =============================================================================


@dataclass
class GatewayError(FileAgentError):
    """
    Base class for model gateway errors.

    A GatewayError aborts the current turn. It is never retried
    automatically, so side-effecting tool calls are not replayed.

    Attributes:
        gateway: Name of the gateway backend (e.g. "gemini", "ollama")
        model: Model identifier in use
    """

    gateway: str = ""
    model: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        self.context.update({
            "gateway": self.gateway,
            "model": self.model,
        })


@dataclass
class GatewayConnectionError(GatewayError):
    """Raised when the model endpoint cannot be reached."""

    url: str = ""
    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Cannot connect to {self.gateway} at {self.url}"
            if self.underlying_error:
                self.message += f": {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_GATEWAY_CONNECTION
        if not self.suggestion:
            self.suggestion = "Check network access and the gateway base_url"
        super().__post_init__()
        self.context.update({
            "url": self.url,
            "underlying_error": self.underlying_error,
        })


@dataclass
class GatewayTimeoutError(GatewayError):
    """Raised when the model endpoint does not answer in time."""

    timeout_seconds: float = 0.0

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"{self.gateway} timed out after {self.timeout_seconds}s"
        if self.code == 0:
            self.code = ERROR_GATEWAY_TIMEOUT
        if not self.suggestion:
            self.suggestion = "Increase timeout_seconds in the gateway settings"
        super().__post_init__()
        self.context["timeout_seconds"] = self.timeout_seconds


@dataclass
class GatewayResponseError(GatewayError):
    """Raised when the endpoint answers with an error or an unusable body."""

    status_code: int | None = None
    raw_response: str = ""
    reason: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid response from {self.gateway}: {self.reason}"
        if self.code == 0:
            self.code = ERROR_GATEWAY_RESPONSE
        super().__post_init__()
        self.context.update({
            "status_code": self.status_code,
            "raw_response": self.raw_response,
            "reason": self.reason,
        })


@dataclass
class GatewayModelNotFoundError(GatewayError):
    """Raised when the configured model does not exist on the endpoint."""

    available_models: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Model not found on {self.gateway}: {self.model}"
        if self.code == 0:
            self.code = ERROR_GATEWAY_MODEL_NOT_FOUND
        if not self.suggestion:
            if self.available_models:
                self.suggestion = f"Available models: {', '.join(self.available_models[:5])}"
            else:
                self.suggestion = "Check the model name with --model"
        super().__post_init__()
        self.context["available_models"] = self.available_models


@dataclass
class GatewayAuthError(GatewayError):
    """Raised when the API key is missing or rejected."""

    api_key_env: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Authentication failed for {self.gateway}"
        if self.code == 0:
            self.code = ERROR_GATEWAY_AUTH
        if not self.suggestion and self.api_key_env:
            self.suggestion = f"Set {self.api_key_env} in the environment or in .env"
        super().__post_init__()
        self.context["api_key_env"] = self.api_key_env


# =============================================================================
# Config Errors
# =============================================================================


@dataclass
class ConfigError(FileAgentError):
    """Raised when settings cannot be loaded or are inconsistent."""

    path: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid configuration: {self.path}"
        if self.code == 0:
            self.code = ERROR_CONFIG_INVALID
        self.context["path"] = self.path

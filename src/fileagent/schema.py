"""
Schema definitions for fileagent.

This module defines the Pydantic models used throughout fileagent:
- FieldSpec/ToolSpec: What a tool accepts, advertised to the model
- ToolCallRequest: A tool invocation requested by the model
- TextPart/ToolCallPart/ModelResponse: One model turn, as a tagged union
- ToolResult: The outcome of one tool call, fed back to the model
- AgentSettings: Gateway and loop settings loaded from YAML

Design Decisions:
    - Response parts are a discriminated union on `kind`, so callers
      never inspect part types at runtime
    - Tool specs are written by hand per tool, no schema reflection
    - Models are immutable where possible (frozen=True)
"""

import json
import uuid
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from fileagent.errors import ConfigError


# =============================================================================
# Enums
# =============================================================================


class FieldType(str, Enum):
    """JSON types a tool argument may take."""

    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


class ToolResultStatus(str, Enum):
    """Status of a tool call execution."""

    SUCCESS = "success"
    ERROR = "error"


class ToolErrorKind(str, Enum):
    """Failure categories reported back to the model."""

    TOOL_NOT_FOUND = "ToolNotFound"
    INVALID_ARGS = "InvalidArgs"
    NOT_FOUND = "NotFound"
    IS_A_DIRECTORY = "IsADirectory"
    NO_MATCH = "NoMatch"
    IO_ERROR = "IOError"


class GatewayBackend(str, Enum):
    """Supported model gateway backends."""

    GEMINI = "gemini"
    OLLAMA = "ollama"


# =============================================================================
# Tool Specs
# =============================================================================


class FieldSpec(BaseModel):
    """
    Description of one named tool argument.

    Attributes:
        type: JSON type of the value
        required: Whether the model must supply the field
        description: Text shown to the model
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: FieldType = Field(default=FieldType.STRING, description="JSON type of the value")
    required: bool = Field(default=False, description="Whether the field is required")
    description: str = Field(default="", description="Text shown to the model")

    def accepts(self, value: Any) -> bool:
        """Check whether a decoded JSON value matches this field's type."""
        # bool is a subclass of int, keep it out of the numeric types
        if self.type == FieldType.STRING:
            return isinstance(value, str)
        if self.type == FieldType.INTEGER:
            return isinstance(value, int) and not isinstance(value, bool)
        if self.type == FieldType.NUMBER:
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        if self.type == FieldType.BOOLEAN:
            return isinstance(value, bool)
        if self.type == FieldType.ARRAY:
            return isinstance(value, list)
        return isinstance(value, dict)


class ToolSpec(BaseModel):
    """
    Capability advertisement for one tool.

    Attributes:
        name: Unique tool name within a registry
        description: Text shown to the model
        args: Argument name -> FieldSpec, in declaration order
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1, description="Unique tool name")
    description: str = Field(default="", description="Text shown to the model")
    args: dict[str, FieldSpec] = Field(default_factory=dict, description="Tool arguments")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Tool names are identifiers: letters, digits and underscores."""
        if not v.replace("_", "").isalnum():
            msg = f"Invalid tool name format: {v}"
            raise ValueError(msg)
        return v

    def required_fields(self) -> list[str]:
        """Names of the required arguments, in declaration order."""
        return [name for name, spec in self.args.items() if spec.required]

    def to_json_schema(self) -> dict[str, Any]:
        """Render the structural input schema as a JSON-schema object."""
        properties = {
            name: {"type": spec.type.value, "description": spec.description}
            for name, spec in self.args.items()
        }
        return {
            "type": "object",
            "properties": properties,
            "required": self.required_fields(),
        }


# =============================================================================
# Model Turns
# =============================================================================


def new_call_id() -> str:
    """Generate a call id for gateways that do not assign one."""
    return f"call-{uuid.uuid4().hex[:12]}"


class ToolCallRequest(BaseModel):
    """
    A structured tool invocation requested by the model.

    Attributes:
        call_id: Correlation id, gateway-assigned or generated
        name: Requested tool name
        arguments: Decoded argument mapping
        parse_error: Set when the wire arguments were not a JSON object
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    call_id: str = Field(default_factory=new_call_id, description="Correlation id")
    name: str = Field(..., description="Requested tool name")
    arguments: dict[str, Any] = Field(default_factory=dict, description="Decoded arguments")
    parse_error: str | None = Field(default=None, description="Argument decoding failure")

    def arguments_json(self) -> str:
        """Serialize arguments for trace output."""
        return json.dumps(self.arguments, ensure_ascii=False, default=str)


class TextPart(BaseModel):
    """Natural-language text produced by the model."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["text"] = "text"
    text: str


class ToolCallPart(BaseModel):
    """A tool call produced by the model."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["tool_call"] = "tool_call"
    call: ToolCallRequest


ResponsePart = Annotated[TextPart | ToolCallPart, Field(discriminator="kind")]


class ModelResponse(BaseModel):
    """
    One response from the model gateway.

    Parts keep the order in which the gateway returned them.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    parts: list[ResponsePart] = Field(default_factory=list)

    @property
    def texts(self) -> list[str]:
        """Text segments in arrival order."""
        return [part.text for part in self.parts if isinstance(part, TextPart)]

    @property
    def tool_calls(self) -> list[ToolCallRequest]:
        """Tool calls in the order returned by the gateway."""
        return [part.call for part in self.parts if isinstance(part, ToolCallPart)]


# =============================================================================
# Tool Results
# =============================================================================


class ToolResult(BaseModel):
    """
    The outcome of executing one tool call.

    Every dispatched call gets exactly one ToolResult, success or failure.

    Attributes:
        call_id: ID of the tool call this result answers
        tool_name: Name of the tool as requested by the model
        status: success or error
        output: Success payload
        error: Failure reason
        error_kind: Failure category
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    call_id: str = Field(..., description="ID of the tool call")
    tool_name: str = Field(..., description="Name of the tool")
    status: ToolResultStatus = Field(..., description="Outcome status")
    output: str | None = Field(default=None, description="Success payload")
    error: str | None = Field(default=None, description="Failure reason")
    error_kind: ToolErrorKind | None = Field(default=None, description="Failure category")

    @property
    def success(self) -> bool:
        return self.status == ToolResultStatus.SUCCESS

    @classmethod
    def ok(cls, call: ToolCallRequest, output: str) -> "ToolResult":
        """Create a successful result for a call."""
        return cls(
            call_id=call.call_id,
            tool_name=call.name,
            status=ToolResultStatus.SUCCESS,
            output=output,
        )

    @classmethod
    def fail(cls, call: ToolCallRequest, kind: ToolErrorKind, error: str) -> "ToolResult":
        """Create a failed result for a call."""
        return cls(
            call_id=call.call_id,
            tool_name=call.name,
            status=ToolResultStatus.ERROR,
            error=error,
            error_kind=kind,
        )

    def to_payload(self) -> dict[str, str]:
        """Render the result as the response object sent to the model."""
        if self.success:
            return {"result": self.output or ""}
        kind = self.error_kind.value if self.error_kind else ToolErrorKind.IO_ERROR.value
        return {"error": f"[{kind}] {self.error}"}


# =============================================================================
# Settings
# =============================================================================


class GatewayConfig(BaseModel):
    """
    Model gateway settings.

    Attributes:
        backend: Which gateway implementation to use
        model: Model identifier; the backend default is used when None
        base_url: Endpoint; the backend default is used when None
        api_key_env: Environment variable holding the API key
        timeout_seconds: Per-request timeout
        temperature: Sampling temperature; backend default when None
        max_output_tokens: Output token cap per response
        system_prompt: Optional system instruction for the session
    """

    model_config = ConfigDict(extra="forbid")

    backend: GatewayBackend = Field(default=GatewayBackend.GEMINI)
    model: str | None = Field(default=None)
    base_url: str | None = Field(default=None)
    api_key_env: str = Field(default="GEMINI_API_KEY")
    timeout_seconds: float = Field(default=60.0, gt=0)
    temperature: float | None = Field(default=None, ge=0)
    max_output_tokens: int = Field(default=4096, gt=0)
    system_prompt: str | None = Field(default=None)


class LoopConfig(BaseModel):
    """
    Agent loop settings.

    Attributes:
        parallel_tools: Run independent tool calls of one turn concurrently
        max_workers: Worker threads used for parallel dispatch
    """

    model_config = ConfigDict(extra="forbid")

    parallel_tools: bool = Field(default=False)
    max_workers: int = Field(default=4, gt=0)


class AgentSettings(BaseModel):
    """Top-level settings file."""

    model_config = ConfigDict(extra="forbid")

    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    agent: LoopConfig = Field(default_factory=LoopConfig)


# =============================================================================
# YAML Loading Helpers
# =============================================================================


def load_settings(path: Path | str) -> AgentSettings:
    """
    Load settings from a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Validated AgentSettings object

    Raises:
        ConfigError: If the file is missing, not YAML, or fails validation
    """
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(
            message=f"Cannot read settings file {path}: {e}",
            path=str(path),
        ) from e

    return load_settings_from_string(content, source=str(path))


def load_settings_from_string(content: str, source: str = "<string>") -> AgentSettings:
    """Load settings from a YAML string."""
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(message=f"Invalid YAML in {source}: {e}", path=source) from e

    if data is None:
        return AgentSettings()
    if not isinstance(data, dict):
        raise ConfigError(
            message=f"Top-level settings in {source} must be a mapping",
            path=source,
        )

    try:
        return AgentSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(message=f"Invalid settings in {source}: {e}", path=source) from e

"""
Base classes for the tool interface.

This module defines the core abstractions for tools in fileagent:
- Tool: Abstract base class that all tools must implement
- ToolContext: Runtime context passed to tools during execution
- ToolOutput: Standardized result format from tool execution

Design Principles:
    - Tools are stateless - all state comes from ToolContext
    - Tools describe their arguments with a hand-written ToolSpec
    - Tools return ToolOutput - never raise exceptions for expected failures
    - Tools are registered by name - the registry handles lookup
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from fileagent.schema import ToolErrorKind, ToolSpec


@dataclass(frozen=True)
class ToolOutput:
    """
    Standardized output from tool execution.

    Every tool returns a ToolOutput, whether successful or failed.

    Attributes:
        success: Whether the tool executed successfully
        data: The string payload returned to the model
        error: Error message if success is False
        error_kind: Failure category if success is False
        metadata: Additional metadata about the execution
    """

    success: bool
    data: str | None = None
    error: str | None = None
    error_kind: ToolErrorKind | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, data: str, **metadata: Any) -> "ToolOutput":
        """Create a successful output."""
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def fail(cls, error: str, kind: ToolErrorKind, **metadata: Any) -> "ToolOutput":
        """Create a failed output."""
        return cls(success=False, error=error, error_kind=kind, metadata=metadata)


@dataclass
class ToolContext:
    """
    Runtime context passed to tools during execution.

    Attributes:
        working_dir: Directory that relative paths resolve against
        metadata: Additional context-specific metadata
    """

    working_dir: str = "."
    metadata: dict[str, Any] = field(default_factory=dict)

    def resolve(self, path_str: str) -> Path:
        """Resolve a tool path argument against the working directory."""
        path = Path(path_str).expanduser()
        if not path.is_absolute():
            path = Path(self.working_dir) / path
        return path


class Tool(ABC):
    """
    Abstract base class for all fileagent tools.

    Each tool:
    - Publishes a ToolSpec (name, description, argument fields)
    - Validates incoming arguments against that spec
    - Implements execute() and returns a ToolOutput

    Example:
        class EchoTool(Tool):
            spec = ToolSpec(
                name="echo",
                description="Echo a message back",
                args={"message": FieldSpec(required=True)},
            )

            def execute(self, args, context):
                errors = self.validate_args(args)
                if errors:
                    return self.invalid(errors)
                return ToolOutput.ok(args["message"])
    """

    spec: ToolSpec

    @property
    def name(self) -> str:
        """The unique identifier for this tool."""
        return self.spec.name

    @property
    def description(self) -> str:
        """Human-readable description shown to the model."""
        return self.spec.description

    @abstractmethod
    def execute(self, args: dict[str, Any], context: ToolContext) -> ToolOutput:
        """
        Execute the tool with the given arguments.

        Args:
            args: Untyped argument mapping from the model's tool call
            context: Runtime context with the working directory

        Returns:
            ToolOutput indicating success or failure with data/error

        Note:
            - Do NOT raise exceptions for expected failures (file not found, etc.)
            - Use ToolOutput.fail() for expected errors
        """
        ...

    def validate_args(self, args: dict[str, Any]) -> list[str]:
        """
        Validate arguments against the tool's spec.

        Missing required fields and values of the wrong JSON type are
        reported. Fields the ToolSpec does not name are ignored.

        Args:
            args: The arguments to validate

        Returns:
            List of validation error messages (empty if valid)
        """
        if not isinstance(args, dict):
            return ["arguments must be an object"]

        errors = []
        for field_name, field_spec in self.spec.args.items():
            if field_name not in args or args[field_name] is None:
                if field_spec.required:
                    errors.append(f"'{field_name}' is required")
                continue
            if not field_spec.accepts(args[field_name]):
                errors.append(f"'{field_name}' must be of type {field_spec.type.value}")
        return errors

    def invalid(self, errors: list[str]) -> ToolOutput:
        """Build the InvalidArgs output for a list of validation errors."""
        return ToolOutput.fail(
            f"Invalid arguments for {self.name}: {'; '.join(errors)}",
            ToolErrorKind.INVALID_ARGS,
        )

    def __repr__(self) -> str:
        """String representation of the tool."""
        return f"<Tool: {self.name}>"

"""
Tool registry for fileagent.

The registry maps tool names to tool instances. It is built once at
startup, frozen, and passed into the agent loop; nothing registers tools
after that.

Usage:
    from fileagent.tools.registry import build_default_registry

    registry = build_default_registry()
    tool = registry.get("read_file")
"""

from typing import Iterator

from fileagent.errors import DuplicateToolError, RegistryFrozenError, ToolNotFoundError
from fileagent.schema import ToolSpec
from fileagent.tools.base import Tool


class ToolRegistry:
    """
    Registry for looking up tools by name.

    Tools keep their registration order, which is also the order in
    which their specs are advertised to the model.

    Attributes:
        _tools: Internal mapping of tool names to tool instances
        _frozen: Set once startup is complete
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._tools: dict[str, Tool] = {}
        self._frozen = False

    def register(self, tool: Tool) -> None:
        """
        Register a tool in the registry.

        Args:
            tool: The tool instance to register

        Raises:
            ValueError: If tool is None
            DuplicateToolError: If a tool with that name is already registered
            RegistryFrozenError: If the registry has been frozen
        """
        if tool is None:
            msg = "Cannot register None as a tool"
            raise ValueError(msg)

        name = tool.name
        if self._frozen:
            raise RegistryFrozenError(tool=name)
        if name in self._tools:
            raise DuplicateToolError(tool=name)

        self._tools[name] = tool

    def freeze(self) -> "ToolRegistry":
        """Make the registry read-only. Returns self for chaining."""
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> Tool:
        """
        Look up a tool by name.

        Raises:
            ToolNotFoundError: If no tool with that name is registered
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(tool=name)
        return tool

    def get_optional(self, name: str) -> Tool | None:
        """Look up a tool by name, returning None if not found."""
        return self._tools.get(name)

    def has(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools

    def list_tools(self) -> list[str]:
        """List registered tool names in registration order."""
        return list(self._tools)

    def specs(self) -> list[ToolSpec]:
        """ToolSpecs of every registered tool, for capability advertisement."""
        return [tool.spec for tool in self._tools.values()]

    def __len__(self) -> int:
        """Return the number of registered tools."""
        return len(self._tools)

    def __iter__(self) -> Iterator[Tool]:
        """Iterate over all registered tools."""
        return iter(self._tools.values())

    def __contains__(self, name: str) -> bool:
        """Check if a tool is registered using 'in' operator."""
        return name in self._tools

    def __repr__(self) -> str:
        """String representation of the registry."""
        tools = ", ".join(self.list_tools())
        return f"<ToolRegistry: [{tools}]>"


def build_default_registry() -> ToolRegistry:
    """Build the frozen registry holding the built-in filesystem tools."""
    from fileagent.tools.fs import register_fs_tools

    registry = ToolRegistry()
    register_fs_tools(registry)
    return registry.freeze()

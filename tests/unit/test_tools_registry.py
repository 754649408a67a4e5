"""
Unit tests for the tool registry.

Tests cover:
- Registration, duplicates and freezing
- Lookup by name
- Spec advertisement order
- The default registry
"""

from typing import Any

import pytest

from fileagent.errors import DuplicateToolError, RegistryFrozenError, ToolNotFoundError
from fileagent.schema import ToolSpec
from fileagent.tools import build_default_registry
from fileagent.tools.base import Tool, ToolContext, ToolOutput
from fileagent.tools.registry import ToolRegistry


def make_tool(name: str) -> Tool:
    class NamedTool(Tool):
        spec = ToolSpec(name=name, description=f"{name} tool")

        def execute(self, args: dict[str, Any], context: ToolContext) -> ToolOutput:
            return ToolOutput.ok(name)

    return NamedTool()


class TestToolRegistry:
    """Tests for ToolRegistry."""

    def test_register_and_get(self) -> None:
        registry = ToolRegistry()
        tool = make_tool("alpha")
        registry.register(tool)
        assert registry.get("alpha") is tool
        assert registry.has("alpha")
        assert "alpha" in registry
        assert len(registry) == 1

    def test_get_unknown(self) -> None:
        registry = ToolRegistry()
        with pytest.raises(ToolNotFoundError) as exc_info:
            registry.get("missing")
        assert exc_info.value.message == "Tool not found: missing"

    def test_get_optional(self) -> None:
        registry = ToolRegistry()
        assert registry.get_optional("missing") is None

    def test_register_none(self) -> None:
        with pytest.raises(ValueError):
            ToolRegistry().register(None)

    def test_duplicate_rejected(self) -> None:
        registry = ToolRegistry()
        registry.register(make_tool("alpha"))
        with pytest.raises(DuplicateToolError):
            registry.register(make_tool("alpha"))

    def test_frozen_rejects_register(self) -> None:
        registry = ToolRegistry().freeze()
        assert registry.frozen
        with pytest.raises(RegistryFrozenError):
            registry.register(make_tool("alpha"))

    def test_specs_in_registration_order(self) -> None:
        registry = ToolRegistry()
        for name in ("zeta", "alpha", "mid"):
            registry.register(make_tool(name))
        assert registry.list_tools() == ["zeta", "alpha", "mid"]
        assert [spec.name for spec in registry.specs()] == ["zeta", "alpha", "mid"]
        assert [tool.name for tool in registry] == ["zeta", "alpha", "mid"]

    def test_repr(self) -> None:
        registry = ToolRegistry()
        registry.register(make_tool("alpha"))
        assert repr(registry) == "<ToolRegistry: [alpha]>"


class TestDefaultRegistry:
    """Tests for build_default_registry."""

    def test_contains_fs_tools(self) -> None:
        registry = build_default_registry()
        assert registry.list_tools() == ["read_file", "list_files", "edit_file"]
        assert registry.frozen

    def test_spec_shapes(self) -> None:
        specs = {spec.name: spec for spec in build_default_registry().specs()}
        assert specs["read_file"].required_fields() == ["path"]
        assert specs["list_files"].required_fields() == []
        assert specs["edit_file"].required_fields() == ["path", "old_str", "new_str"]

    def test_fresh_instances(self) -> None:
        assert build_default_registry() is not build_default_registry()

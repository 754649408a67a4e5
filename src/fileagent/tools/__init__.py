"""
Tools module for fileagent.

This module provides the tool interface and the built-in filesystem tools
the model can call.

Built-in tools:
    - read_file: Read file contents
    - list_files: Recursively list a directory
    - edit_file: Replace text in a file or create a new one

Architecture:
    - Tool: Abstract base class defining the tool interface
    - ToolRegistry: Registry for looking up tools by name, frozen after startup
    - ToolContext: Runtime context passed to tools (working directory)
    - ToolOutput: Standardized result format from tool execution

Each tool is responsible for:
    1. Validating its arguments against its ToolSpec
    2. Executing the operation
    3. Returning a standardized ToolOutput
"""

from fileagent.tools.base import Tool, ToolContext, ToolOutput
from fileagent.tools.fs import EditFileTool, EditIntent, ListFilesTool, ReadFileTool
from fileagent.tools.registry import ToolRegistry, build_default_registry

__all__ = [
    "Tool",
    "ToolContext",
    "ToolOutput",
    "ToolRegistry",
    "build_default_registry",
    "EditFileTool",
    "EditIntent",
    "ListFilesTool",
    "ReadFileTool",
]

"""
Tests for terminal display.

Tests:
    - Display hooks are no-ops
    - ConsoleDisplay line formats
"""

import io

import pytest
from rich.console import Console

from fileagent.display import ConsoleDisplay, Display
from fileagent.schema import ToolCallRequest


@pytest.fixture
def buffer() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def display(buffer: io.StringIO) -> ConsoleDisplay:
    console = Console(file=buffer, width=200, color_system=None)
    return ConsoleDisplay(console, model_label="gemini-2.0-flash")


def test_base_display_is_silent() -> None:
    display = Display()
    display.banner("m")
    display.prompt()
    display.model_text("x")
    display.tool_call(ToolCallRequest(name="read_file"))
    display.notice("n")


def test_banner(display: ConsoleDisplay, buffer: io.StringIO) -> None:
    display.banner("gemini-2.0-flash")
    assert buffer.getvalue() == "=== Chat with gemini-2.0-flash (use 'ctrl-c' to quit) ===\n"


def test_prompt_has_no_newline(display: ConsoleDisplay, buffer: io.StringIO) -> None:
    display.prompt()
    assert buffer.getvalue() == "You: "


def test_model_text(display: ConsoleDisplay, buffer: io.StringIO) -> None:
    display.model_text("Done [bold]really[/bold]")
    # model text is printed verbatim, not as markup
    assert buffer.getvalue() == "gemini-2.0-flash: Done [bold]really[/bold]\n"


def test_tool_call_trace(display: ConsoleDisplay, buffer: io.StringIO) -> None:
    display.tool_call(ToolCallRequest(name="read_file", arguments={"path": "a.txt"}))
    assert buffer.getvalue() == 'tool: read_file({"path": "a.txt"})\n'


def test_notice(display: ConsoleDisplay, buffer: io.StringIO) -> None:
    display.notice("session closed")
    assert buffer.getvalue() == "session closed\n"

"""
Terminal output for fileagent sessions.

The agent loop reports what happens through a Display: the input prompt,
each model text segment, and one trace line per tool call before it runs.
Display itself does nothing, which is what tests and embedders get by
default. ConsoleDisplay renders to a Rich console.
"""

from rich.console import Console
from rich.text import Text

from fileagent.schema import ToolCallRequest


class Display:
    """Output hooks used by the agent loop. All no-ops."""

    def banner(self, model_name: str) -> None:
        """Session start."""

    def prompt(self) -> None:
        """Shown right before a line of user input is read."""

    def model_text(self, text: str) -> None:
        """One text segment from the model."""

    def tool_call(self, call: ToolCallRequest) -> None:
        """Trace line for a tool call about to execute."""

    def notice(self, message: str) -> None:
        """Out-of-band message for the operator."""


class ConsoleDisplay(Display):
    """
    Display rendering to a Rich console.

    Colors follow the classic layout: blue "You", yellow model name,
    green "tool". Model text is printed verbatim, never parsed as markup.
    """

    def __init__(self, console: Console | None = None, model_label: str = "Model"):
        self.console = console or Console()
        self.model_label = model_label

    def banner(self, model_name: str) -> None:
        self.console.print(
            Text(f"=== Chat with {model_name} (use 'ctrl-c' to quit) ===", style="bold")
        )

    def prompt(self) -> None:
        self.console.print(Text.assemble(("You", "bold blue"), ": "), end="")

    def model_text(self, text: str) -> None:
        self.console.print(Text.assemble((self.model_label, "bold yellow"), ": ", text))

    def tool_call(self, call: ToolCallRequest) -> None:
        self.console.print(
            Text.assemble(("tool", "bold green"), f": {call.name}({call.arguments_json()})")
        )

    def notice(self, message: str) -> None:
        self.console.print(Text(message, style="dim"))

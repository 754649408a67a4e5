"""
CLI entry point for fileagent.

This module provides the Typer-based command-line interface for fileagent.

Commands:
    chat        Start an interactive session with the model
    tools       Show the tools offered to the model
    doctor      Check environment, API key and model endpoint

Architecture Note:
    The CLI only parses options, loads settings and wires objects
    together. The conversation itself lives in fileagent.agent.
"""

import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Annotated, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from fileagent import __version__
from fileagent.agent import AgentConfig, AgentLoop
from fileagent.display import ConsoleDisplay
from fileagent.errors import ConfigError, FileAgentError
from fileagent.gateway import create_gateway
from fileagent.schema import AgentSettings, GatewayBackend, load_settings
from fileagent.tools import build_default_registry

# Initialize Typer app with metadata
app = typer.Typer(
    name="fileagent",
    help="Chat with a hosted model that can read, list and edit local files.",
    add_completion=False,
    no_args_is_help=True,
)

# Rich console for formatted output
console = Console()

logger = logging.getLogger("fileagent")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]fileagent[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    fileagent - Let a hosted model work on the files in your directory.

    The model can read files, list directories and edit or create files.
    There is no sandbox: it acts with your permissions.
    """
    pass


def _setup_logging(verbose: bool, debug: bool) -> None:
    """Route library logging through Rich on stderr."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=debug,
        rich_tracebacks=debug,
    )
    logger.handlers = [handler]
    logger.setLevel(level)
    logger.propagate = False


def _load_settings(
    config_path: Optional[Path],
    backend: Optional[str],
    model: Optional[str],
    parallel_tools: bool = False,
) -> AgentSettings:
    """
    Load settings from YAML and apply command-line overrides.

    Raises:
        ConfigError: If the file is invalid or the backend is unknown
    """
    settings = load_settings(config_path) if config_path else AgentSettings()

    gateway_update: dict = {}
    if backend is not None:
        try:
            gateway_update["backend"] = GatewayBackend(backend.lower())
        except ValueError:
            choices = ", ".join(b.value for b in GatewayBackend)
            raise ConfigError(
                message=f"Unknown backend '{backend}'",
                suggestion=f"Use one of: {choices}",
            ) from None
    if model is not None:
        gateway_update["model"] = model

    agent_update: dict = {}
    if parallel_tools:
        agent_update["parallel_tools"] = True

    return AgentSettings(
        gateway=settings.gateway.model_copy(update=gateway_update),
        agent=settings.agent.model_copy(update=agent_update),
    )


def _read_stdin_line() -> Optional[str]:
    """Read one line of user input; None on EOF or Ctrl-C."""
    try:
        return input()
    except (EOFError, KeyboardInterrupt):
        return None


# Shared option types
ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help="Path to a settings YAML file.",
        exists=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
    ),
]
BackendOption = Annotated[
    Optional[str],
    typer.Option(
        "--backend",
        "-b",
        help="Model backend: gemini or ollama.",
    ),
]
ModelOption = Annotated[
    Optional[str],
    typer.Option(
        "--model",
        "-m",
        help="Model name (e.g., gemini-2.0-flash, qwen2.5:7b).",
    ),
]


@app.command()
def chat(
    config_path: ConfigOption = None,
    backend: BackendOption = None,
    model: ModelOption = None,
    working_dir: Annotated[
        Optional[Path],
        typer.Option(
            "--working-dir",
            "-w",
            help="Directory relative paths resolve against. Defaults to the current directory.",
            exists=True,
            file_okay=False,
            resolve_path=True,
        ),
    ] = None,
    parallel_tools: Annotated[
        bool,
        typer.Option(
            "--parallel-tools",
            help="Run the tool calls of one turn concurrently (same path stays sequential).",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            help="Enable verbose output for debugging.",
        ),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option(
            "--debug",
            help="Enable debug mode with full error tracebacks.",
        ),
    ] = False,
) -> None:
    """
    Start an interactive chat session.

    Each line you type is one turn. The model may call read_file,
    list_files and edit_file; each call is traced as it runs. End the
    session with Ctrl-C or Ctrl-D.

    Example:
        $ fileagent chat --backend ollama --model qwen2.5:7b
    """
    load_dotenv()
    _setup_logging(verbose, debug)

    try:
        settings = _load_settings(config_path, backend, model, parallel_tools)
    except ConfigError as e:
        console.print(f"[red]Error loading settings: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    registry = build_default_registry()
    gateway = create_gateway(settings.gateway)
    model_name = gateway.get_config().get("model") or gateway.get_name()

    if verbose:
        console.print(f"[dim]Gateway: {gateway.get_name()}[/dim]")
        console.print(f"[dim]Tools: {', '.join(registry.list_tools())}[/dim]")

    display = ConsoleDisplay(console, model_label=model_name)
    display.banner(model_name)

    loop_config = AgentConfig.from_loop_config(
        settings.agent,
        system_prompt=settings.gateway.system_prompt,
    )

    with gateway:
        loop = AgentLoop(
            gateway=gateway,
            registry=registry,
            read_line=_read_stdin_line,
            display=display,
            config=loop_config,
            working_dir=str(working_dir) if working_dir else None,
        )
        result = loop.run()

    console.print()
    if result.status == "error":
        console.print(f"[red]Session ended: {escape(result.error_message or '')}[/red]")
        if debug and result.error is not None:
            console.print(f"[dim]{escape(json.dumps(result.error.to_dict(), indent=2))}[/dim]")
        raise typer.Exit(code=1)

    if verbose:
        console.print(f"[dim]Session closed after {len(result.turns)} turn(s)[/dim]")
    raise typer.Exit(code=0)


@app.command("tools")
def list_tools(
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output the tool specs in JSON format.",
        ),
    ] = False,
) -> None:
    """
    Show the tools offered to the model.

    Example:
        $ fileagent tools --json
    """
    registry = build_default_registry()

    if json_output:
        specs = [spec.model_dump(mode="json") for spec in registry.specs()]
        print(json.dumps(specs, indent=2))
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Tool", style="cyan", no_wrap=True)
    table.add_column("Arguments")
    table.add_column("Description")

    for spec in registry.specs():
        args = []
        for name, field in spec.args.items():
            marker = "" if field.required else "?"
            args.append(f"{name}{marker}: {field.type.value}")
        table.add_row(spec.name, "\n".join(args), spec.description)

    console.print(table)


@app.command()
def doctor(
    config_path: ConfigOption = None,
    backend: BackendOption = None,
    model: ModelOption = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output results in JSON format.",
        ),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option(
            "--debug",
            help="Enable debug mode with full error tracebacks.",
        ),
    ] = False,
) -> None:
    """
    Check system environment and model endpoint.

    Verifies that fileagent can run:
    - Python version (3.11+)
    - Settings file validity
    - Model endpoint reachability, API key and model availability

    Example:
        $ fileagent doctor --backend ollama
    """
    load_dotenv()

    checks = []
    all_ok = True

    # Check 1: Python version
    py_version = sys.version_info
    py_version_str = f"{py_version.major}.{py_version.minor}.{py_version.micro}"
    py_ok = py_version >= (3, 11)
    checks.append({
        "name": "Python version",
        "ok": py_ok,
        "value": py_version_str,
        "message": "OK" if py_ok else "Requires Python 3.11+",
    })
    if not py_ok:
        all_ok = False

    # Check 2: Settings
    settings: Optional[AgentSettings] = None
    try:
        settings = _load_settings(config_path, backend, model)
        checks.append({
            "name": "Settings",
            "ok": True,
            "value": str(config_path) if config_path else "defaults",
            "message": f"backend {settings.gateway.backend.value}",
        })
    except ConfigError as e:
        all_ok = False
        checks.append({
            "name": "Settings",
            "ok": False,
            "value": str(config_path) if config_path else "defaults",
            "message": str(e),
        })

    # Check 3: Model endpoint
    if settings is not None:
        try:
            with create_gateway(settings.gateway) as gateway:
                endpoint_ok, endpoint_message = gateway.check_connection()
                endpoint_name = gateway.get_name()
        except FileAgentError as e:
            endpoint_ok, endpoint_message = False, str(e)
            endpoint_name = settings.gateway.backend.value
            if debug:
                endpoint_message += f"\n{traceback.format_exc()}"

        checks.append({
            "name": "Model endpoint",
            "ok": endpoint_ok,
            "value": endpoint_name,
            "message": endpoint_message,
        })
        if not endpoint_ok:
            all_ok = False

    # Output results
    if json_output:
        output = {
            "ok": all_ok,
            "version": __version__,
            "checks": checks,
        }
        print(json.dumps(output, indent=2))
    else:
        console.print(f"[bold]fileagent Doctor[/bold] v{__version__}")
        console.print()

        for check in checks:
            icon = "[green]✓[/green]" if check["ok"] else "[red]✗[/red]"
            name = check["name"]
            value = check.get("value", "")
            message = check.get("message", "")

            if check["ok"]:
                console.print(f"{icon} {name}: [dim]{escape(value)}[/dim] - {escape(message)}")
            else:
                console.print(f"{icon} {name}: [dim]{escape(value)}[/dim]")
                console.print(f"    [red]{escape(message)}[/red]")

        console.print()
        if all_ok:
            console.print("[green]All checks passed![/green]")
        else:
            console.print("[yellow]Some checks failed. See above for details.[/yellow]")

    raise typer.Exit(code=0 if all_ok else 1)


if __name__ == "__main__":
    app()

"""
Agent loop for fileagent.

This module implements the conversation state machine that sits between
the user, the model gateway and the tool registry:

    AWAITING_USER_INPUT -> AWAITING_MODEL_RESPONSE
        -> DISPATCHING_TOOLS (only if the model asked for tools)
        -> AWAITING_FOLLOWUP_RESPONSE -> AWAITING_USER_INPUT
    CLOSED once the input source is exhausted or the gateway fails

Rules:
    - Every dispatched tool call gets exactly one ToolResult
    - All results of a turn go back to the gateway together, before the
      next line of user input is read
    - One round of tool execution per user turn: tool calls in the
      follow-up response are logged and dropped
    - A failing tool only affects its own ToolResult; a failing gateway
      ends the session
"""

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from fileagent.display import Display
from fileagent.errors import GatewayError, ToolNotFoundError
from fileagent.gateway.base import ModelGateway
from fileagent.schema import LoopConfig, ToolCallRequest, ToolErrorKind, ToolResult
from fileagent.tools.base import Tool, ToolContext
from fileagent.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class AgentState(str, Enum):
    """States of the agent loop."""

    AWAITING_USER_INPUT = "awaiting_user_input"
    AWAITING_MODEL_RESPONSE = "awaiting_model_response"
    DISPATCHING_TOOLS = "dispatching_tools"
    AWAITING_FOLLOWUP_RESPONSE = "awaiting_followup_response"
    CLOSED = "closed"


@dataclass
class AgentConfig:
    """
    Configuration for the agent loop.

    Attributes:
        parallel_tools: Run the tool calls of one turn concurrently.
            Calls that target the same path still run one after another,
            in the order received.
        max_workers: Thread pool size for parallel dispatch
        system_prompt: Optional system instruction passed to the gateway
    """

    parallel_tools: bool = False
    max_workers: int = 4
    system_prompt: str | None = None

    @classmethod
    def from_loop_config(
        cls,
        config: LoopConfig,
        system_prompt: str | None = None,
    ) -> "AgentConfig":
        """Create AgentConfig from the settings file section."""
        return cls(
            parallel_tools=config.parallel_tools,
            max_workers=config.max_workers,
            system_prompt=system_prompt,
        )


@dataclass
class TurnResult:
    """
    What happened during one user turn.

    Attributes:
        user_text: The line the user typed
        texts: Text parts of the first model response
        tool_calls: Tool calls of the first model response, in order
        tool_results: One result per tool call, same order
        followup_texts: Text parts of the follow-up response
        ignored_tool_calls: Tool calls in the follow-up, not dispatched
    """

    user_text: str
    texts: list[str] = field(default_factory=list)
    tool_calls: list[ToolCallRequest] = field(default_factory=list)
    tool_results: list[ToolResult] = field(default_factory=list)
    followup_texts: list[str] = field(default_factory=list)
    ignored_tool_calls: list[ToolCallRequest] = field(default_factory=list)


@dataclass
class SessionResult:
    """
    Final result of a session.

    Attributes:
        status: "closed" after end of input, "error" after a gateway failure
        turns: Completed turns in order
        error: The gateway error that ended the session, if any
    """

    status: str = "running"
    turns: list[TurnResult] = field(default_factory=list)
    error: GatewayError | None = None

    @property
    def error_message(self) -> str | None:
        return str(self.error) if self.error else None


class AgentLoop:
    """
    Interactive loop that drives one conversation.

    Usage:
        loop = AgentLoop(gateway, build_default_registry(), read_line)
        result = loop.run()

    Attributes:
        gateway: Model gateway, owner of the conversation history
        registry: Frozen tool registry
        read_line: Returns the next line of user input, None at end of input
        display: Output hooks
        config: Loop configuration
    """

    def __init__(
        self,
        gateway: ModelGateway,
        registry: ToolRegistry,
        read_line: Callable[[], str | None],
        display: Display | None = None,
        config: AgentConfig | None = None,
        working_dir: str | None = None,
    ):
        self.gateway = gateway
        self.registry = registry
        self.read_line = read_line
        self.display = display or Display()
        self.config = config or AgentConfig()
        self.context = ToolContext(working_dir=working_dir or ".")
        self._state = AgentState.AWAITING_USER_INPUT
        self._started = False

    @property
    def state(self) -> AgentState:
        return self._state

    def start(self) -> None:
        """Open the gateway session and advertise the registry's tools."""
        self.gateway.start_session(self.registry.specs(), self.config.system_prompt)
        self._started = True

    def run(self) -> SessionResult:
        """
        Run turns until end of input or a gateway failure.

        Returns:
            SessionResult with every completed turn. A gateway failure is
            logged and reported through status="error"; it is never retried.
        """
        if not self._started:
            self.start()

        result = SessionResult()
        try:
            while True:
                self._state = AgentState.AWAITING_USER_INPUT
                self.display.prompt()
                line = self.read_line()
                if line is None:
                    result.status = "closed"
                    break
                if not line.strip():
                    continue
                result.turns.append(self.run_turn(line))
        except GatewayError as e:
            logger.error("Gateway failure, ending session: %s", e.message)
            result.status = "error"
            result.error = e
        finally:
            self._state = AgentState.CLOSED

        return result

    def run_turn(self, text: str) -> TurnResult:
        """
        Run one user turn: model response, tool round, follow-up.

        Raises:
            GatewayError: If either gateway exchange fails
        """
        if not self._started:
            self.start()

        turn = TurnResult(user_text=text)

        self._state = AgentState.AWAITING_MODEL_RESPONSE
        response = self.gateway.send_message(text)

        turn.texts = response.texts
        for segment in turn.texts:
            self.display.model_text(segment)

        turn.tool_calls = response.tool_calls
        if not turn.tool_calls:
            self._state = AgentState.AWAITING_USER_INPUT
            return turn

        self._state = AgentState.DISPATCHING_TOOLS
        turn.tool_results = self.dispatch(turn.tool_calls)

        self._state = AgentState.AWAITING_FOLLOWUP_RESPONSE
        followup = self.gateway.send_tool_results(turn.tool_results)

        turn.followup_texts = followup.texts
        for segment in turn.followup_texts:
            self.display.model_text(segment)

        turn.ignored_tool_calls = followup.tool_calls
        if turn.ignored_tool_calls:
            names = ", ".join(call.name for call in turn.ignored_tool_calls)
            logger.warning(
                "Ignoring %d tool call(s) in follow-up response: %s",
                len(turn.ignored_tool_calls),
                names,
            )
            self.display.notice(f"(ignored tool calls in follow-up: {names})")

        self._state = AgentState.AWAITING_USER_INPUT
        return turn

    # -------------------------------------------------------------------------
    # Tool dispatch
    # -------------------------------------------------------------------------

    def dispatch(self, calls: list[ToolCallRequest]) -> list[ToolResult]:
        """
        Execute tool calls and return one result per call, in call order.

        Args:
            calls: Tool calls from one model response

        Returns:
            ToolResults aligned with `calls`
        """
        if self.config.parallel_tools and len(calls) > 1:
            return self._dispatch_parallel(calls)

        results = []
        for call in calls:
            resolved = self._resolve(call)
            if isinstance(resolved, ToolResult):
                results.append(resolved)
                continue
            self.display.tool_call(call)
            results.append(self._execute(resolved, call))
        return results

    def _dispatch_parallel(self, calls: list[ToolCallRequest]) -> list[ToolResult]:
        results: list[ToolResult | None] = [None] * len(calls)
        groups: dict[Any, list[tuple[int, Tool, ToolCallRequest]]] = {}

        for index, call in enumerate(calls):
            resolved = self._resolve(call)
            if isinstance(resolved, ToolResult):
                results[index] = resolved
                continue
            self.display.tool_call(call)
            groups.setdefault(self._path_key(call), []).append((index, resolved, call))

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
            futures = [pool.submit(self._run_group, group) for group in groups.values()]
            for future in futures:
                for index, result in future.result():
                    results[index] = result

        return [result for result in results if result is not None]

    def _run_group(
        self,
        group: list[tuple[int, Tool, ToolCallRequest]],
    ) -> list[tuple[int, ToolResult]]:
        return [(index, self._execute(tool, call)) for index, tool, call in group]

    def _path_key(self, call: ToolCallRequest) -> Any:
        """Group key: the resolved target path, or the call itself if none."""
        path = call.arguments.get("path")
        if path is None and call.name == "list_files":
            path = "."
        if not isinstance(path, str) or not path.strip():
            return ("call", call.call_id)
        try:
            return str(self.context.resolve(path).resolve())
        except (OSError, RuntimeError):
            return ("call", call.call_id)

    def _resolve(self, call: ToolCallRequest) -> Tool | ToolResult:
        """Find the tool for a call, or the failure result if there is none."""
        try:
            tool = self.registry.get(call.name)
        except ToolNotFoundError as e:
            logger.info("Model requested unknown tool %r", call.name)
            return ToolResult.fail(call, ToolErrorKind.TOOL_NOT_FOUND, e.message)

        if call.parse_error:
            return ToolResult.fail(
                call,
                ToolErrorKind.INVALID_ARGS,
                f"Invalid arguments for {call.name}: {call.parse_error}",
            )
        return tool

    def _execute(self, tool: Tool, call: ToolCallRequest) -> ToolResult:
        logger.debug("Executing %s(%s)", call.name, call.arguments_json())
        try:
            output = tool.execute(dict(call.arguments), self.context)
        except Exception as e:
            logger.exception("Tool %s raised", call.name)
            return ToolResult.fail(call, ToolErrorKind.IO_ERROR, f"Tool execution error: {e}")

        if output.success:
            return ToolResult.ok(call, output.data or "")
        return ToolResult.fail(
            call,
            output.error_kind or ToolErrorKind.IO_ERROR,
            output.error or "unknown error",
        )

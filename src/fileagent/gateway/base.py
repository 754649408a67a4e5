"""
Base class for fileagent model gateways.

A gateway is the agent's only link to the model. It owns the full
conversation history; the agent loop appends to it through two calls
(send a user message, send tool results) and reads back the response.

Design Principles:
    - History is committed only after a successful exchange, so a failed
      request leaves the conversation as it was
    - Transport and protocol failures raise GatewayError subclasses
    - No automatic retry: a replayed turn could repeat side effects
"""

import copy
from abc import ABC, abstractmethod
from typing import Any

from fileagent.schema import ModelResponse, ToolResult, ToolSpec


class ModelGateway(ABC):
    """
    Abstract base class for model gateways.

    Subclasses implement `_exchange()`, which takes the new wire messages
    for one turn, sends them together with the history, and returns the
    parsed response plus the wire message recording the model's reply.
    The base class handles history bookkeeping.

    Implementations:
        - GeminiGateway: Google Gemini generateContent REST API
        - OllamaGateway: Local Ollama /api/chat with native tool calling

    Example:
        gateway.start_session(registry.specs())
        response = gateway.send_message("What's in README.md?")
        for call in response.tool_calls:
            ...
        followup = gateway.send_tool_results(results)
    """

    def __init__(self) -> None:
        self._history: list[dict[str, Any]] = []
        self._tools: list[ToolSpec] = []
        self._system_prompt: str | None = None

    def start_session(
        self,
        tools: list[ToolSpec],
        system_prompt: str | None = None,
    ) -> None:
        """
        Start a fresh conversation and advertise the available tools.

        Args:
            tools: ToolSpecs the model may call
            system_prompt: Optional system instruction for the session
        """
        self._tools = list(tools)
        self._system_prompt = system_prompt
        self._history = []

    @property
    def tools(self) -> list[ToolSpec]:
        """ToolSpecs advertised at session start."""
        return list(self._tools)

    @property
    def history(self) -> list[dict[str, Any]]:
        """Copy of the wire-format conversation history."""
        return copy.deepcopy(self._history)

    def send_message(self, text: str) -> ModelResponse:
        """
        Send one user text turn.

        Raises:
            GatewayError: On any transport or protocol failure
        """
        return self._send(self._user_messages(text))

    def send_tool_results(self, results: list[ToolResult]) -> ModelResponse:
        """
        Send every tool result of a turn back as one follow-up turn.

        Raises:
            GatewayError: On any transport or protocol failure
        """
        return self._send(self._tool_result_messages(results))

    def _send(self, new_messages: list[dict[str, Any]]) -> ModelResponse:
        response, reply = self._exchange(new_messages)
        self._history.extend(new_messages)
        self._history.append(reply)
        return response

    @abstractmethod
    def _user_messages(self, text: str) -> list[dict[str, Any]]:
        """Wire messages for a user text turn."""
        ...

    @abstractmethod
    def _tool_result_messages(self, results: list[ToolResult]) -> list[dict[str, Any]]:
        """Wire messages for a tool-result turn."""
        ...

    @abstractmethod
    def _exchange(
        self,
        new_messages: list[dict[str, Any]],
    ) -> tuple[ModelResponse, dict[str, Any]]:
        """
        Send history plus new messages and parse the reply.

        Returns:
            (parsed response, wire message of the model's reply)

        Raises:
            GatewayError: On any transport or protocol failure
        """
        ...

    def check_connection(self) -> tuple[bool, str]:
        """
        Check whether the endpoint is reachable and usable.

        Returns:
            Tuple of (is_ok, message)
        """
        return True, f"{self.get_name()} has no connection check"

    def close(self) -> None:
        """Release network resources."""

    def __enter__(self) -> "ModelGateway":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def get_name(self) -> str:
        """Return the gateway's name for logging."""
        return self.__class__.__name__

    def get_config(self) -> dict[str, Any]:
        """Return gateway configuration for debugging."""
        return {}

"""
Pytest configuration and fixtures for fileagent tests.

This module provides shared fixtures used across unit and integration
tests, including a scripted gateway that replays canned model responses
instead of talking to a real endpoint.
"""

import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any, Generator

import pytest

from fileagent.gateway.base import ModelGateway
from fileagent.schema import (
    ModelResponse,
    TextPart,
    ToolCallPart,
    ToolCallRequest,
    ToolResult,
)
from fileagent.tools import build_default_registry
from fileagent.tools.registry import ToolRegistry


class ScriptedGateway(ModelGateway):
    """
    Gateway that returns pre-scripted responses in order.

    Each scripted item is either a ModelResponse or an exception to raise.
    Every request's new wire messages are recorded in `requests`.
    """

    def __init__(self, responses: list[ModelResponse | Exception]):
        super().__init__()
        self.responses = list(responses)
        self.requests: list[list[dict[str, Any]]] = []
        self.sent_results: list[list[ToolResult]] = []
        self.closed = False

    def _user_messages(self, text: str) -> list[dict[str, Any]]:
        return [{"role": "user", "text": text}]

    def _tool_result_messages(self, results: list[ToolResult]) -> list[dict[str, Any]]:
        self.sent_results.append(list(results))
        return [{"role": "tool", "results": [r.model_dump(mode="json") for r in results]}]

    def _exchange(self, new_messages):
        self.requests.append(new_messages)
        if not self.responses:
            raise AssertionError("ScriptedGateway ran out of responses")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item, {"role": "model", "parts": len(item.parts)}

    def close(self) -> None:
        self.closed = True

    def get_config(self) -> dict[str, Any]:
        return {"backend": "scripted", "model": "scripted-model"}


def text_response(*texts: str) -> ModelResponse:
    """Build a response made of text parts only."""
    return ModelResponse(parts=[TextPart(text=t) for t in texts])


def call_response(*calls: ToolCallRequest, text: str | None = None) -> ModelResponse:
    """Build a response with optional leading text and tool calls."""
    parts: list = [TextPart(text=text)] if text else []
    parts.extend(ToolCallPart(call=c) for c in calls)
    return ModelResponse(parts=parts)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def registry() -> ToolRegistry:
    """The frozen registry with the three filesystem tools."""
    return build_default_registry()


@pytest.fixture
def make_gateway() -> Callable[..., ScriptedGateway]:
    """Factory for scripted gateways: make_gateway(resp1, resp2, ...)."""

    def factory(*responses: ModelResponse | Exception) -> ScriptedGateway:
        return ScriptedGateway(list(responses))

    return factory


@pytest.fixture
def make_lines() -> Callable[..., Callable[[], str | None]]:
    """Factory for read_line callables that yield the given lines, then None."""

    def factory(*lines: str) -> Callable[[], str | None]:
        pending = list(lines)

        def read_line() -> str | None:
            return pending.pop(0) if pending else None

        return read_line

    return factory

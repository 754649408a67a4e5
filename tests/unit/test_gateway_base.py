"""
Tests for ModelGateway history bookkeeping.

Tests:
    - start_session resets history and stores tools
    - History is committed only after a successful exchange
    - history returns a copy
"""

from conftest import ScriptedGateway, text_response

from fileagent.errors import GatewayTimeoutError
from fileagent.schema import ToolCallRequest, ToolResult, ToolSpec


class TestModelGateway:
    """Tests for the ModelGateway base class."""

    def test_start_session(self) -> None:
        gateway = ScriptedGateway([text_response("hi")])
        specs = [ToolSpec(name="read_file")]
        gateway.start_session(specs, system_prompt="be brief")
        assert gateway.tools == specs
        assert gateway._system_prompt == "be brief"
        assert gateway.history == []

    def test_history_committed_on_success(self) -> None:
        gateway = ScriptedGateway([text_response("hello")])
        gateway.start_session([])
        response = gateway.send_message("hi")
        assert response.texts == ["hello"]
        assert gateway.history == [
            {"role": "user", "text": "hi"},
            {"role": "model", "parts": 1},
        ]

    def test_history_untouched_on_failure(self) -> None:
        gateway = ScriptedGateway([
            text_response("first"),
            GatewayTimeoutError(gateway="scripted", timeout_seconds=1.0),
        ])
        gateway.start_session([])
        gateway.send_message("one")
        before = gateway.history

        try:
            gateway.send_message("two")
        except GatewayTimeoutError:
            pass

        assert gateway.history == before

    def test_tool_results_appended(self) -> None:
        gateway = ScriptedGateway([text_response("done")])
        gateway.start_session([])
        call = ToolCallRequest(call_id="c1", name="read_file")
        gateway.send_tool_results([ToolResult.ok(call, "data")])
        assert gateway.history[0]["role"] == "tool"
        assert gateway.history[0]["results"][0]["call_id"] == "c1"

    def test_history_is_copy(self) -> None:
        gateway = ScriptedGateway([text_response("x")])
        gateway.start_session([])
        gateway.send_message("hi")
        gateway.history.clear()
        assert len(gateway.history) == 2

    def test_restart_clears_history(self) -> None:
        gateway = ScriptedGateway([text_response("x")])
        gateway.start_session([])
        gateway.send_message("hi")
        gateway.start_session([])
        assert gateway.history == []

    def test_context_manager_closes(self) -> None:
        with ScriptedGateway([]) as gateway:
            pass
        assert gateway.closed

    def test_default_check_connection(self) -> None:
        ok, message = ScriptedGateway([]).check_connection()
        assert ok
        assert "ScriptedGateway" in message

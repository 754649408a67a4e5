"""
Tests for the fileagent exception hierarchy.

Tests:
    - FileAgentError formatting and serialization
    - Tool registry errors
    - Gateway errors and their default messages
    - ConfigError
"""

import pytest

from fileagent.errors import (
    ERROR_CONFIG_INVALID,
    ERROR_GATEWAY_AUTH,
    ERROR_GATEWAY_CONNECTION,
    ERROR_GATEWAY_MODEL_NOT_FOUND,
    ERROR_GATEWAY_RESPONSE,
    ERROR_GATEWAY_TIMEOUT,
    ERROR_REGISTRY_FROZEN,
    ERROR_TOOL_DUPLICATE,
    ERROR_TOOL_NOT_FOUND,
    ConfigError,
    DuplicateToolError,
    FileAgentError,
    GatewayAuthError,
    GatewayConnectionError,
    GatewayError,
    GatewayModelNotFoundError,
    GatewayResponseError,
    GatewayTimeoutError,
    RegistryFrozenError,
    ToolError,
    ToolNotFoundError,
)


class TestFileAgentError:
    """Tests for the base exception."""

    def test_basic_error(self) -> None:
        err = FileAgentError(message="Something went wrong", code=1)
        assert err.message == "Something went wrong"
        assert err.code == 1
        assert err.suggestion is None
        assert err.context == {}

    def test_str_format(self) -> None:
        err = FileAgentError(message="Boom", code=42)
        assert str(err) == "[E42] Boom"

    def test_str_with_suggestion(self) -> None:
        err = FileAgentError(message="Boom", code=42, suggestion="Try again")
        assert str(err) == "[E42] Boom\nSuggestion: Try again"

    def test_repr_format(self) -> None:
        err = FileAgentError(message="Boom", code=42, context={"a": 1})
        assert repr(err) == "FileAgentError(message='Boom', code=42, context={'a': 1})"

    def test_to_dict(self) -> None:
        err = FileAgentError(message="Boom", code=42, suggestion="Fix", context={"k": "v"})
        assert err.to_dict() == {
            "error_type": "FileAgentError",
            "message": "Boom",
            "code": 42,
            "suggestion": "Fix",
            "context": {"k": "v"},
        }

    def test_is_exception(self) -> None:
        with pytest.raises(FileAgentError):
            raise FileAgentError(message="raised")


class TestToolErrors:
    """Tests for registry-related errors."""

    def test_tool_not_found(self) -> None:
        err = ToolNotFoundError(tool="delete_everything")
        assert err.message == "Tool not found: delete_everything"
        assert err.code == ERROR_TOOL_NOT_FOUND
        assert err.suggestion
        assert err.context["tool"] == "delete_everything"
        assert isinstance(err, ToolError)

    def test_duplicate_tool(self) -> None:
        err = DuplicateToolError(tool="read_file")
        assert err.code == ERROR_TOOL_DUPLICATE
        assert "read_file" in err.message

    def test_registry_frozen(self) -> None:
        err = RegistryFrozenError(tool="extra")
        assert err.code == ERROR_REGISTRY_FROZEN
        assert "frozen" in err.message

    def test_custom_message_kept(self) -> None:
        err = ToolNotFoundError(message="custom", tool="x")
        assert err.message == "custom"


class TestGatewayErrors:
    """Tests for gateway errors."""

    def test_connection_error(self) -> None:
        err = GatewayConnectionError(
            gateway="ollama",
            model="qwen2.5:7b",
            url="http://localhost:11434",
            underlying_error="Connection refused",
        )
        assert err.code == ERROR_GATEWAY_CONNECTION
        assert "http://localhost:11434" in err.message
        assert "Connection refused" in err.message
        assert err.context["gateway"] == "ollama"
        assert err.context["model"] == "qwen2.5:7b"
        assert err.context["url"] == "http://localhost:11434"
        assert isinstance(err, GatewayError)

    def test_timeout_error(self) -> None:
        err = GatewayTimeoutError(gateway="gemini", model="m", timeout_seconds=60.0)
        assert err.code == ERROR_GATEWAY_TIMEOUT
        assert "60.0s" in err.message
        assert err.context["timeout_seconds"] == 60.0

    def test_response_error(self) -> None:
        err = GatewayResponseError(
            gateway="gemini",
            model="m",
            status_code=500,
            raw_response="oops",
            reason="HTTP 500",
        )
        assert err.code == ERROR_GATEWAY_RESPONSE
        assert err.message == "Invalid response from gemini: HTTP 500"
        assert err.context["status_code"] == 500
        assert err.context["raw_response"] == "oops"

    def test_model_not_found_lists_models(self) -> None:
        err = GatewayModelNotFoundError(
            gateway="ollama",
            model="missing",
            available_models=["a:1", "b:2"],
        )
        assert err.code == ERROR_GATEWAY_MODEL_NOT_FOUND
        assert err.suggestion == "Available models: a:1, b:2"

    def test_model_not_found_without_models(self) -> None:
        err = GatewayModelNotFoundError(gateway="gemini", model="missing")
        assert "--model" in err.suggestion

    def test_auth_error(self) -> None:
        err = GatewayAuthError(gateway="gemini", model="m", api_key_env="GEMINI_API_KEY")
        assert err.code == ERROR_GATEWAY_AUTH
        assert "GEMINI_API_KEY" in err.suggestion
        assert err.context["api_key_env"] == "GEMINI_API_KEY"


class TestConfigError:
    """Tests for ConfigError."""

    def test_default_message(self) -> None:
        err = ConfigError(path="settings.yaml")
        assert err.code == ERROR_CONFIG_INVALID
        assert err.message == "Invalid configuration: settings.yaml"
        assert err.context["path"] == "settings.yaml"

    def test_all_errors_share_base(self) -> None:
        for err in (
            ConfigError(),
            ToolNotFoundError(tool="x"),
            GatewayTimeoutError(gateway="g"),
        ):
            assert isinstance(err, FileAgentError)

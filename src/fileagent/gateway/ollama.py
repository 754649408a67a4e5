"""
Ollama gateway adapter.

This module implements the ModelGateway interface using a local Ollama
server and its native tool-calling support on /api/chat.

Requirements:
    - Ollama must be installed and running (`ollama serve`)
    - A tool-capable model must be pulled (`ollama pull qwen2.5:7b`)

Usage:
    from fileagent.gateway.ollama import OllamaConfig, OllamaGateway

    gateway = OllamaGateway(OllamaConfig(model="qwen2.5:7b"))
    gateway.start_session(registry.specs())
    response = gateway.send_message("List the files here")
"""

import json
from dataclasses import dataclass
from typing import Any

import httpx

from fileagent.errors import (
    GatewayConnectionError,
    GatewayModelNotFoundError,
    GatewayResponseError,
    GatewayTimeoutError,
)
from fileagent.gateway.base import ModelGateway
from fileagent.schema import (
    GatewayConfig,
    ModelResponse,
    TextPart,
    ToolCallPart,
    ToolCallRequest,
    ToolResult,
    ToolSpec,
    new_call_id,
)

DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_MODEL = "qwen2.5:7b"


@dataclass
class OllamaConfig:
    """
    Configuration specific to the Ollama adapter.

    This mirrors GatewayConfig with Ollama defaults filled in.
    """

    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    timeout_seconds: float = 60.0
    temperature: float = 0.1
    max_output_tokens: int = 4096

    @classmethod
    def from_gateway_config(cls, config: GatewayConfig) -> "OllamaConfig":
        """Create OllamaConfig from the generic GatewayConfig."""
        return cls(
            base_url=config.base_url or DEFAULT_BASE_URL,
            model=config.model or DEFAULT_MODEL,
            timeout_seconds=config.timeout_seconds,
            temperature=config.temperature if config.temperature is not None else 0.1,
            max_output_tokens=config.max_output_tokens,
        )


class OllamaGateway(ModelGateway):
    """
    Model gateway backed by a local Ollama instance.

    Tools are advertised in OpenAI function format. The assistant
    message's `content` becomes a TextPart and each entry of its
    `tool_calls` becomes a ToolCallPart. Each tool result is sent back
    as a `role: tool` message; all results of a turn go in one request.
    """

    def __init__(self, config: GatewayConfig | OllamaConfig | None = None):
        """
        Initialize the Ollama gateway.

        Args:
            config: Gateway configuration. If None, uses defaults.
        """
        super().__init__()
        if config is None:
            self.config = OllamaConfig()
        elif isinstance(config, OllamaConfig):
            self.config = config
        else:
            self.config = OllamaConfig.from_gateway_config(config)

        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.config.base_url,
                timeout=self.config.timeout_seconds,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def start_session(
        self,
        tools: list[ToolSpec],
        system_prompt: str | None = None,
    ) -> None:
        super().start_session(tools, system_prompt)
        if system_prompt:
            self._history.append({"role": "system", "content": system_prompt})

    # -------------------------------------------------------------------------
    # Wire format
    # -------------------------------------------------------------------------

    def _user_messages(self, text: str) -> list[dict[str, Any]]:
        return [{"role": "user", "content": text}]

    def _tool_result_messages(self, results: list[ToolResult]) -> list[dict[str, Any]]:
        return [
            {
                "role": "tool",
                "tool_name": result.tool_name,
                "content": json.dumps(result.to_payload(), ensure_ascii=False),
            }
            for result in results
        ]

    def _build_payload(self, new_messages: list[dict[str, Any]]) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.config.model,
            "messages": self._history + new_messages,
            "stream": False,
            "options": {
                "temperature": self.config.temperature,
                "num_predict": self.config.max_output_tokens,
            },
        }
        if self._tools:
            payload["tools"] = [
                {
                    "type": "function",
                    "function": {
                        "name": spec.name,
                        "description": spec.description,
                        "parameters": spec.to_json_schema(),
                    },
                }
                for spec in self._tools
            ]
        return payload

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------

    def _exchange(
        self,
        new_messages: list[dict[str, Any]],
    ) -> tuple[ModelResponse, dict[str, Any]]:
        """Make a single call to Ollama's chat API."""
        client = self._get_client()
        payload = self._build_payload(new_messages)

        try:
            response = client.post("/api/chat", json=payload)
        except httpx.ConnectError as e:
            raise GatewayConnectionError(
                gateway="ollama",
                model=self.config.model,
                url=self.config.base_url,
                underlying_error=str(e),
            ) from e
        except httpx.TimeoutException as e:
            raise GatewayTimeoutError(
                gateway="ollama",
                model=self.config.model,
                timeout_seconds=self.config.timeout_seconds,
            ) from e
        except httpx.HTTPError as e:
            raise GatewayConnectionError(
                gateway="ollama",
                model=self.config.model,
                url=self.config.base_url,
                underlying_error=str(e),
            ) from e

        if response.status_code == 404:
            raise GatewayModelNotFoundError(
                gateway="ollama",
                model=self.config.model,
                available_models=self._list_models(),
            )

        if response.status_code != 200:
            raise GatewayResponseError(
                gateway="ollama",
                model=self.config.model,
                status_code=response.status_code,
                raw_response=response.text[:500],
                reason=f"HTTP {response.status_code}",
            )

        try:
            data = response.json()
        except json.JSONDecodeError as e:
            raise GatewayResponseError(
                gateway="ollama",
                model=self.config.model,
                status_code=response.status_code,
                raw_response=response.text[:500],
                reason=f"Invalid JSON from Ollama: {e}",
            ) from e

        message = data.get("message") if isinstance(data, dict) else None
        if not isinstance(message, dict):
            raise GatewayResponseError(
                gateway="ollama",
                model=self.config.model,
                raw_response=str(data)[:500],
                reason="Response has no message",
            )

        return self._parse_message(message)

    def _malformed(self, message: Any, reason: str) -> GatewayResponseError:
        return GatewayResponseError(
            gateway="ollama",
            model=self.config.model,
            raw_response=str(message)[:500],
            reason=reason,
        )

    def _parse_message(self, message: dict[str, Any]) -> tuple[ModelResponse, dict[str, Any]]:
        """
        Turn an assistant message into a ModelResponse.

        Raises:
            GatewayResponseError: If the message does not have the expected shape
        """
        parts: list[TextPart | ToolCallPart] = []

        content = message.get("content") or ""
        if not isinstance(content, str):
            raise self._malformed(message, "Message content is not a string")
        if content.strip():
            parts.append(TextPart(text=content))

        tool_calls = message.get("tool_calls") or []
        if not isinstance(tool_calls, list):
            raise self._malformed(message, "tool_calls is not a list")
        for raw_call in tool_calls:
            parts.append(ToolCallPart(call=self._parse_call(message, raw_call)))

        reply = {
            "role": "assistant",
            "content": content,
        }
        if tool_calls:
            reply["tool_calls"] = tool_calls
        return ModelResponse(parts=parts), reply

    def _parse_call(self, message: dict[str, Any], raw_call: Any) -> ToolCallRequest:
        if not isinstance(raw_call, dict):
            raise self._malformed(message, "Tool call is not an object")
        function = raw_call.get("function") or {}
        if not isinstance(function, dict):
            raise self._malformed(message, "Tool call function is not an object")
        name = function.get("name", "")
        if not isinstance(name, str):
            raise self._malformed(message, "Tool call name is not a string")
        call_id = raw_call.get("id")
        if not call_id or not isinstance(call_id, str):
            call_id = new_call_id()
        arguments = function.get("arguments")

        # Some models send OpenAI-style JSON strings instead of objects
        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments) if arguments.strip() else {}
            except json.JSONDecodeError as e:
                return ToolCallRequest(
                    call_id=call_id,
                    name=name,
                    parse_error=f"arguments are not valid JSON: {e}",
                )

        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            return ToolCallRequest(
                call_id=call_id,
                name=name,
                parse_error=f"arguments must be an object, got {type(arguments).__name__}",
            )
        return ToolCallRequest(call_id=call_id, name=name, arguments=arguments)

    def _list_models(self) -> list[str]:
        """List available models from Ollama."""
        try:
            client = self._get_client()
            response = client.get("/api/tags")
            if response.status_code == 200:
                data = response.json()
                return [m["name"] for m in data.get("models", [])]
        except (httpx.HTTPError, ValueError, KeyError):
            pass
        return []

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    def get_name(self) -> str:
        """Return gateway name."""
        return f"OllamaGateway({self.config.model})"

    def get_config(self) -> dict[str, Any]:
        """Return gateway configuration."""
        return {
            "backend": "ollama",
            "base_url": self.config.base_url,
            "model": self.config.model,
            "timeout_seconds": self.config.timeout_seconds,
            "temperature": self.config.temperature,
            "max_output_tokens": self.config.max_output_tokens,
        }

    def check_connection(self) -> tuple[bool, str]:
        """
        Check if Ollama is accessible and the model is available.

        Returns:
            Tuple of (is_ok, message)
        """
        try:
            client = self._get_client()
            response = client.get("/api/tags")
            if response.status_code != 200:
                return False, f"Ollama returned HTTP {response.status_code}"

            data = response.json()
            models = [m["name"] for m in data.get("models", [])]
        except httpx.ConnectError:
            return False, f"Cannot connect to Ollama at {self.config.base_url}. Is it running?"
        except (httpx.HTTPError, ValueError, KeyError) as e:
            return False, f"Error checking Ollama: {e}"

        if not models:
            return False, f"No models available. Run: ollama pull {self.config.model}"

        # Handle both "model" and "model:tag" formats
        model_base = self.config.model.split(":")[0]
        available = any(
            m == self.config.model or m.startswith(f"{model_base}:") for m in models
        )
        if not available:
            return (
                False,
                f"Model '{self.config.model}' not found. Available: {', '.join(models[:3])}",
            )

        return True, f"Connected to Ollama, model '{self.config.model}' available"

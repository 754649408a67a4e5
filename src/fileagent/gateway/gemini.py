"""
Gemini gateway adapter.

This module implements the ModelGateway interface on top of the Gemini
generateContent REST API, using native function calling.

Requirements:
    - An API key in the environment (GEMINI_API_KEY by default, `.env`
      files are loaded by the CLI)

Usage:
    from fileagent.gateway.gemini import GeminiConfig, GeminiGateway

    with GeminiGateway(GeminiConfig(model="gemini-2.0-flash")) as gateway:
        gateway.start_session(registry.specs())
        response = gateway.send_message("List the files here")
"""

import json
import os
from dataclasses import dataclass
from typing import Any

import httpx

from fileagent.errors import (
    GatewayAuthError,
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

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_MODEL = "gemini-2.0-flash"


@dataclass
class GeminiConfig:
    """
    Configuration specific to the Gemini adapter.

    Attributes:
        base_url: API root
        model: Gemini model identifier
        api_key_env: Environment variable holding the key
        timeout_seconds: Per-request timeout
        max_output_tokens: generationConfig.maxOutputTokens
        temperature: generationConfig.temperature, server default if None
    """

    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    api_key_env: str = "GEMINI_API_KEY"
    timeout_seconds: float = 60.0
    max_output_tokens: int = 4096
    temperature: float | None = None

    @classmethod
    def from_gateway_config(cls, config: GatewayConfig) -> "GeminiConfig":
        """Create GeminiConfig from the generic GatewayConfig."""
        return cls(
            base_url=config.base_url or DEFAULT_BASE_URL,
            model=config.model or DEFAULT_MODEL,
            api_key_env=config.api_key_env,
            timeout_seconds=config.timeout_seconds,
            max_output_tokens=config.max_output_tokens,
            temperature=config.temperature,
        )


class GeminiGateway(ModelGateway):
    """
    Model gateway backed by the Gemini REST API.

    Tools are advertised as functionDeclarations. Response parts with
    `text` become TextParts, parts with `functionCall` become
    ToolCallParts. Tool results go back as `functionResponse` parts in a
    single user turn.
    """

    def __init__(
        self,
        config: GatewayConfig | GeminiConfig | None = None,
        api_key: str | None = None,
    ):
        """
        Initialize the Gemini gateway.

        Args:
            config: Gateway configuration. If None, uses defaults.
            api_key: Explicit key; read from config.api_key_env if None
        """
        super().__init__()
        if config is None:
            self.config = GeminiConfig()
        elif isinstance(config, GeminiConfig):
            self.config = config
        else:
            self.config = GeminiConfig.from_gateway_config(config)

        self._api_key = api_key if api_key is not None else os.environ.get(self.config.api_key_env)
        self._client: httpx.Client | None = None
        # Call ids Gemini assigned itself; only those are echoed back
        self._wire_ids: set[str] = set()

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if not self._api_key:
            raise GatewayAuthError(
                message=f"No API key: {self.config.api_key_env} is not set",
                gateway="gemini",
                model=self.config.model,
                api_key_env=self.config.api_key_env,
            )
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.config.base_url,
                timeout=self.config.timeout_seconds,
                headers={"x-goog-api-key": self._api_key},
            )
        return self._client

    def start_session(
        self,
        tools: list[ToolSpec],
        system_prompt: str | None = None,
    ) -> None:
        super().start_session(tools, system_prompt)
        self._wire_ids.clear()

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    # -------------------------------------------------------------------------
    # Wire format
    # -------------------------------------------------------------------------

    def _user_messages(self, text: str) -> list[dict[str, Any]]:
        return [{"role": "user", "parts": [{"text": text}]}]

    def _tool_result_messages(self, results: list[ToolResult]) -> list[dict[str, Any]]:
        parts = []
        for result in results:
            function_response: dict[str, Any] = {
                "name": result.tool_name,
                "response": result.to_payload(),
            }
            if result.call_id in self._wire_ids:
                function_response["id"] = result.call_id
            parts.append({"functionResponse": function_response})
        return [{"role": "user", "parts": parts}]

    def _build_payload(self, new_messages: list[dict[str, Any]]) -> dict[str, Any]:
        generation_config: dict[str, Any] = {"maxOutputTokens": self.config.max_output_tokens}
        if self.config.temperature is not None:
            generation_config["temperature"] = self.config.temperature

        payload: dict[str, Any] = {
            "contents": self._history + new_messages,
            "generationConfig": generation_config,
        }
        if self._tools:
            payload["tools"] = [
                {"functionDeclarations": [self._declaration(spec) for spec in self._tools]}
            ]
        if self._system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": self._system_prompt}]}
        return payload

    @staticmethod
    def _declaration(spec: ToolSpec) -> dict[str, Any]:
        parameters = spec.to_json_schema()
        if not parameters["required"]:
            del parameters["required"]
        return {
            "name": spec.name,
            "description": spec.description,
            "parameters": parameters,
        }

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------

    def _exchange(
        self,
        new_messages: list[dict[str, Any]],
    ) -> tuple[ModelResponse, dict[str, Any]]:
        """Make a single generateContent call."""
        client = self._get_client()
        payload = self._build_payload(new_messages)

        try:
            response = client.post(
                f"/v1beta/models/{self.config.model}:generateContent",
                json=payload,
            )
        except httpx.ConnectError as e:
            raise GatewayConnectionError(
                gateway="gemini",
                model=self.config.model,
                url=self.config.base_url,
                underlying_error=str(e),
            ) from e
        except httpx.TimeoutException as e:
            raise GatewayTimeoutError(
                gateway="gemini",
                model=self.config.model,
                timeout_seconds=self.config.timeout_seconds,
            ) from e
        except httpx.HTTPError as e:
            raise GatewayConnectionError(
                gateway="gemini",
                model=self.config.model,
                url=self.config.base_url,
                underlying_error=str(e),
            ) from e

        self._check_status(response)

        try:
            data = response.json()
        except json.JSONDecodeError as e:
            raise GatewayResponseError(
                gateway="gemini",
                model=self.config.model,
                status_code=response.status_code,
                raw_response=response.text[:500],
                reason=f"Invalid JSON from Gemini: {e}",
            ) from e

        return self._parse_response(data)

    def _check_status(self, response: httpx.Response) -> None:
        if response.status_code == 200:
            return

        body = response.text[:500]
        if response.status_code in (401, 403) or "API_KEY_INVALID" in body:
            raise GatewayAuthError(
                message=f"Gemini rejected the API key (HTTP {response.status_code})",
                gateway="gemini",
                model=self.config.model,
                api_key_env=self.config.api_key_env,
            )
        if response.status_code == 404:
            raise GatewayModelNotFoundError(gateway="gemini", model=self.config.model)
        raise GatewayResponseError(
            gateway="gemini",
            model=self.config.model,
            status_code=response.status_code,
            raw_response=body,
            reason=f"HTTP {response.status_code}",
        )

    def _malformed(self, data: Any, reason: str) -> GatewayResponseError:
        return GatewayResponseError(
            gateway="gemini",
            model=self.config.model,
            raw_response=str(data)[:500],
            reason=reason,
        )

    def _parse_response(self, data: Any) -> tuple[ModelResponse, dict[str, Any]]:
        """
        Parse a generateContent body into a ModelResponse.

        Raises:
            GatewayResponseError: If the body does not have the expected shape
        """
        if not isinstance(data, dict):
            raise self._malformed(data, "Response is not a JSON object")

        candidates = data.get("candidates")
        if not candidates or not isinstance(candidates, list):
            reason = "No candidates in response"
            feedback = data.get("promptFeedback")
            if isinstance(feedback, dict) and feedback.get("blockReason"):
                reason += f" (blocked: {feedback['blockReason']})"
            raise self._malformed(data, reason)

        candidate = candidates[0]
        if not isinstance(candidate, dict):
            raise self._malformed(data, "Candidate is not an object")

        content = candidate.get("content") or {}
        if not isinstance(content, dict):
            raise self._malformed(data, "Candidate content is not an object")
        raw_parts = content.get("parts") or []
        if not isinstance(raw_parts, list):
            raise self._malformed(data, "Content parts is not a list")

        parts: list[TextPart | ToolCallPart] = []
        for raw in raw_parts:
            if not isinstance(raw, dict):
                raise self._malformed(data, "Content part is not an object")
            if raw.get("thought"):
                continue
            if "text" in raw:
                if not isinstance(raw["text"], str):
                    raise self._malformed(data, "Text part is not a string")
                parts.append(TextPart(text=raw["text"]))
            elif "functionCall" in raw:
                parts.append(ToolCallPart(call=self._parse_call(data, raw["functionCall"])))

        reply = {"role": "model", "parts": raw_parts}
        return ModelResponse(parts=parts), reply

    def _parse_call(self, data: Any, function_call: Any) -> ToolCallRequest:
        if not isinstance(function_call, dict):
            raise self._malformed(data, "functionCall is not an object")
        name = function_call.get("name", "")
        if not isinstance(name, str):
            raise self._malformed(data, "functionCall name is not a string")

        call_id = function_call.get("id")
        if call_id and isinstance(call_id, str):
            self._wire_ids.add(call_id)
        else:
            call_id = new_call_id()

        args = function_call.get("args")
        if args is None:
            args = {}
        if not isinstance(args, dict):
            return ToolCallRequest(
                call_id=call_id,
                name=name,
                parse_error=f"arguments must be an object, got {type(args).__name__}",
            )
        return ToolCallRequest(call_id=call_id, name=name, arguments=args)

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    def get_name(self) -> str:
        """Return gateway name."""
        return f"GeminiGateway({self.config.model})"

    def get_config(self) -> dict[str, Any]:
        """Return gateway configuration (never the key)."""
        return {
            "backend": "gemini",
            "base_url": self.config.base_url,
            "model": self.config.model,
            "api_key_env": self.config.api_key_env,
            "timeout_seconds": self.config.timeout_seconds,
            "max_output_tokens": self.config.max_output_tokens,
            "temperature": self.config.temperature,
        }

    def check_connection(self) -> tuple[bool, str]:
        """Check that the key is set and the model is visible."""
        if not self._api_key:
            return False, f"{self.config.api_key_env} is not set"
        try:
            client = self._get_client()
            response = client.get(f"/v1beta/models/{self.config.model}")
        except httpx.ConnectError:
            return False, f"Cannot connect to Gemini at {self.config.base_url}"
        except httpx.HTTPError as e:
            return False, f"Error checking Gemini: {e}"

        if response.status_code == 200:
            return True, f"Connected to Gemini, model '{self.config.model}' available"
        if response.status_code == 404:
            return False, f"Model '{self.config.model}' not found"
        if response.status_code in (400, 401, 403):
            return False, f"Gemini rejected the API key (HTTP {response.status_code})"
        return False, f"Gemini returned HTTP {response.status_code}"

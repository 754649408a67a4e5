"""
Gateway module for fileagent.

A gateway carries the conversation to a hosted model and brings back
text and tool calls. It owns the conversation history.

Components:
    - ModelGateway: Abstract base class for all gateways
    - GeminiGateway: Google Gemini REST API
    - OllamaGateway: Local Ollama server
    - create_gateway: Build the gateway named by a GatewayConfig

Usage:
    from fileagent.gateway import create_gateway
    from fileagent.schema import GatewayConfig

    gateway = create_gateway(GatewayConfig(backend="ollama"))
"""

from fileagent.gateway.base import ModelGateway
from fileagent.gateway.gemini import GeminiConfig, GeminiGateway
from fileagent.gateway.ollama import OllamaConfig, OllamaGateway
from fileagent.schema import GatewayBackend, GatewayConfig


def create_gateway(config: GatewayConfig) -> ModelGateway:
    """Create the gateway for the configured backend."""
    if config.backend == GatewayBackend.OLLAMA:
        return OllamaGateway(config)
    return GeminiGateway(config)


__all__ = [
    "GeminiConfig",
    "GeminiGateway",
    "ModelGateway",
    "OllamaConfig",
    "OllamaGateway",
    "create_gateway",
]

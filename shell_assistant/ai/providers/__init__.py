"""
Provider clients. The set is closed: a configured provider id selects one of
the clients below once, when the client is constructed.
"""

from typing import Optional

import httpx

from ..llm import LLMClient, Provider, ProviderConfig
from .anthropic_client import AnthropicClient
from .openai_client import OpenAIClient

CLIENTS = {
    Provider.OPENAI: OpenAIClient,
    Provider.ANTHROPIC: AnthropicClient,
}


def create_client(config: ProviderConfig, transport: Optional[httpx.BaseTransport] = None) -> LLMClient:
    provider = Provider.parse(config.provider_id)
    return CLIENTS[provider](config, transport=transport)


__all__ = ["AnthropicClient", "OpenAIClient", "create_client"]

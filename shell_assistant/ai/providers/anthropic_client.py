from typing import Dict, Optional

from ..llm import Provider, Request
from .base import HTTPProviderClient

MAX_TOKENS = 4096
THINKING_BUDGET_TOKENS = 2048


class AnthropicClient(HTTPProviderClient):
    """Talks to the Anthropic Messages API."""

    provider = Provider.ANTHROPIC
    api_url = "https://api.anthropic.com/v1/messages"
    api_version = "2023-06-01"

    def headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.config.api_key,
            "anthropic-version": self.api_version,
            "Content-Type": "application/json",
        }

    def build_payload(self, request: Request) -> Dict:
        payload = {
            "model": self.config.model_id,
            "system": request.system_prompt,
            "messages": [message.to_dict() for message in request.messages],
            "max_tokens": MAX_TOKENS,
        }
        if request.use_web_search:
            payload["tools"] = [
                {"type": "web_search_20250305", "name": "web_search", "max_uses": 5}
            ]
        if request.use_thinking:
            payload["thinking"] = {"type": "enabled", "budget_tokens": THINKING_BUDGET_TOKENS}
        return payload

    def extract_text(self, body: Dict) -> Optional[str]:
        # Thinking and tool-use blocks can precede the text block.
        content = body.get("content")
        if not isinstance(content, list):
            return None
        for block in content:
            if isinstance(block, dict) and block.get("type") == "text" and isinstance(block.get("text"), str):
                return block["text"]
        return None

from typing import Dict, Optional

from ..llm import Provider, Request
from .base import HTTPProviderClient


class OpenAIClient(HTTPProviderClient):
    """Talks to the OpenAI Responses API."""

    provider = Provider.OPENAI
    api_url = "https://api.openai.com/v1/responses"

    def headers(self) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }
        if self.config.organization:
            headers["OpenAI-Organization"] = self.config.organization
        if self.config.project:
            headers["OpenAI-Project"] = self.config.project
        return headers

    def build_payload(self, request: Request) -> Dict:
        payload = {
            "model": self.config.model_id,
            "instructions": request.system_prompt,
            "input": [message.to_dict() for message in request.messages],
        }
        if request.use_web_search:
            payload["tools"] = [{"type": "web_search"}]
        if request.use_thinking:
            payload["reasoning"] = {"effort": "medium"}
        return payload

    def extract_text(self, body: Dict) -> Optional[str]:
        # The output list may start with reasoning or web search items;
        # the answer lives in the first message item.
        output = body.get("output")
        if not isinstance(output, list):
            return None
        for item in output:
            if not isinstance(item, dict) or item.get("type") != "message":
                continue
            content = item.get("content")
            if not isinstance(content, list):
                continue
            for block in content:
                if isinstance(block, dict) and isinstance(block.get("text"), str):
                    return block["text"]
        return None

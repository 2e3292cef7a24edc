import json
from typing import Dict, Optional

import httpx
from loguru import logger

from ...errors import CallError, ConfigError, ConnectError, ParseError, ProviderError, RequestTimeoutError
from ..llm import LLMClient, ProviderConfig, Request


class HTTPProviderClient(LLMClient):
    """
    Shared HTTP plumbing for the provider clients.

    Subclasses describe their endpoint, headers, request body and how to find
    the answer text in a successful response; this class owns the transport,
    the error mapping and the JSON decoding.
    """

    api_url: str = ""

    def __init__(self, config: ProviderConfig, transport: Optional[httpx.BaseTransport] = None):
        if not config.api_key:
            raise ConfigError(
                f"{self.provider.display_name} API key is not set. "
                f"Run 'assist secret {self.provider.value}' to configure it."
            )
        self.config = config
        self.http_client = httpx.Client(
            timeout=httpx.Timeout(config.timeout_seconds),
            transport=transport,
        )

    def headers(self) -> Dict[str, str]:
        raise NotImplementedError

    def build_payload(self, request: Request) -> Dict:
        raise NotImplementedError

    def extract_text(self, body: Dict) -> str:
        raise NotImplementedError

    def close(self):
        self.http_client.close()

    def generate(self, request: Request) -> str:
        name = self.provider.display_name
        payload = self.build_payload(request)

        try:
            response = self.http_client.post(self.api_url, headers=self.headers(), json=payload)
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(f"Request to {name} API timed out") from e
        except httpx.ConnectError as e:
            raise ConnectError(f"Failed to connect to {name} API") from e
        except httpx.HTTPError as e:
            raise CallError(f"Failed to send request to {name} API: {e}") from e

        logger.debug("{} responded with status {}", name, response.status_code)

        if not response.is_success:
            raise ProviderError(name, response.status_code, _error_message(response.text))

        try:
            body = response.json()
        except ValueError as e:
            raise ParseError(f"Failed to parse {name} response", response.text) from e

        text = self.extract_text(body) if isinstance(body, dict) else None
        if text is None:
            raise ParseError(f"No content in {name} response", response.text)
        return text


def _error_message(raw_body: str) -> str:
    """Reads the `{"error": {"message": ...}}` envelope both providers use, or falls back to the raw body."""
    try:
        envelope = json.loads(raw_body)
    except ValueError:
        return raw_body or "Unknown error"

    error = envelope.get("error") if isinstance(envelope, dict) else None
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    return raw_body

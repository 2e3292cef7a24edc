from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from loguru import logger

from ..errors import AssistantError, ConfigError


class Role(Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    role: Role
    content: str

    @staticmethod
    def user(content: str) -> "Message":
        return Message(Role.USER, content)

    def to_dict(self) -> Dict:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class Request:
    """A provider-agnostic request: a mode-specific system prompt followed by the conversation."""

    system_prompt: str
    messages: Tuple[Message, ...]
    use_web_search: bool = False
    use_thinking: bool = False

    def __post_init__(self):
        if not self.messages:
            raise ValueError("A request needs at least one message.")
        # Accept any sequence but store an immutable copy.
        object.__setattr__(self, "messages", tuple(self.messages))


class Provider(Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"

    @property
    def display_name(self) -> str:
        return {"openai": "OpenAI", "anthropic": "Anthropic"}[self.value]

    @classmethod
    def ids(cls) -> List[str]:
        return [p.value for p in cls]

    @classmethod
    def parse(cls, provider_id: str) -> "Provider":
        try:
            return cls((provider_id or "").strip().lower())
        except ValueError:
            raise ConfigError(
                f"Unknown provider: {provider_id}. Available: {', '.join(cls.ids())}"
            ) from None


@dataclass(frozen=True)
class ProviderConfig:
    provider_id: str
    model_id: str
    api_key: str = field(repr=False)
    organization: Optional[str] = None
    project: Optional[str] = None
    timeout_seconds: float = 30


class LLMClient:
    """
    The uniform contract every provider client satisfies.

    Implementations translate a `Request` into their wire format and return
    the first textual block of the reply. They never retry on their own.
    """

    provider: Provider

    def generate(self, request: Request) -> str:
        raise NotImplementedError

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


def build_provider_config(llm_config, secret_loader: Callable) -> ProviderConfig:
    """
    Joins the LLM settings with the provider's stored credentials.

    Args:
        llm_config: The `llm` section of the configuration.
        secret_loader: A callable returning a `ProviderSecret` for a provider id.
    """
    provider = Provider.parse(llm_config.provider)
    secret = secret_loader(provider.value)
    if not secret.api_key:
        raise ConfigError(
            f"{provider.display_name} API key is not set. Run 'assist secret {provider.value}' to configure it."
        )

    return ProviderConfig(
        provider_id=provider.value,
        model_id=llm_config.model,
        api_key=secret.api_key,
        organization=secret.organization,
        project=secret.project,
        timeout_seconds=llm_config.timeout,
    )


VERIFY_REQUEST = Request(
    system_prompt="This is a test, please respond shortly.",
    messages=(Message.user("Hello"),),
)


def verify_client(client: LLMClient) -> bool:
    """Sends a tiny check request and reports whether the provider answered."""
    try:
        client.generate(VERIFY_REQUEST)
    except AssistantError as e:
        logger.warning("Provider verification failed: {}", e)
        return False
    return True

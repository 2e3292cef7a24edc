from dataclasses import dataclass
from typing import Callable, Optional

from loguru import logger

from ..config import Config
from ..credentials import load_secret
from ..system_info import SystemInfo, get_system_info
from .llm import LLMClient, build_provider_config
from .modes import ModeDispatcher, UnknownModePolicy
from .providers import create_client


@dataclass
class Session:
    """Everything one invocation needs, built once from configuration and secrets."""

    config: Config
    system_info: SystemInfo
    client: LLMClient
    dispatcher: ModeDispatcher

    def close(self):
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


def open_session(
    config: Config,
    secret_loader: Callable = load_secret,
    system_info: Optional[SystemInfo] = None,
) -> Session:
    system_info = system_info or get_system_info()
    logger.debug("System info:\n{}", system_info.display())

    provider_config = build_provider_config(config.llm, secret_loader)
    client = create_client(provider_config)
    logger.info("Using {} model {}", provider_config.provider_id, provider_config.model_id)

    dispatcher = ModeDispatcher(
        client,
        system_info,
        max_retries=config.llm.max_retries,
        use_web_search=config.llm.use_web_search,
        use_thinking=config.llm.use_thinking,
        on_unknown_mode=UnknownModePolicy.parse(config.llm.on_unknown_mode),
    )
    return Session(config, system_info, client, dispatcher)

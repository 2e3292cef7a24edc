from dataclasses import dataclass
from enum import Enum
from typing import Optional

from loguru import logger

from ..errors import ConfigError, UnknownModeError
from ..system_info import SystemInfo
from .llm import LLMClient, Message, Request
from .parser import ModeSelection, SuggestResult, parse_ask, parse_mode_selection, parse_suggest
from .prompts import PromptBuilder
from .retry import DEFAULT_MAX_RETRIES, LoggingRetryObserver, RetryObserver, retry_with_parse


class Mode(Enum):
    ASK = "ask"
    SUGGEST = "suggest"
    AUTO = "auto"


class UnknownModePolicy(Enum):
    """What Auto does when the classifier names a mode other than ask or suggest."""

    FALLBACK_ASK = "fallback"
    FAIL = "fail"

    @classmethod
    def parse(cls, value: str) -> "UnknownModePolicy":
        try:
            return cls(value)
        except ValueError:
            raise ConfigError(
                f"Invalid unknown-mode policy: {value}. Available: {', '.join(p.value for p in cls)}"
            ) from None


@dataclass(frozen=True)
class Outcome:
    mode: Mode
    answer: Optional[str] = None
    suggestions: Optional[SuggestResult] = None
    selection: Optional[ModeSelection] = None


class ModeDispatcher:
    """
    Routes user input through Ask, Suggest or Auto and returns plain data.

    Ask calls the provider once: free text cannot be malformed, so there is
    nothing to retry. Suggest and mode selection go through the retry-parse
    loop. Auto always resolves to Ask or Suggest before producing output.
    """

    def __init__(
        self,
        client: LLMClient,
        system_info: SystemInfo,
        max_retries: int = DEFAULT_MAX_RETRIES,
        use_web_search: bool = False,
        use_thinking: bool = False,
        on_unknown_mode: UnknownModePolicy = UnknownModePolicy.FAIL,
        observer: Optional[RetryObserver] = None,
    ):
        self.client = client
        self.prompts = PromptBuilder(system_info)
        self.max_retries = max_retries
        self.use_web_search = use_web_search
        self.use_thinking = use_thinking
        self.on_unknown_mode = on_unknown_mode
        self.observer = observer

    def _request(self, system_prompt: str, text: str, use_web_search: bool) -> Request:
        return Request(
            system_prompt=system_prompt,
            messages=(Message.user(text),),
            use_web_search=use_web_search,
            use_thinking=self.use_thinking,
        )

    def _observer(self, operation: str) -> RetryObserver:
        return self.observer or LoggingRetryObserver(operation)

    def ask(self, text: str) -> str:
        request = self._request(self.prompts.build_ask(), text, self.use_web_search)
        return parse_ask(self.client.generate(request))

    def suggest(self, text: str) -> SuggestResult:
        system_prompt = self.prompts.build_suggest()
        return retry_with_parse(
            lambda: self.client.generate(self._request(system_prompt, text, self.use_web_search)),
            parse_suggest,
            self.max_retries,
            self._observer("Suggest"),
        )

    def select_mode(self, text: str) -> ModeSelection:
        system_prompt = self.prompts.build_mode_select()
        return retry_with_parse(
            lambda: self.client.generate(self._request(system_prompt, text, False)),
            parse_mode_selection,
            self.max_retries,
            self._observer("Mode selection"),
        )

    def auto(self, text: str) -> Outcome:
        selection = self.select_mode(text)
        logger.info("Selected mode '{}': {}", selection.mode, selection.reason)

        if selection.mode == Mode.ASK.value:
            return Outcome(Mode.ASK, answer=self.ask(text), selection=selection)
        if selection.mode == Mode.SUGGEST.value:
            return Outcome(Mode.SUGGEST, suggestions=self.suggest(text), selection=selection)

        if self.on_unknown_mode == UnknownModePolicy.FALLBACK_ASK:
            logger.warning("Unknown mode '{}', falling back to ask", selection.mode)
            return Outcome(Mode.ASK, answer=self.ask(text), selection=selection)
        raise UnknownModeError(selection.mode)

    def run(self, mode: Mode, text: str) -> Outcome:
        if mode == Mode.ASK:
            return Outcome(Mode.ASK, answer=self.ask(text))
        if mode == Mode.SUGGEST:
            return Outcome(Mode.SUGGEST, suggestions=self.suggest(text))
        return self.auto(text)

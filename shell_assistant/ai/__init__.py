"""
The `ai` package turns natural-language input into answers or shell command
suggestions: provider clients, prompts, response parsing, the retry loop and
the mode dispatcher, plus the assistants that present their results.
"""

from .assistants.ask import ask
from .assistants.auto import auto
from .assistants.suggest import suggest
from .llm import Message, Request, verify_client
from .modes import Mode, ModeDispatcher, Outcome, UnknownModePolicy
from .session import Session, open_session


__all__ = [
    "Message",
    "Mode",
    "ModeDispatcher",
    "Outcome",
    "Request",
    "Session",
    "UnknownModePolicy",
    "ask",
    "auto",
    "open_session",
    "suggest",
    "verify_client",
]

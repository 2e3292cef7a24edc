from typing import Optional

from rich.console import Console

from ...config import Config
from ..modes import Mode
from ..session import open_session
from .ask import show_answer
from .suggest import present_suggestions


def auto(config: Config, text: str, timeout: Optional[float] = None):
    """Lets the model decide whether the input is a question or a task, then handles it."""
    console = Console()
    with open_session(config) as session:
        with console.status("Analyzing input..."):
            outcome = session.dispatcher.auto(text)

        console.print(f"📌 Selected mode: [bold]{outcome.mode.value}[/]")
        if outcome.mode == Mode.ASK:
            show_answer(outcome.answer, console)
        else:
            present_suggestions(outcome.suggestions, session.system_info, timeout, console)

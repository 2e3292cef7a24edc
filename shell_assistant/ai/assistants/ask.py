from typing import Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.rule import Rule

from ...config import Config
from ..session import open_session


def show_answer(answer: str, console: Optional[Console] = None):
    console = console or Console()
    console.print(Rule(style="dim"))
    console.print(Markdown(answer or "The AI returned an empty answer."))
    console.print(Rule(style="dim"))


def ask(config: Config, question: str):
    """Answers a question about the terminal, rendered as Markdown."""
    console = Console()
    with open_session(config) as session:
        with console.status("AI is generating an answer..."):
            answer = session.dispatcher.ask(question)

    show_answer(answer, console)

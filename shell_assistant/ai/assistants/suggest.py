import sys

from typing import Optional

import pyperclip

from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ...config import Config
from ...errors import CommandExecutionError, CommandTimeoutError, UserCancelled
from ...executor import execute
from ...system_info import SystemInfo
from ..parser import CommandSuggestion, SuggestResult
from ..session import open_session

ACTION_COPY = "copy"
ACTION_EXECUTE = "execute"


def _read(message: str) -> str:
    try:
        return input(message)
    except (KeyboardInterrupt, EOFError):
        raise UserCancelled() from None


def _get_user_confirmation(message: str) -> bool:
    return _read(f"{message} [y/N] ").strip().lower() == "y"


def _print_suggestions(suggestions: SuggestResult, console: Console):
    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Command", style="cyan")
    table.add_column("Description")
    for index, suggestion in enumerate(suggestions, start=1):
        table.add_row(str(index), suggestion.command, suggestion.description)
    console.print(table)


def prompt_for_selection(suggestions: SuggestResult) -> CommandSuggestion:
    """Asks the user to pick a suggestion by number. Empty input or `q` cancels."""
    while True:
        choice = _read(f"Select a command [1-{len(suggestions)}] or q to cancel: ").strip().lower()
        if choice in ("", "q"):
            raise UserCancelled()
        if choice.isdigit() and 1 <= int(choice) <= len(suggestions):
            return suggestions[int(choice) - 1]
        print(f"Please enter a number between 1 and {len(suggestions)}.")


def run_command(command: str, system_info: SystemInfo, timeout: Optional[float], console: Console):
    console.print(f"[green]✓ Running command:[/] {command}")
    try:
        output = execute(command, system_info, timeout)
    except CommandTimeoutError as e:
        if e.partial_stdout:
            console.print(e.partial_output, markup=False, highlight=False)
        raise

    if output.stdout:
        console.print(output.stdout_text(), markup=False, highlight=False, end="")
    if output.stderr:
        print(output.stderr_text(), file=sys.stderr, end="")

    if output.success:
        console.print("\n[green]✓ Command executed successfully.[/]")
    else:
        raise CommandExecutionError(f"Command exited with code {output.exit_code}")


def prompt_for_action() -> str:
    """Asks what to do with the chosen command. Enter copies it."""
    while True:
        choice = _read("[c] Copy to clipboard  [e] Execute now  [q] Cancel (default c): ").strip().lower()
        if choice in ("", "c"):
            return ACTION_COPY
        if choice == "e":
            return ACTION_EXECUTE
        if choice == "q":
            raise UserCancelled()
        print("Please enter c, e or q.")


def copy_command(command: str, console: Console):
    try:
        pyperclip.copy(command)
    except pyperclip.PyperclipException as e:
        logger.warning("Clipboard copy failed: {}", e)
        console.print(f"[yellow]⚠️  Failed to copy to clipboard: {escape(str(e))}[/]")
        console.print("Command:")
        console.print(command, markup=False, highlight=False)
        return

    console.print("[green]✓ Command copied to clipboard![/]")
    console.print(command, markup=False, highlight=False)


def present_suggestions(
    suggestions: SuggestResult,
    system_info: SystemInfo,
    timeout: Optional[float] = None,
    console: Optional[Console] = None,
) -> Optional[str]:
    """
    Lets the user pick one of the suggestions and then copy it to the
    clipboard or run it after a confirmation.

    Returns:
        The chosen command, or None when there was nothing to choose from.
    """
    console = console or Console()
    if not suggestions:
        console.print("[yellow]No commands to suggest.[/]")
        return None

    _print_suggestions(suggestions, console)
    selected = prompt_for_selection(suggestions)

    if prompt_for_action() == ACTION_COPY:
        copy_command(selected.command, console)
    elif _get_user_confirmation(f"Run '{selected.command}' now?"):
        run_command(selected.command, system_info, timeout, console)
    else:
        raise UserCancelled()

    return selected.command


def suggest(config: Config, request: str, timeout: Optional[float] = None):
    """Suggests shell commands for a task and optionally runs the chosen one."""
    console = Console()
    with open_session(config) as session:
        with console.status("AI is generating commands..."):
            suggestions = session.dispatcher.suggest(request)

        present_suggestions(suggestions, session.system_info, timeout, console)

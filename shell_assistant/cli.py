#!/usr/bin/env python3

import argparse
import argcomplete
import getpass
import sys

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from functools import wraps
from typing import Callable, List, Optional

from loguru import logger
from rich.console import Console
from rich.table import Table

from . import config as app_config
from .ai import ask, auto, suggest, verify_client
from .ai.llm import Provider, ProviderConfig
from .ai.providers import create_client
from .credentials import ProviderSecret, save_secret, secret_fields
from .errors import AssistantError, ConfigError, UserCancelled
from .logging_setup import configure_logging


_available_commands: List["Command"] = []
_config: Optional[app_config.Config] = None

DEFAULT_COMMAND = "auto"


@dataclass
class Argument(ABC):
    def __init__(self, help: str, kwargs: Optional[dict] = None):
        self.help = help
        self.kwargs = kwargs if kwargs is not None else {}

    @abstractmethod
    def add_to_parser(self, parser: argparse.ArgumentParser):
        pass


class OptionalArg(Argument):
    def __init__(
        self,
        short_option: str,
        long_option: str,
        help: str,
        kwargs: Optional[dict] = None,
    ):
        super().__init__(help=help, kwargs=kwargs)
        self.short_option = short_option
        self.long_option = long_option

    def add_to_parser(self, parser: argparse.ArgumentParser):
        parser.add_argument(
            self.short_option, self.long_option, help=self.help, **self.kwargs
        )


class PositionalArg(Argument):
    def __init__(self, name: str, help: str, kwargs: Optional[dict] = None):
        super().__init__(help=help, kwargs=kwargs)
        self.name = name

    def add_to_parser(self, parser: argparse.ArgumentParser):
        parser.add_argument(self.name, help=self.help, **self.kwargs)


@dataclass
class Command:
    name: str
    func: Callable
    help: str
    description: str
    args: list[Argument]


def _load_app_config():
    """Reads the configuration once per process and sets up logging from it."""
    global _config
    if _config is not None:
        return

    try:
        _config = app_config.load_config()
    except ConfigError as e:
        print(
            f"⚠️  Failed to load configuration: {e.user_message()}. Falling back to default configuration.",
            file=sys.stderr,
        )
        _config = app_config.load_default_config()

    try:
        configure_logging(_config.logging, app_config.log_dir())
    except OSError as e:
        print(f"⚠️  Failed to initialize logging: {e}. Continuing without logging.", file=sys.stderr)


def command(args: List[Argument]):
    def decorator(func):
        if not func.__name__.startswith("handle_"):
            raise ValueError("Command handler must start with 'handle_'.")

        if not func.__doc__:
            raise ValueError(
                f"Command handler '{func.__name__}' must have a docstring for its help text."
            )

        @wraps(func)
        def wrapper(*args, **kwargs):
            _load_app_config()
            return func(*args, **kwargs)

        command_name = func.__name__.split("_")[1]
        # Use the first line of the docstring as the help text and
        # the full docstring for the detailed description.
        help_text = func.__doc__.strip().split("\n")[0]
        _available_commands.append(
            Command(command_name, wrapper, help_text, func.__doc__, args)
        )
        return wrapper

    return decorator


TIMEOUT_ARG = OptionalArg(
    short_option="-t",
    long_option="--timeout",
    help="Kill the executed command after this many seconds.",
    kwargs={"type": float, "default": None},
)


##############################################################################


@command(
    [
        PositionalArg(
            name="question",
            help="The question you want answered.",
        )
    ]
)
def handle_ask(args):
    """Ask a question and get an explanatory answer."""
    ask(_config, args.question)


@command(
    [
        PositionalArg(
            name="request",
            help="The natural language description of the task to perform.",
        ),
        TIMEOUT_ARG,
    ]
)
def handle_suggest(args):
    """Suggest shell commands for a task and optionally run one of them."""
    suggest(_config, args.request, args.timeout)


@command(
    [
        PositionalArg(
            name="input",
            help="A question or a task; the AI decides how to handle it.",
        ),
        TIMEOUT_ARG,
    ]
)
def handle_auto(args):
    """Let the AI decide whether to answer or to suggest commands.
    This is also what runs when the first argument is not a command name, e.g. `assist "free disk space"`.
    """
    auto(_config, args.input, args.timeout)


@command(
    [
        PositionalArg(
            name="action",
            help="What to do with the configuration.",
            kwargs={"nargs": "?", "default": "show", "choices": ["show", "get", "set", "unset", "reset", "path"]},
        ),
        PositionalArg(
            name="key",
            help="A dotted configuration key, e.g. llm.timeout.",
            kwargs={"nargs": "?"},
        ),
        PositionalArg(
            name="value",
            help="The new value (for `set`).",
            kwargs={"nargs": "?"},
        ),
    ]
)
def handle_config(args):
    """Show or change the configuration."""
    global _config

    if args.action == "show":
        print(app_config.render(_config))
        return
    if args.action == "path":
        print(app_config.config_path())
        return
    if args.action == "reset":
        _config = app_config.load_default_config()
        app_config.save_config(_config)
        print("Configuration reset to defaults.")
        return

    if not args.key:
        raise ConfigError(f"'config {args.action}' needs a key. Available: {', '.join(app_config.config_keys())}")

    if args.action == "get":
        print(app_config.get_value(_config, args.key))
        return

    if args.action == "set":
        if args.value is None:
            raise ConfigError(f"'config set {args.key}' needs a value.")
        _config = app_config.set_value(_config, args.key, args.value)
    else:
        _config = app_config.unset_value(_config, args.key)

    app_config.save_config(_config)
    print(f"{args.key} = {app_config.get_value(_config, args.key)}")


@command(
    [
        PositionalArg(
            name="provider",
            help="The provider whose credentials to store.",
            kwargs={"choices": Provider.ids()},
        )
    ]
)
def handle_secret(args):
    """Store the API credentials of a provider in the system keyring."""
    values = {}
    try:
        for field in secret_fields(args.provider):
            prompt = f"{field.label}: "
            value = getpass.getpass(prompt) if field.is_password else input(prompt)
            if field.required and not value.strip():
                raise ConfigError(f"{field.name} is required.")
            values[field.name] = value.strip() or None
    except (KeyboardInterrupt, EOFError):
        raise UserCancelled() from None

    secret = ProviderSecret(**values)
    save_secret(args.provider, secret)
    print(f"✓ Saved credentials for {args.provider} ({secret.masked()}).")

    llm = _config.llm
    model = llm.model if llm.provider == args.provider else app_config.MODEL_PRESETS[args.provider][0].id
    provider_config = ProviderConfig(
        provider_id=args.provider,
        model_id=model,
        api_key=secret.api_key,
        organization=secret.organization,
        project=secret.project,
        timeout_seconds=llm.timeout,
    )
    with Console().status("Verifying credentials..."):
        with create_client(provider_config) as client:
            verified = verify_client(client)

    if verified:
        print("✓ The provider accepted the credentials.")
    else:
        print("⚠️  The provider could not be reached with these credentials. Check the log for details.")


@command(
    [
        PositionalArg(
            name="provider",
            help="The provider to use from now on.",
            kwargs={"choices": Provider.ids()},
        ),
        PositionalArg(
            name="model",
            help="The model id. Omit it to pick from the known models.",
            kwargs={"nargs": "?"},
        ),
    ]
)
def handle_switch(args):
    """Switch the provider and model used for requests."""
    global _config

    model = args.model
    if not model:
        presets = app_config.MODEL_PRESETS[args.provider]
        table = Table(show_header=True, header_style="bold")
        table.add_column("#", justify="right")
        table.add_column("Model", style="cyan")
        table.add_column("Description")
        for index, preset in enumerate(presets, start=1):
            table.add_row(str(index), preset.id, preset.description)
        Console().print(table)

        try:
            choice = input(f"Select a model [1-{len(presets)}] or type a model id: ").strip()
        except (KeyboardInterrupt, EOFError):
            raise UserCancelled() from None
        if not choice:
            raise UserCancelled()
        model = presets[int(choice) - 1].id if choice.isdigit() and 1 <= int(choice) <= len(presets) else choice

    llm = replace(_config.llm, provider=args.provider, model=model)
    _config = replace(_config, llm=llm)
    app_config.save_config(_config)
    print(f"✓ Switched to {args.provider} / {model}.")


##############################################################################


def _with_default_command(argv: List[str]) -> List[str]:
    """Routes `assist "some text"` to the auto command."""
    names = {command.name for command in _available_commands}
    if argv and argv[0] not in names and not argv[0].startswith("-"):
        return [DEFAULT_COMMAND] + argv
    return argv


def run_cli(argv: Optional[List[str]] = None):
    """
    Parses command-line arguments and executes the corresponding command.

    Args:
        argv: A list of strings representing the command-line arguments.
              If None, `sys.argv[1:]` is used.
    """
    parser = argparse.ArgumentParser(
        prog="assist",
        description="An AI-powered terminal assistant: ask questions or turn tasks into shell commands.",
    )
    subparsers = parser.add_subparsers(
        dest="command", help="Sub-commands", required=True
    )

    # Sort commands alphabetically for consistent --help output.
    _available_commands.sort(key=lambda cmd: cmd.name)

    for command in _available_commands:
        subparser = subparsers.add_parser(
            command.name, help=command.help, description=command.description
        )
        for arg in command.args:
            arg.add_to_parser(subparser)
        subparser.set_defaults(func=command.func)

    # Enable argument auto-completion.
    argcomplete.autocomplete(parser)

    argv = sys.argv[1:] if argv is None else argv
    args = parser.parse_args(_with_default_command(argv))
    try:
        args.func(args)
    except UserCancelled:
        print("Cancelled.")
    except AssistantError as e:
        logger.error("assist terminated with an error: {}", e)
        print(f"Error: {e.user_message()}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected error")
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def main():
    """The main entry point for the command-line interface, called by the `assist` script."""
    run_cli()


if __name__ == "__main__":
    main()

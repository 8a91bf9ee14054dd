#!/usr/bin/env python3

import argparse
import argcomplete
import logging
import sys

from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import wraps
from typing import Callable, List, Optional

from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .ai import automate, explain, fix, generate_script, interactive_shell, system_info
from .config import load_config, save_config


_available_commands: List["Command"] = []


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
    args: List[Argument]


def command(args: List[Argument]):
    def decorator(func):
        if not func.__name__.startswith("handle_"):
            raise ValueError("Command handler must start with 'handle_'.")

        if not func.__doc__:
            raise ValueError(
                f"Command handler '{func.__name__}' must have a docstring for its help text."
            )

        @wraps(func)
        def wrapper(args):
            # Each invocation works on its own snapshot of the settings.
            return func(args, load_config())

        # handle_generate_script -> generate-script
        command_name = "-".join(func.__name__.split("_")[1:])
        # Use the first line of the docstring as the help text and
        # the full docstring for the detailed description.
        help_text = func.__doc__.strip().split("\n")[0]
        _available_commands.append(
            Command(command_name, wrapper, help_text, func.__doc__, args)
        )
        return wrapper

    return decorator


def _require_text(value: str, what: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"Please provide {what}.")
    return value


##############################################################################


@command(
    [
        PositionalArg(
            name="cmd",
            help="The shell command you wish to understand more of.",
        )
    ]
)
def handle_explain(args, config):
    """Get a beginner-friendly explanation of any given shell command."""
    explain(config, _require_text(args.cmd, "a command to explain"))


@command(
    [
        PositionalArg(
            name="description",
            help="What the script should do, in natural language.",
        )
    ]
)
def handle_generate_script(args, config):
    """Generate a bash script from a natural language description."""
    generate_script(config, _require_text(args.description, "a script description"))


@command(
    [
        PositionalArg(
            name="description",
            help="The task to automate, in natural language.",
        )
    ]
)
def handle_automate(args, config):
    """Generate shell commands for a task and optionally run them.
    Commands can run in a single shell session, which keeps directory changes
    between commands, or one by one, asking whether to go on after a failure.
    """
    automate(config, _require_text(args.description, "a task description for automation"))


@command(
    [
        PositionalArg(
            name="error",
            help="The error message you got in your terminal.",
        )
    ]
)
def handle_fix(args, config):
    """Suggest the probable cause and fixes for a terminal error."""
    fix(config, _require_text(args.error, "an error message"))


@command([])
def handle_system_info(args, config):
    """Display information about this system."""
    system_info()


@command(
    [
        PositionalArg(
            name="model",
            help="The model name, as understood by the configured provider.",
        )
    ]
)
def handle_set_model(args, config):
    """Set the default model."""
    updated = config.with_model(args.model)
    save_config(updated)
    Console().print(f"[blue]Default model is set to:[/] {updated.model}")


@command([])
def handle_shell(args, config):
    """Start the interactive shell (the default when no command is given).
    Type a question to chat, a command to run it, or one of the built-ins:
    `list files [path]`, `cd <path>`, `automate <task>`, `system-info`, `exit`.
    """
    return interactive_shell(config)


##############################################################################


def _show_model():
    config = load_config()
    Console().print(f"Current model: [green]{config.model}[/] (provider: {config.provider})")


def _remove_api_key():
    config = load_config()
    console = Console()
    if not config.api_key:
        console.print("[bright_yellow]No stored API key found in config.[/]")
        return

    save_config(config.without_api_key())
    console.print("[bright_red]API key removed from config.[/]")


def _configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=verbose)],
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shellmancer",
        description="A terminal chatbot for the minimalistic experience, with a shell at hand.",
    )
    parser.add_argument(
        "--version", action="version", version=f"shellmancer {__version__}"
    )
    parser.add_argument(
        "--model",
        dest="show_model",
        action="store_true",
        help="Show the current model.",
    )
    parser.add_argument(
        "--remove-api", action="store_true", help="Remove the stored API key."
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Print debug logs."
    )
    subparsers = parser.add_subparsers(dest="command", help="Sub-commands")

    # Sort commands alphabetically for consistent --help output.
    _available_commands.sort(key=lambda cmd: cmd.name)

    for command in _available_commands:
        subparser = subparsers.add_parser(
            command.name, help=command.help, description=command.description
        )
        for arg in command.args:
            arg.add_to_parser(subparser)
        subparser.set_defaults(func=command.func)

    return parser


def run_cli(argv: Optional[List[str]] = None) -> int:
    """
    Parses command-line arguments and executes the corresponding command.

    This function is designed to be testable by allowing arguments to be passed
    directly.

    Args:
        argv: A list of strings representing the command-line arguments.
              If None, `sys.argv[1:]` is used automatically by `parse_args`.
    """
    parser = build_parser()

    # Enable argument auto-completion.
    argcomplete.autocomplete(parser)

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        if args.show_model:
            _show_model()
            return 0
        if args.remove_api:
            _remove_api_key()
            return 0

        # No sub-command means the interactive shell.
        func = getattr(args, "func", None) or _available_commands_by_name()["shell"].func
        result = func(args)
    except KeyboardInterrupt:
        print("\nshellmancer interrupted, exiting...", file=sys.stderr)
        sys.exit(0)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    return result if isinstance(result, int) else 0


def _available_commands_by_name():
    return {command.name: command for command in _available_commands}


def main():
    """The main entry point for the command-line interface, called by the `shellmancer` script."""
    sys.exit(run_cli())


if __name__ == "__main__":
    main()

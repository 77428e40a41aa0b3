# main_runner.py
import argparse
import importlib
import logging
import sys
from typing import List, Optional

import questionary
from rich.markup import escape

import config
from utils.errors import BaseWalletError, QueryFailed, UsageError
from utils.helper import console, setup_logging

COMMANDS = {
    "create-account": "modules.create_account",
    "check-balance": "modules.check_balance",
    "send-token": "modules.send_token",
    "batch-send-token": "modules.batch_send_token",
}

EXIT_OK = 0
EXIT_INTERRUPTED = 130

logger = logging.getLogger("basewallet")


class CliParser(argparse.ArgumentParser):
    """ArgumentParser that raises UsageError instead of exiting with status 2."""

    def error(self, message):
        raise UsageError(message, self.format_usage().strip())


def load_command(name: str):
    try:
        return importlib.import_module(COMMANDS[name])
    except KeyError:
        raise UsageError(f"Unknown command {name!r}", f"choose one of: {', '.join(COMMANDS)}") from None


def build_parser(module) -> CliParser:
    parser = CliParser(prog=module.COMMAND, description=module.DESCRIPTION)
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    module.add_arguments(parser)
    return parser


def select_command() -> Optional[List[str]]:
    """
    Let the user pick a task and answer its prompts. Returns the argv the
    task would have received on the command line, or None when cancelled.
    """
    choices = [
        questionary.Choice(title=f"{idx + 1}. {name}", value=name)
        for idx, name in enumerate(COMMANDS)
    ]
    selected = questionary.select("Select the task you want to run:", choices=choices).ask()
    if not selected:
        return None
    answers = load_command(selected).prompt_args()
    if answers is None:
        return None
    return [selected, *answers]


def run(argv: List[str]) -> int:
    """
    Single place where errors turn into exit codes. Commands raise; nothing
    below this function calls sys.exit.
    """
    usage = None
    try:
        if not argv:
            raise UsageError("No command given", f"usage: main_runner.py {{{','.join(COMMANDS)}}} ...")
        module = load_command(argv[0])
        parser = build_parser(module)
        usage = parser.format_usage().strip()
        args = parser.parse_args(argv[1:])
        setup_logging(args.verbose)
        settings = config.load_settings()
        return module.run(args, settings)
    except UsageError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        if e.usage or usage:
            console.print(e.usage or usage, markup=False)
        return e.exit_code
    except QueryFailed as e:
        console.print(f"[red]Query failed:[/red] {escape(str(e))}")
        return e.exit_code
    except BaseWalletError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        logger.debug("Failure detail", exc_info=True)
        return e.exit_code
    except KeyboardInterrupt:
        console.print("[yellow]Cancelled by the user[/yellow]")
        return EXIT_INTERRUPTED


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else list(argv)
    if not argv:
        try:
            argv = select_command()
        except KeyboardInterrupt:
            console.print("[yellow]Cancelled by the user[/yellow]")
            return EXIT_INTERRUPTED
        if argv is None:
            console.print("No task selected.")
            return EXIT_OK
    return run(argv)


if __name__ == "__main__":
    sys.exit(main())

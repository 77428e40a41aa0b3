import sys

import questionary
from rich.markup import escape

from utils.calls import validate_address
from utils.errors import QueryFailed
from utils.helper import Web3Helper, console
from utils.tokens import all_tokens

COMMAND = "check-balance"
DESCRIPTION = "Show the ETH and registered token balances of an address"


def add_arguments(parser):
    parser.add_argument("address", help="smart account (or any) address to inspect")


def prompt_args():
    address = questionary.text("Address to check:").ask()
    return [address] if address else None


def run(args, settings, web3h=None) -> int:
    address = validate_address(args.address)
    web3h = web3h or Web3Helper(timeout=settings.rpc_timeout)
    console.print(f"Checking balances for: [cyan]{address}[/cyan]\n")

    native_symbol = web3h.cfg.NATIVE_SYMBOL
    native_error = None
    try:
        native = web3h.get_native_balance(address)
    except QueryFailed as e:
        native_error = e
    tokens = web3h.get_balances(address, all_tokens())

    console.rule("[bold cyan]💰 Balances")
    if native_error is None:
        console.print(f"   {native_symbol}: {native} {native_symbol}")
    else:
        console.print(f"   {native_symbol}: [red]unavailable[/red] ({escape(str(native_error.cause))})")
    for symbol, balance in tokens.items():
        if isinstance(balance, QueryFailed):
            console.print(f"   {symbol}: [red]unavailable[/red] ({escape(str(balance.cause))})")
        else:
            console.print(f"   {symbol}: {balance} {symbol}")
    # Token lines are informational; only the native lookup sets the exit code
    return native_error.exit_code if native_error is not None else 0



def main(argv=None) -> int:
    from main_runner import run as run_command
    return run_command([COMMAND, *(sys.argv[1:] if argv is None else argv)])


if __name__ == "__main__":
    sys.exit(main())

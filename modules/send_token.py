import sys

import questionary

import config
from utils.calls import build_transfer_call
from utils.helper import console, truncate
from utils.smart_account import AccountSession
from utils.tokens import TOKENS, lookup

COMMAND = "send-token"
DESCRIPTION = "Send an ERC-20 token from the smart account"


def add_arguments(parser):
    parser.add_argument("token", help=f"token symbol ({', '.join(TOKENS)})")
    parser.add_argument("recipient", help="recipient address")
    parser.add_argument("amount", help="amount in token units, e.g. 0.1")


def prompt_args():
    token = questionary.select("Token:", choices=list(TOKENS)).ask()
    if not token:
        return None
    recipient = questionary.text("Recipient address:").ask()
    amount = questionary.text(f"Amount of {token}:").ask()
    if not recipient or not amount:
        return None
    return [token, recipient, amount]


def run(args, settings, session=None) -> int:
    settings.require_secrets()
    # Validate everything before touching the network
    token = lookup(args.token)
    call = build_transfer_call(token, args.recipient, args.amount)

    console.print("Creating smart account session...")
    session = session or AccountSession.from_settings(settings)

    console.print(f"From: [cyan]{session.address}[/cyan]")
    console.print(f"To: [cyan]{args.recipient}[/cyan]")
    console.print(f"Amount: {args.amount} {token.symbol}\n")

    console.print(f"Sending {token.symbol} to {truncate(args.recipient)}...")
    try:
        result = session.submit(call)
    finally:
        session.close()

    console.print("\n[bold green]✅ Transaction sent![/bold green]")
    console.print(f"TX Hash: {result.tx_hash}")
    console.print(f"View: {config.explorer_tx_url(result.tx_hash, session.cfg)}")
    return 0


def main(argv=None) -> int:
    from main_runner import run as run_command
    return run_command([COMMAND, *(sys.argv[1:] if argv is None else argv)])


if __name__ == "__main__":
    sys.exit(main())

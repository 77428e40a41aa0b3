import sys

import questionary

import config
from utils.amounts import to_decimal_string
from utils.calls import build_batch, decode_transfer_call, parse_transfer_args
from utils.helper import console
from utils.smart_account import AccountSession
from utils.tokens import TOKENS, lookup

COMMAND = "batch-send-token"
DESCRIPTION = "Send a token to several recipients in one atomic transaction"
EXAMPLE = "batch-send-token USDC 0xAddr1:0.1 0xAddr2:0.2"


def add_arguments(parser):
    parser.add_argument("token", help=f"token symbol ({', '.join(TOKENS)})")
    parser.add_argument("transfers", nargs="+", metavar="recipient:amount", help="one entry per recipient")


def prompt_args():
    token = questionary.select("Token:", choices=list(TOKENS)).ask()
    if not token:
        return None
    blob = questionary.text("Recipients as recipient:amount (space or newline separated):", multiline=True).ask()
    items = (blob or "").split()
    if not items:
        return None
    return [token, *items]


def run(args, settings, session=None) -> int:
    settings.require_secrets()
    usage = f"usage: {EXAMPLE}"
    token = lookup(args.token)
    transfers = parse_transfer_args(args.transfers, usage)
    batch = build_batch(token, transfers)

    console.print("Creating smart account session...")
    session = session or AccountSession.from_settings(settings)

    console.print(f"From: [cyan]{session.address}[/cyan]")
    console.print(f"Token: {token.symbol}")
    console.print("\nRecipients:")
    for call in batch:
        recipient, base_units = decode_transfer_call(call.data)
        console.print(f"  → {recipient}: {to_decimal_string(base_units, token.decimals)} {token.symbol}")

    console.print(f"\nSending {len(batch)} transfers in 1 transaction...")
    try:
        result = session.submit(batch)
    finally:
        session.close()

    console.print("\n[bold green]✅ Batch transaction sent![/bold green]")
    console.print(f"TX Hash: {result.tx_hash}")
    console.print(f"View: {config.explorer_tx_url(result.tx_hash, session.cfg)}")
    return 0


def main(argv=None) -> int:
    from main_runner import run as run_command
    return run_command([COMMAND, *(sys.argv[1:] if argv is None else argv)])


if __name__ == "__main__":
    sys.exit(main())

import sys

import questionary

from utils.helper import Web3Helper, console
from utils.smart_account import AccountSession, load_signer

COMMAND = "create-account"
DESCRIPTION = "Derive the Base smart account owned by a private key"


def add_arguments(parser):
    parser.add_argument("private_key", help="hex private key of the owner EOA (with or without 0x)")


def prompt_args():
    key = questionary.password("Paste the owner private key:").ask()
    return [key] if key else None


def run(args, settings) -> int:
    signer = load_signer(args.private_key)
    console.print("Creating smart account...\n")
    console.print(f"Signer (EOA): [green]{signer.address}[/green]")

    session = AccountSession(
        signer,
        web3h=Web3Helper(timeout=settings.rpc_timeout),
    )
    deployed = session.is_deployed()

    console.print("\n[bold green]✅ Smart Account Created![/bold green]")
    console.print(f"Address: [cyan]{session.address}[/cyan]")
    console.print(f"Chain: {session.cfg.CHAIN_LABEL} ({session.chain_id})")
    console.print(f"Deployed: {'yes' if deployed else 'no (deploys with its first transaction)'}")
    console.print(f"\nFund this address with USDC on {session.cfg.CHAIN_LABEL} to start transacting!")
    return 0


def main(argv=None) -> int:
    from main_runner import run as run_command
    return run_command([COMMAND, *(sys.argv[1:] if argv is None else argv)])


if __name__ == "__main__":
    sys.exit(main())

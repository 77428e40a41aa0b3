import json
import logging
from typing import Dict, List, Optional, Union

from rich.console import Console
from rich.logging import RichHandler
from web3 import HTTPProvider, Web3

import config
from .amounts import to_decimal_string
from .calls import validate_address
from .errors import QueryFailed
from .tokens import TokenInfo, all_tokens

console = Console()

BalanceResult = Union[str, QueryFailed]


def setup_logging(verbose: bool = False) -> logging.Logger:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    # urllib3 is chatty at DEBUG and would echo bundler URLs carrying the API key
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return logging.getLogger("basewallet")


def mask_secret(secret: Optional[str]) -> str:
    if not secret:
        return "****"
    return f"{secret[:6]}...{secret[-4:]}" if len(secret) > 12 else "****"


def truncate(address: str) -> str:
    return f"{address[:6]}...{address[-6:]}"


class Web3Helper:
    """
    Read-only Web3 wiring for one chain: provider with an explicit timeout,
    contract factories, and the balance reader used by check-balance.
    """

    def __init__(self, chain_config=config.Base, timeout: float = 15.0, w3: Optional[Web3] = None):
        self.cfg = chain_config
        self.logger = logging.getLogger(__name__)
        if w3 is None:
            self.provider = HTTPProvider(chain_config.RPC_URL, request_kwargs={"timeout": timeout})
            w3 = Web3(self.provider)
        self.w3 = w3
        self.erc20_abi = json.loads(chain_config.TOKEN_ABI)

    # ---------- Contracts ----------
    def contract(self, address: str, abi_json: str):
        return self.w3.eth.contract(address=self.w3.to_checksum_address(address), abi=json.loads(abi_json))

    def _erc20(self, token_address: str):
        return self.w3.eth.contract(address=self.w3.to_checksum_address(token_address), abi=self.erc20_abi)

    def has_code(self, address: str) -> bool:
        return len(self.w3.eth.get_code(self.w3.to_checksum_address(address))) > 0

    # ---------- Balances ----------
    def get_native_balance(self, address: str) -> str:
        account = validate_address(address)
        try:
            wei = int(self.w3.eth.get_balance(account))
        except Exception as e:
            raise QueryFailed(f"{self.cfg.NATIVE_SYMBOL} balance lookup", e) from e
        return to_decimal_string(wei, self.cfg.NATIVE_DECIMALS)

    def get_token_balance(self, address: str, token: TokenInfo) -> str:
        account = validate_address(address)
        try:
            raw = int(self._erc20(token.address).functions.balanceOf(account).call())
        except Exception as e:
            raise QueryFailed(f"{token.symbol} balance lookup", e) from e
        return to_decimal_string(raw, token.decimals)

    def get_balances(self, address: str, tokens: Optional[List[TokenInfo]] = None) -> Dict[str, BalanceResult]:
        """
        Query each token on its own, in order. A failed query lands in its
        symbol's slot as a QueryFailed instead of aborting the rest.
        """
        account = validate_address(address)
        out: Dict[str, BalanceResult] = {}
        for token in (all_tokens() if tokens is None else tokens):
            try:
                out[token.symbol] = self.get_token_balance(account, token)
            except QueryFailed as e:
                self.logger.warning("%s", e)
                out[token.symbol] = e
        return out

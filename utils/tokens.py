"""
Token registry for Base. Add new tokens to TOKENS to make them available
to every script.
"""
import json
from dataclasses import dataclass
from typing import Dict, List

import config
from .errors import UnknownToken


@dataclass(frozen=True)
class TokenInfo:
    symbol: str
    address: str
    decimals: int

    def __post_init__(self):
        if not 0 <= self.decimals <= 18:
            raise ValueError(f"{self.symbol}: decimals must be within 0..18, got {self.decimals}")


TOKENS: Dict[str, TokenInfo] = {
    t.symbol: t
    for t in (
        TokenInfo("USDC", "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913", 6),
        TokenInfo("USDT", "0xfde4C96c8593536E31F229EA8f37b2ADa2699bb2", 6),
        TokenInfo("WETH", "0x4200000000000000000000000000000000000006", 18),
    )
}

ERC20_ABI: List[dict] = json.loads(config.TOKEN_ABI)


def lookup(symbol: str) -> TokenInfo:
    token = TOKENS.get((symbol or "").strip().upper())
    if token is None:
        raise UnknownToken(symbol, TOKENS.keys())
    return token


def all_tokens() -> List[TokenInfo]:
    return list(TOKENS.values())

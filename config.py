# config.py
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from utils.errors import ConfigurationError

load_dotenv()

ENTRYPOINT_V07_ADDRESS = "0x0000000071727De22E5E9d8BAf0edAc6f37da032"
# eth-infinitism SimpleAccountFactory for EntryPoint v0.7
SIMPLE_ACCOUNT_FACTORY_ADDRESS = "0x91E60e0613810449d098b0b5Ec8b51A0FE8c8985"
PIMLICO_BUNDLER_URL_TEMPLATE = "https://api.pimlico.io/v2/{chain_id}/rpc?apikey={api_key}"

TOKEN_ABI = '''[
  {
    "type": "function",
    "name": "transfer",
    "stateMutability": "nonpayable",
    "inputs": [
      {"name": "to", "type": "address"},
      {"name": "amount", "type": "uint256"}
    ],
    "outputs": [{"name": "", "type": "bool"}]
  },
  {
    "type": "function",
    "name": "balanceOf",
    "stateMutability": "view",
    "inputs": [{"name": "account", "type": "address"}],
    "outputs": [{"name": "", "type": "uint256"}]
  },
  {
    "type": "function",
    "name": "decimals",
    "stateMutability": "view",
    "inputs": [],
    "outputs": [{"name": "", "type": "uint8"}]
  },
  {
    "type":"function",
    "name":"symbol",
    "stateMutability":"view",
    "inputs":[],
    "outputs":[{"name":"","type":"string"}]
  }
]'''

ACCOUNT_FACTORY_ABI = '''[
  {
    "type": "function",
    "name": "getAddress",
    "stateMutability": "view",
    "inputs": [
      {"name": "owner", "type": "address"},
      {"name": "salt", "type": "uint256"}
    ],
    "outputs": [{"name": "", "type": "address"}]
  },
  {
    "type": "function",
    "name": "createAccount",
    "stateMutability": "nonpayable",
    "inputs": [
      {"name": "owner", "type": "address"},
      {"name": "salt", "type": "uint256"}
    ],
    "outputs": [{"name": "ret", "type": "address"}]
  }
]'''

SIMPLE_ACCOUNT_ABI = '''[
  {
    "type": "function",
    "name": "execute",
    "stateMutability": "nonpayable",
    "inputs": [
      {"name": "dest", "type": "address"},
      {"name": "value", "type": "uint256"},
      {"name": "func", "type": "bytes"}
    ],
    "outputs": []
  },
  {
    "type": "function",
    "name": "executeBatch",
    "stateMutability": "nonpayable",
    "inputs": [
      {"name": "dest", "type": "address[]"},
      {"name": "value", "type": "uint256[]"},
      {"name": "func", "type": "bytes[]"}
    ],
    "outputs": []
  }
]'''

ENTRYPOINT_ABI = '''[
  {
    "type": "function",
    "name": "getNonce",
    "stateMutability": "view",
    "inputs": [
      {"name": "sender", "type": "address"},
      {"name": "key", "type": "uint192"}
    ],
    "outputs": [{"name": "nonce", "type": "uint256"}]
  }
]'''


class Base :
    # Public RPC for Base mainnet; BASE_RPC_URL overrides it
    RPC_URL = os.getenv("BASE_RPC_URL") or "https://mainnet.base.org"

    CHAIN_ID = 8453
    CHAIN_NAME = "base"
    CHAIN_LABEL = "Base"
    NATIVE_SYMBOL = "ETH"
    NATIVE_DECIMALS = 18
    EXPLORER_URL = "https://basescan.org"

    ENTRYPOINT_ADDRESS = ENTRYPOINT_V07_ADDRESS
    ACCOUNT_FACTORY_ADDRESS = SIMPLE_ACCOUNT_FACTORY_ADDRESS
    ACCOUNT_SALT = 0
    BUNDLER_URL_TEMPLATE = PIMLICO_BUNDLER_URL_TEMPLATE

    TOKEN_ABI = TOKEN_ABI
    ACCOUNT_FACTORY_ABI = ACCOUNT_FACTORY_ABI
    SIMPLE_ACCOUNT_ABI = SIMPLE_ACCOUNT_ABI
    ENTRYPOINT_ABI = ENTRYPOINT_ABI


def bundler_url(api_key: str, chain=Base) -> str:
    return chain.BUNDLER_URL_TEMPLATE.format(chain_id=chain.CHAIN_ID, api_key=api_key)


def explorer_tx_url(tx_hash: str, chain=Base) -> str:
    return f"{chain.EXPLORER_URL}/tx/{tx_hash}"


@dataclass(frozen=True)
class Settings:
    """
    Secrets and tunables read from the process environment (.env supported).
    Built once in the CLI layer and passed down explicitly.
    """
    private_key: Optional[str] = None
    pimlico_api_key: Optional[str] = None
    sponsored: bool = False
    rpc_timeout: float = 15.0
    bundler_timeout: float = 30.0
    receipt_timeout: float = 120.0

    def require_secrets(self) -> "Settings":
        for env_name, value in (("PRIVATE_KEY", self.private_key), ("PIMLICO_API_KEY", self.pimlico_api_key)):
            if not value:
                raise ConfigurationError(f"{env_name} not set in environment or .env file")
        return self


_TRUTHY = {"1", "true", "yes", "on"}


def _env_float(environ, name: str, default: float) -> float:
    raw = (environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number of seconds, got {raw!r}") from None
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


def load_settings(environ=None) -> Settings:
    environ = os.environ if environ is None else environ
    return Settings(
        private_key=(environ.get("PRIVATE_KEY") or "").strip() or None,
        pimlico_api_key=(environ.get("PIMLICO_API_KEY") or "").strip() or None,
        sponsored=(environ.get("PIMLICO_SPONSORSHIP") or "").strip().lower() in _TRUTHY,
        rpc_timeout=_env_float(environ, "RPC_TIMEOUT", 15.0),
        bundler_timeout=_env_float(environ, "BUNDLER_TIMEOUT", 30.0),
        receipt_timeout=_env_float(environ, "RECEIPT_TIMEOUT", 120.0),
    )


MODULE_PATH = Path(__file__).resolve().parent / "modules"

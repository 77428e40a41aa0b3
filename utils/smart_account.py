import json
import logging
from dataclasses import dataclass, replace
from typing import Optional, Sequence, Union

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount

import config
from .bundler import BundlerClient
from .calls import BatchRequest, EncodedCall, as_calls
from .errors import ConfigurationError, QueryFailed, SubmissionFailed, UsageError
from .helper import Web3Helper, mask_secret
from .user_operation import UserOperation

logger = logging.getLogger(__name__)


def load_signer(private_key: str) -> LocalAccount:
    key = (private_key or "").strip()
    try:
        return Account.from_key(key)
    except Exception as e:
        raise UsageError(f"Malformed private key {mask_secret(key)}: {e}") from None


@dataclass
class SubmissionResult:
    user_op_hash: str
    tx_hash: str
    success: bool


class AccountSession:
    """
    SimpleAccount (EntryPoint v0.7) owned by one EOA key. Submits one or many
    calls as a single UserOperation, so every submit() yields exactly one
    on-chain transaction whose sub-calls succeed or revert together.
    """

    def __init__(
        self,
        signer: LocalAccount,
        chain_config=config.Base,
        web3h: Optional[Web3Helper] = None,
        bundler: Optional[BundlerClient] = None,
        sponsored: bool = False,
        receipt_timeout: float = 120.0,
        rpc_timeout: float = 15.0,
    ):
        self.signer = signer
        self.cfg = chain_config
        self.chain_id = int(chain_config.CHAIN_ID)
        self.rpc_endpoint = chain_config.RPC_URL
        self.web3h = web3h or Web3Helper(chain_config, timeout=rpc_timeout)
        self.w3 = self.web3h.w3
        self.bundler = bundler
        self.sponsored = sponsored
        self.receipt_timeout = receipt_timeout

        self.entrypoint = self.w3.to_checksum_address(chain_config.ENTRYPOINT_ADDRESS)
        self.factory = self.web3h.contract(chain_config.ACCOUNT_FACTORY_ADDRESS, chain_config.ACCOUNT_FACTORY_ABI)
        self._account_abi = self.w3.eth.contract(abi=json.loads(chain_config.SIMPLE_ACCOUNT_ABI))
        self._address: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: config.Settings, chain_config=config.Base, **kwargs) -> "AccountSession":
        if not settings.private_key:
            raise ConfigurationError("PRIVATE_KEY not set in environment or .env file")
        bundler = kwargs.pop("bundler", None)
        if bundler is None and settings.pimlico_api_key:
            bundler = BundlerClient(config.bundler_url(settings.pimlico_api_key, chain_config), timeout=settings.bundler_timeout)
        return cls(
            load_signer(settings.private_key),
            chain_config,
            bundler=bundler,
            sponsored=settings.sponsored,
            receipt_timeout=settings.receipt_timeout,
            rpc_timeout=settings.rpc_timeout,
            **kwargs,
        )

    @property
    def owner(self) -> str:
        return self.signer.address

    @property
    def bundler_endpoint(self) -> Optional[str]:
        return self.bundler.url if self.bundler else None

    @property
    def address(self) -> str:
        """Counterfactual account address; valid before deployment."""
        if self._address is None:
            try:
                addr = self.factory.functions.getAddress(self.owner, self.cfg.ACCOUNT_SALT).call()
            except Exception as e:
                raise QueryFailed("Smart account address lookup", e) from e
            self._address = self.w3.to_checksum_address(addr)
            logger.debug("Smart account for %s is %s", self.owner, self._address)
        return self._address

    def is_deployed(self) -> bool:
        try:
            return self.web3h.has_code(self.address)
        except QueryFailed:
            raise
        except Exception as e:
            raise QueryFailed("Smart account code lookup", e) from e

    # ---------- Encoding ----------
    def encode_calls(self, calls: Sequence[EncodedCall]) -> bytes:
        if len(calls) == 1:
            c = calls[0]
            data = self._account_abi.encode_abi("execute", args=[c.target, int(c.value), c.data])
        else:
            data = self._account_abi.encode_abi(
                "executeBatch",
                args=[[c.target for c in calls], [int(c.value) for c in calls], [c.data for c in calls]],
            )
        return bytes.fromhex(data[2:] if data.startswith("0x") else data)

    def _init_fields(self) -> dict:
        if self.is_deployed():
            return {}
        data = self.factory.encode_abi("createAccount", args=[self.owner, self.cfg.ACCOUNT_SALT])
        return {
            "factory": self.factory.address,
            "factory_data": bytes.fromhex(data[2:] if data.startswith("0x") else data),
        }

    def _nonce(self) -> int:
        entrypoint = self.web3h.contract(self.entrypoint, self.cfg.ENTRYPOINT_ABI)
        try:
            return int(entrypoint.functions.getNonce(self.address, 0).call())
        except Exception as e:
            raise SubmissionFailed("Could not read account nonce from EntryPoint", e) from e

    # ---------- Submission ----------
    def build_user_operation(self, calls: Sequence[EncodedCall]) -> UserOperation:
        if self.bundler is None:
            raise ConfigurationError("PIMLICO_API_KEY not set in environment or .env file")
        fees = self.bundler.gas_price()
        op = UserOperation(
            sender=self.address,
            nonce=self._nonce(),
            call_data=self.encode_calls(calls),
            max_fee_per_gas=fees["max_fee_per_gas"],
            max_priority_fee_per_gas=fees["max_priority_fee_per_gas"],
            **self._init_fields(),
        )
        if self.sponsored:
            op = op.with_paymaster(self.bundler.sponsor_user_operation(op, self.entrypoint))
        else:
            op = op.with_gas(self.bundler.estimate_user_operation_gas(op, self.entrypoint))
        logger.debug(
            "UserOperation gas: call=%d verification=%d preVerification=%d maxFee=%d",
            op.call_gas_limit, op.verification_gas_limit, op.pre_verification_gas, op.max_fee_per_gas,
        )
        return op

    def sign(self, op: UserOperation) -> UserOperation:
        # SimpleAccount checks an EIP-191 signature over the userOpHash
        op_hash = op.hash(self.entrypoint, self.chain_id)
        signed = self.signer.sign_message(encode_defunct(primitive=op_hash))
        return replace(op, signature="0x" + bytes(signed.signature).hex())

    def submit(self, payload: Union[EncodedCall, BatchRequest]) -> SubmissionResult:
        calls = as_calls(payload)
        op = self.sign(self.build_user_operation(calls))
        user_op_hash = self.bundler.send_user_operation(op, self.entrypoint)
        logger.info("UserOperation submitted: %s", user_op_hash)

        receipt = self.bundler.wait_for_receipt(user_op_hash, timeout=self.receipt_timeout)
        tx_receipt = receipt.get("receipt") or {}
        tx_hash = tx_receipt.get("transactionHash")
        if not tx_hash:
            raise SubmissionFailed(f"Receipt for {user_op_hash} carries no transaction hash")
        success = receipt.get("success") is True
        if not success:
            raise SubmissionFailed(f"UserOperation {user_op_hash} reverted in transaction {tx_hash}")
        return SubmissionResult(user_op_hash=user_op_hash, tx_hash=tx_hash, success=success)

    def close(self) -> None:
        if self.bundler is not None:
            self.bundler.close()

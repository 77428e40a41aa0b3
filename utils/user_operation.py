"""
ERC-4337 v0.7 UserOperation: bundler JSON form and the EntryPoint hash.
"""
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from eth_abi import encode
from web3 import Web3

# Placeholder signature SimpleAccount accepts during gas estimation
DUMMY_SIGNATURE = "0x" + "ff" * 15 + "f0" + "00" * 16 + "7" + "a" * 63 + "1c"


def _hex_int(value: int) -> str:
    value = int(value)
    if value < 0:
        raise ValueError(f"UserOperation field cannot be negative: {value}")
    return hex(value)


def _hex_bytes(value: bytes) -> str:
    return "0x" + bytes(value).hex()


def _to_bytes(value) -> bytes:
    if value is None:
        return b""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    s = str(value)
    return bytes.fromhex(s[2:] if s.startswith("0x") else s)


def _pack_uint128_pair(high: int, low: int) -> bytes:
    return ((int(high) << 128) | int(low)).to_bytes(32, "big")


@dataclass(frozen=True)
class UserOperation:
    sender: str
    nonce: int
    call_data: bytes
    factory: Optional[str] = None
    factory_data: bytes = b""
    call_gas_limit: int = 0
    verification_gas_limit: int = 0
    pre_verification_gas: int = 0
    max_fee_per_gas: int = 0
    max_priority_fee_per_gas: int = 0
    paymaster: Optional[str] = None
    paymaster_verification_gas_limit: int = 0
    paymaster_post_op_gas_limit: int = 0
    paymaster_data: bytes = b""
    signature: str = DUMMY_SIGNATURE

    @property
    def init_code(self) -> bytes:
        if not self.factory:
            return b""
        return _to_bytes(self.factory) + self.factory_data

    @property
    def paymaster_and_data(self) -> bytes:
        if not self.paymaster:
            return b""
        return (
            _to_bytes(self.paymaster)
            + int(self.paymaster_verification_gas_limit).to_bytes(16, "big")
            + int(self.paymaster_post_op_gas_limit).to_bytes(16, "big")
            + self.paymaster_data
        )

    def with_gas(self, estimate: Dict[str, Any]) -> "UserOperation":
        """Apply an eth_estimateUserOperationGas / sponsorship result (hex strings)."""
        fields = {
            "callGasLimit": "call_gas_limit",
            "verificationGasLimit": "verification_gas_limit",
            "preVerificationGas": "pre_verification_gas",
            "paymasterVerificationGasLimit": "paymaster_verification_gas_limit",
            "paymasterPostOpGasLimit": "paymaster_post_op_gas_limit",
        }
        updates = {attr: int(estimate[key], 16) for key, attr in fields.items() if estimate.get(key)}
        return replace(self, **updates)

    def with_paymaster(self, sponsorship: Dict[str, Any]) -> "UserOperation":
        op = self.with_gas(sponsorship)
        return replace(
            op,
            paymaster=sponsorship.get("paymaster"),
            paymaster_data=_to_bytes(sponsorship.get("paymasterData")),
        )

    def to_rpc(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "sender": self.sender,
            "nonce": _hex_int(self.nonce),
            "callData": _hex_bytes(self.call_data),
            "callGasLimit": _hex_int(self.call_gas_limit),
            "verificationGasLimit": _hex_int(self.verification_gas_limit),
            "preVerificationGas": _hex_int(self.pre_verification_gas),
            "maxFeePerGas": _hex_int(self.max_fee_per_gas),
            "maxPriorityFeePerGas": _hex_int(self.max_priority_fee_per_gas),
            "signature": self.signature,
        }
        if self.factory:
            out["factory"] = self.factory
            out["factoryData"] = _hex_bytes(self.factory_data)
        if self.paymaster:
            out["paymaster"] = self.paymaster
            out["paymasterVerificationGasLimit"] = _hex_int(self.paymaster_verification_gas_limit)
            out["paymasterPostOpGasLimit"] = _hex_int(self.paymaster_post_op_gas_limit)
            out["paymasterData"] = _hex_bytes(self.paymaster_data)
        return out

    def hash(self, entrypoint: str, chain_id: int) -> bytes:
        """keccak(abi.encode(keccak(packed op), entryPoint, chainId)) as EntryPoint v0.7 computes it."""
        packed = encode(
            ["address", "uint256", "bytes32", "bytes32", "bytes32", "uint256", "bytes32", "bytes32"],
            [
                Web3.to_checksum_address(self.sender),
                int(self.nonce),
                Web3.keccak(self.init_code),
                Web3.keccak(self.call_data),
                _pack_uint128_pair(self.verification_gas_limit, self.call_gas_limit),
                int(self.pre_verification_gas),
                _pack_uint128_pair(self.max_priority_fee_per_gas, self.max_fee_per_gas),
                Web3.keccak(self.paymaster_and_data),
            ],
        )
        return bytes(Web3.keccak(
            encode(
                ["bytes32", "address", "uint256"],
                [Web3.keccak(packed), Web3.to_checksum_address(entrypoint), int(chain_id)],
            )
        ))

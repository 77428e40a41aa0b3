import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple, Union

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from web3 import Web3

from .amounts import to_base_units
from .errors import EmptyBatch, InvalidAddress, UsageError
from .tokens import TokenInfo

logger = logging.getLogger(__name__)

TRANSFER_SIGNATURE = "transfer(address,uint256)"
TRANSFER_SELECTOR = bytes(Web3.keccak(text=TRANSFER_SIGNATURE)[:4])  # 0xa9059cbb

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$", re.ASCII)


@dataclass(frozen=True)
class TransferIntent:
    token: TokenInfo
    recipient: str
    amount: str


@dataclass(frozen=True)
class EncodedCall:
    target: str
    value: int
    data: bytes

    @property
    def data_hex(self) -> str:
        return "0x" + self.data.hex()


BatchRequest = Tuple[EncodedCall, ...]


def validate_address(address: str) -> str:
    """
    Return the EIP-55 checksum form of a 0x-prefixed 20-byte hex address.
    All-lower or all-upper hex is accepted as-is; mixed case must carry a
    valid checksum.
    """
    candidate = (address or "").strip()
    if not _ADDRESS_RE.match(candidate):
        raise InvalidAddress(address)
    body = candidate[2:]
    if body != body.lower() and body != body.upper() and not Web3.is_checksum_address(candidate):
        raise InvalidAddress(address, "mixed-case address fails the EIP-55 checksum")
    return Web3.to_checksum_address(candidate)


def encode_transfer_data(recipient: str, amount: int) -> bytes:
    if amount < 0 or amount >= 2 ** 256:
        raise ValueError(f"amount {amount} does not fit in uint256")
    return TRANSFER_SELECTOR + encode(["address", "uint256"], [Web3.to_checksum_address(recipient), int(amount)])


def decode_transfer_call(data: bytes) -> Tuple[str, int]:
    if len(data) != 68 or data[:4] != TRANSFER_SELECTOR:
        raise ValueError("data is not an ERC-20 transfer(address,uint256) call")
    try:
        recipient, amount = decode(["address", "uint256"], data[4:])
    except DecodingError as e:
        raise ValueError(f"malformed transfer arguments: {e}") from e
    return Web3.to_checksum_address(recipient), amount



def build_transfer_call(token: TokenInfo, recipient: str, amount: str) -> EncodedCall:
    intent = TransferIntent(token=token, recipient=validate_address(recipient), amount=amount)
    base_units = to_base_units(intent.amount, token.decimals)
    return EncodedCall(
        target=Web3.to_checksum_address(token.address),
        value=0,
        data=encode_transfer_data(intent.recipient, base_units),
    )


def build_batch(token: TokenInfo, transfers: Sequence[Tuple[str, str]]) -> BatchRequest:
    """
    Build every transfer call up front. Any bad entry raises before a batch
    exists, so a partial batch can never reach the bundler.
    """
    if not transfers:
        raise EmptyBatch()
    calls: List[EncodedCall] = []
    for recipient, amount in transfers:
        calls.append(build_transfer_call(token, recipient, amount))
    logger.debug("Built batch of %d %s transfers", len(calls), token.symbol)
    return tuple(calls)


def parse_transfer_arg(item: str, usage: str = None) -> Tuple[str, str]:
    # "0xRecipient:0.1" -> ("0xRecipient", "0.1")
    recipient, sep, amount = (item or "").strip().rpartition(":")
    if not sep or not recipient or not amount:
        raise UsageError(f"Expected <recipient:amount>, got {item!r}", usage)
    return recipient.strip(), amount.strip()


def parse_transfer_args(items: Iterable[str], usage: str = None) -> List[Tuple[str, str]]:
    return [parse_transfer_arg(item, usage) for item in items]


def as_calls(payload: Union[EncodedCall, Sequence[EncodedCall]]) -> BatchRequest:
    if isinstance(payload, EncodedCall):
        return (payload,)
    calls = tuple(payload)
    if not calls:
        raise EmptyBatch("Nothing to submit")
    return calls

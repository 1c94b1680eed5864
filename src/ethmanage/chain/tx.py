"""
Transaction Builder - Assemble legacy Ethereum transactions.

Nonce and gas price are always supplied by the caller (fetched from the
node right before building). Gas limits are fixed per transaction kind;
no estimation is performed, so a contract call needing more gas than the
limit is rejected by the node.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..errors import InvalidAmount
from ..units import MAX_UINT256
from ..utils import bytes_to_hex, normalize_address

NATIVE_TRANSFER_GAS_LIMIT = 21_000
CONTRACT_CALL_GAS_LIMIT = 60_000


@dataclass(frozen=True)
class UnsignedTransaction:
    sender: str
    nonce: int
    to: str
    value: int
    gas_limit: int
    gas_price: int
    data: bytes = b""

    def as_signable(self, chain_id: int) -> dict[str, Any]:
        """Render as an eth-account legacy transaction dict (EIP-155)."""
        return {
            "nonce": self.nonce,
            "to": self.to,
            "value": self.value,
            "gas": self.gas_limit,
            "gasPrice": self.gas_price,
            "data": bytes_to_hex(self.data),
            "chainId": chain_id,
        }


@dataclass(frozen=True)
class SignedTransaction:
    unsigned: UnsignedTransaction
    raw: bytes
    hash: str
    r: int
    s: int
    v: int

    @property
    def raw_hex(self) -> str:
        return bytes_to_hex(self.raw)


def _check_int(name: str, value: int, minimum: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value < minimum:
        raise ValueError(f"{name} must be an integer >= {minimum}, got {value!r}")


def _build(
    sender: str,
    to: str,
    value: int,
    nonce: int,
    gas_limit: int,
    gas_price: int,
    data: bytes,
    to_label: str,
) -> UnsignedTransaction:
    if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= MAX_UINT256:
        raise InvalidAmount(f"Transaction value must be an integer in [0, 2**256), got {value!r}")
    _check_int("nonce", nonce, 0)
    _check_int("gas_limit", gas_limit, 1)
    _check_int("gas_price", gas_price, 0)

    return UnsignedTransaction(
        sender=normalize_address(sender, "sender address"),
        nonce=nonce,
        to=normalize_address(to, to_label),
        value=value,
        gas_limit=gas_limit,
        gas_price=gas_price,
        data=bytes(data),
    )


def build_value_transfer(
    sender: str,
    recipient: str,
    value: int,
    nonce: int,
    gas_limit: int = NATIVE_TRANSFER_GAS_LIMIT,
    gas_price: int = 0,
) -> UnsignedTransaction:
    """
    Build a plain ETH transfer (empty call-data).

    Args:
        sender: Address of the signing identity
        recipient: 0x-prefixed recipient address
        value: Amount in wei
        nonce: Pending nonce of the sender
        gas_limit: Gas limit (default: 21000)
        gas_price: Gas price in wei

    Raises:
        InvalidRecipient: If an address is malformed
        InvalidAmount: If value is negative
    """
    return _build(sender, recipient, value, nonce, gas_limit, gas_price, b"", "recipient address")


def build_contract_call(
    sender: str,
    contract_address: str,
    call_data: bytes,
    nonce: int,
    gas_limit: int = CONTRACT_CALL_GAS_LIMIT,
    gas_price: int = 0,
) -> UnsignedTransaction:
    """Build a zero-value contract call carrying ``call_data``."""
    return _build(
        sender, contract_address, 0, nonce, gas_limit, gas_price, call_data, "contract address"
    )

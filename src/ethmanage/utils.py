from __future__ import annotations

import re

from eth_hash.auto import keccak

from .errors import InvalidRecipient

_HEX_ADDRESS = re.compile(r"^0x[0-9a-fA-F]{40}$")


def keccak256(data: bytes) -> bytes:
    # NOTE: Keccak-256 != SHA3-256 (NIST). Never use hashlib.sha3_256 here.
    return keccak(data)


def hex_to_bytes(value: str) -> bytes:
    if value.startswith(("0x", "0X")):
        value = value[2:]
    return bytes.fromhex(value)


def bytes_to_hex(data: bytes) -> str:
    return "0x" + bytes(data).hex()


def to_checksum_address(address: str) -> str:
    """Convert an address to EIP-55 checksummed format."""
    addr = address.lower().replace("0x", "")
    addr_hash = keccak256(addr.encode("utf-8")).hex()
    result = "0x"
    for i, c in enumerate(addr):
        if c in "abcdef":
            result += c.upper() if int(addr_hash[i], 16) >= 8 else c
        else:
            result += c
    return result


def normalize_address(address: str, label: str = "address") -> str:
    """Validate a 0x-prefixed hex address and return its checksummed form.

    All-lowercase and all-uppercase inputs are accepted as-is. Mixed-case
    input must carry a valid EIP-55 checksum, since a wrong checksum usually
    means a mistyped address.

    Raises:
        InvalidRecipient: If the value is not a well-formed address
    """
    if not isinstance(address, str) or not _HEX_ADDRESS.match(address.strip()):
        raise InvalidRecipient(f"Invalid {label}: {address!r}")
    address = address.strip()
    body = address[2:]
    checksummed = to_checksum_address(address)
    if body != body.lower() and body != body.upper() and address != checksummed:
        raise InvalidRecipient(f"Invalid {label}: checksum mismatch for {address}")
    return checksummed

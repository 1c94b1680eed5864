"""
Encrypted keystore for signing identities.

Keys are stored as Web3 Secret Storage (V3) JSON files, one per identity,
named ``UTC--<timestamp>--<address>`` so the directory is interchangeable
with geth's. Listing order is file-name order, i.e. creation order.

Unlocking decrypts a key into this process's memory; ``lock`` drops it
again. Callers are expected to keep the unlocked window to a single
signing operation.
"""

from __future__ import annotations

import json
import logging
import os
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol, Sequence

from eth_account import Account
from eth_account.signers.local import LocalAccount

from ..chain.tx import SignedTransaction, UnsignedTransaction
from ..errors import AuthenticationError, IndexOutOfRange, KeystoreError, SigningError
from ..utils import bytes_to_hex, to_checksum_address

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    address: str
    path: Path

    def __str__(self) -> str:
        return self.address


class IdentityStore(Protocol):
    def list_identities(self) -> list[Identity]:
        ...

    def create_identity(self, secret: str) -> Identity:
        ...

    def unlock(self, identity: Identity, secret: str) -> None:
        ...

    def lock(self, identity: Identity) -> None:
        ...

    def sign_transaction(
        self, identity: Identity, unsigned: UnsignedTransaction, chain_id: int
    ) -> SignedTransaction:
        ...


def select(identities: Sequence[Identity], index: int) -> Identity:
    """Pick an identity by its listing index."""
    if index < 0 or index >= len(identities):
        raise IndexOutOfRange(
            f"Invalid account index {index}: {len(identities)} account(s) available"
        )
    return identities[index]


def _keyfile_name(address: str) -> str:
    ts = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S.%f000Z")
    return f"UTC--{ts}--{address.lower().replace('0x', '')}"


@dataclass
class KeystoreDir:
    """
    Directory-backed ``IdentityStore``.

    Args:
        root: Keystore directory (created on first write)
        kdf: Key derivation function for new keys ("scrypt" or "pbkdf2")
        iterations: KDF work factor override (default: eth-keyfile's)
    """

    root: Path
    kdf: str = "scrypt"
    iterations: Optional[int] = None
    _unlocked: dict[str, LocalAccount] = field(default_factory=dict, init=False, repr=False)

    def list_identities(self) -> list[Identity]:
        """
        Identities in file-name order.

        Raises:
            KeystoreError: If ``root`` exists but is not a readable directory
        """
        if not self.root.exists():
            return []
        try:
            entries = sorted(self.root.iterdir())
        except OSError as exc:
            raise KeystoreError(f"Cannot read keystore directory {self.root}: {exc}") from exc

        identities = []
        for path in entries:
            if not path.is_file() or path.name.startswith("."):
                continue
            try:
                keyfile = json.loads(path.read_text(encoding="utf-8"))
                address = keyfile["address"]
            except (OSError, ValueError, KeyError, TypeError) as exc:
                logger.warning("Skipping unreadable keyfile %s: %s", path, exc)
                continue
            identities.append(Identity(address=to_checksum_address(address), path=path))
        return identities

    def create_identity(self, secret: str) -> Identity:
        """
        Generate a new key, encrypt it with ``secret`` and store it.

        Raises:
            KeystoreError: If the keyfile cannot be written
        """
        private_key = "0x" + secrets.token_hex(32)
        account = Account.from_key(private_key)
        keyfile = Account.encrypt(
            private_key, secret, kdf=self.kdf, iterations=self.iterations
        )

        target = self.root / _keyfile_name(account.address)
        tmp = target.with_name(f".{target.name}.tmp")
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            try:
                tmp.write_text(json.dumps(keyfile), encoding="utf-8")
                # Set secure permissions on Unix
                if os.name != "nt":
                    tmp.chmod(0o600)
                tmp.replace(target)
            finally:
                tmp.unlink(missing_ok=True)
        except OSError as exc:
            raise KeystoreError(f"Cannot write keyfile to {self.root}: {exc}") from exc

        logger.info("Created identity %s", account.address)
        return Identity(address=account.address, path=target)

    def unlock(self, identity: Identity, secret: str) -> None:
        """
        Decrypt the identity's key and keep it in memory until ``lock``.

        Raises:
            AuthenticationError: If ``secret`` does not decrypt the key
            SigningError: If the keyfile cannot be read
        """
        try:
            keyfile = json.loads(identity.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise SigningError(f"Cannot read keyfile for {identity.address}: {exc}") from exc

        try:
            private_key = Account.decrypt(keyfile, secret)
        except (ValueError, TypeError, KeyError, NotImplementedError) as exc:
            if "MAC mismatch" in str(exc):
                raise AuthenticationError(
                    f"Failed to unlock {identity.address}: wrong password"
                ) from exc
            raise SigningError(f"Cannot decrypt keyfile for {identity.address}: {exc}") from exc

        account = Account.from_key(private_key)
        if account.address != identity.address:
            raise SigningError(
                f"Keyfile {identity.path.name} holds {account.address}, "
                f"expected {identity.address}"
            )
        self._unlocked[identity.address] = account

    def lock(self, identity: Identity) -> None:
        self._unlocked.pop(identity.address, None)

    def is_unlocked(self, identity: Identity) -> bool:
        return identity.address in self._unlocked

    def sign_transaction(
        self, identity: Identity, unsigned: UnsignedTransaction, chain_id: int
    ) -> SignedTransaction:
        """
        Sign with an unlocked identity, binding ``chain_id`` (EIP-155).

        Raises:
            SigningError: If the identity is locked or signing fails
        """
        account = self._unlocked.get(identity.address)
        if account is None:
            raise SigningError(f"Identity {identity.address} is locked")

        try:
            signed = account.sign_transaction(unsigned.as_signable(chain_id))
        except (TypeError, ValueError) as exc:
            raise SigningError(f"Failed to sign transaction: {exc}") from exc

        return SignedTransaction(
            unsigned=unsigned,
            raw=bytes(signed.raw_transaction),
            hash=bytes_to_hex(signed.hash),
            r=signed.r,
            s=signed.s,
            v=signed.v,
        )

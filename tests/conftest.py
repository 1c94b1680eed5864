from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from ethmanage.chain.tx import SignedTransaction, UnsignedTransaction
from ethmanage.config import Settings
from ethmanage.keystore import Identity, KeystoreDir
from ethmanage.utils import bytes_to_hex, keccak256

PASSWORD = "correct horse battery staple"


class FakeNode:
    """In-memory node double recording every call."""

    def __init__(
        self,
        balance: int = 0,
        nonce: int = 0,
        gas_price: int = 1,
        call_result: bytes = b"",
        send_error: Optional[Exception] = None,
    ) -> None:
        self.balance = balance
        self.nonce = nonce
        self.gas_price = gas_price
        self.call_result = call_result
        self.send_error = send_error
        self.calls: list[tuple[str, Any]] = []
        self.sent: list[bytes] = []

    def get_balance(self, address: str) -> int:
        self.calls.append(("get_balance", address))
        return self.balance

    def get_pending_nonce(self, address: str) -> int:
        self.calls.append(("get_pending_nonce", address))
        return self.nonce

    def suggest_gas_price(self) -> int:
        self.calls.append(("suggest_gas_price", None))
        return self.gas_price

    def call(self, to: str, data: bytes) -> bytes:
        self.calls.append(("call", (to, data)))
        return self.call_result

    def send_raw_transaction(self, raw_tx: bytes) -> str:
        self.calls.append(("send_raw_transaction", raw_tx))
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(raw_tx)
        return bytes_to_hex(keccak256(raw_tx))


@dataclass
class RecordingKeystore(KeystoreDir):
    """Real keystore that also remembers unlock attempts and sign requests."""

    def __post_init__(self) -> None:
        self.sign_requests: list[tuple[UnsignedTransaction, int]] = []
        self.unlock_attempts = 0

    def unlock(self, identity: Identity, secret: str) -> None:
        self.unlock_attempts += 1
        super().unlock(identity, secret)

    def sign_transaction(
        self, identity: Identity, unsigned: UnsignedTransaction, chain_id: int
    ) -> SignedTransaction:
        self.sign_requests.append((unsigned, chain_id))
        return super().sign_transaction(identity, unsigned, chain_id)


@pytest.fixture()
def password() -> str:
    return PASSWORD


@pytest.fixture()
def make_node() -> Callable[..., FakeNode]:
    return FakeNode


@pytest.fixture()
def keystore(tmp_path: Path) -> RecordingKeystore:
    # pbkdf2 with a tiny work factor keeps tests fast
    return RecordingKeystore(tmp_path / "keystore", kdf="pbkdf2", iterations=2)


@pytest.fixture()
def identity(keystore: RecordingKeystore, password: str) -> Identity:
    return keystore.create_identity(password)


@pytest.fixture()
def settings(tmp_path: Path, password: str) -> Settings:
    return Settings(
        keystore_dir=tmp_path / "keystore",
        keystore_password=password,
        node_url="http://node.invalid",
        network="mainnet",
        chain_id=1,
    )

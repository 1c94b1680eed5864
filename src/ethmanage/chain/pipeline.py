"""
Signing & Broadcast Pipeline.

Each submission moves through BUILT -> UNLOCKED -> SIGNED -> BROADCAST ->
CONFIRMED, or ends in FAILED at whichever step raised. CONFIRMED means the
node accepted the transaction into its pending pool, not that it was mined.
Nothing is retried.

Submissions from one sender are serialized inside this process so two
threads never read the same pending nonce. Separate processes are not
coordinated; a concurrent submission from another process can still
collide on the nonce and be rejected with ``BroadcastError``.
"""

from __future__ import annotations

import enum
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Iterator, Optional

from ..errors import EthManageError, InvalidAmount, SigningError
from ..units import MAX_UINT256
from ..utils import normalize_address
from .rpc import NodeRpc
from .tx import (
    CONTRACT_CALL_GAS_LIMIT,
    NATIVE_TRANSFER_GAS_LIMIT,
    SignedTransaction,
    UnsignedTransaction,
    build_contract_call,
    build_value_transfer,
)

if TYPE_CHECKING:
    from ..keystore import Identity, IdentityStore
    from ..token.client import Token

logger = logging.getLogger(__name__)

BuildFn = Callable[[int, int], UnsignedTransaction]


class TxState(str, enum.Enum):
    BUILT = "built"
    UNLOCKED = "unlocked"
    SIGNED = "signed"
    BROADCAST = "broadcast"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass
class TransactionRecord:
    unsigned: UnsignedTransaction
    state: TxState = TxState.BUILT
    signed: Optional[SignedTransaction] = None
    tx_hash: Optional[str] = None
    error: Optional[EthManageError] = None

    def fail(self, exc: EthManageError) -> None:
        self.state = TxState.FAILED
        self.error = exc


class SenderLocks:
    """One lock per sender address, created on demand."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def get(self, address: str) -> threading.Lock:
        key = address.lower()
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock


@dataclass
class TransactionPipeline:
    node: NodeRpc
    keystore: "IdentityStore"
    chain_id: int
    locks: SenderLocks = field(default_factory=SenderLocks)

    @contextmanager
    def unlocked(self, identity: "Identity", secret: str) -> Iterator["Identity"]:
        """Keep ``identity`` unlocked only for the body of the ``with`` block."""
        self.keystore.unlock(identity, secret)
        try:
            yield identity
        finally:
            self.keystore.lock(identity)

    def sign(self, identity: "Identity", unsigned: UnsignedTransaction) -> SignedTransaction:
        if identity.address.lower() != unsigned.sender.lower():
            raise SigningError(
                f"Transaction sender {unsigned.sender} does not match identity {identity.address}"
            )
        return self.keystore.sign_transaction(identity, unsigned, self.chain_id)

    def broadcast(self, signed: SignedTransaction) -> str:
        tx_hash = self.node.send_raw_transaction(signed.raw)
        if tx_hash.lower() != signed.hash.lower():
            logger.warning("Node returned hash %s, expected %s", tx_hash, signed.hash)
        return tx_hash

    def submit(self, identity: "Identity", secret: str, build: BuildFn) -> TransactionRecord:
        """
        Build, sign and broadcast one transaction.

        ``build`` receives the sender's pending nonce and the node's gas
        price suggestion, both fetched while the sender lock is held.

        Returns:
            The record in state CONFIRMED

        Raises:
            EthManageError: Whatever step failed; no step is retried
        """
        with self.locks.get(identity.address):
            nonce = self.node.get_pending_nonce(identity.address)
            gas_price = self.node.suggest_gas_price()
            record = TransactionRecord(unsigned=build(nonce, gas_price))
            logger.debug("Built tx nonce=%d gasPrice=%d to=%s", nonce, gas_price, record.unsigned.to)

            try:
                with self.unlocked(identity, secret):
                    record.state = TxState.UNLOCKED
                    record.signed = self.sign(identity, record.unsigned)
                    record.state = TxState.SIGNED

                record.state = TxState.BROADCAST
                record.tx_hash = self.broadcast(record.signed)
                record.state = TxState.CONFIRMED
            except EthManageError as exc:
                record.fail(exc)
                raise

        logger.info("Transaction sent: %s", record.tx_hash)
        return record

    def transfer_native(
        self,
        identity: "Identity",
        secret: str,
        recipient: str,
        amount_wei: int,
        gas_limit: int = NATIVE_TRANSFER_GAS_LIMIT,
    ) -> TransactionRecord:
        recipient = normalize_address(recipient, "recipient address")
        if (
            not isinstance(amount_wei, int)
            or isinstance(amount_wei, bool)
            or not 0 <= amount_wei <= MAX_UINT256
        ):
            raise InvalidAmount(f"Amount must be an integer in [0, 2**256), got {amount_wei!r}")

        def build(nonce: int, gas_price: int) -> UnsignedTransaction:
            return build_value_transfer(
                identity.address, recipient, amount_wei, nonce, gas_limit, gas_price
            )

        return self.submit(identity, secret, build)

    def transfer_token(
        self,
        identity: "Identity",
        secret: str,
        token: "Token",
        recipient: str,
        amount: int,
        gas_limit: int = CONTRACT_CALL_GAS_LIMIT,
    ) -> TransactionRecord:
        call_data = token.build_transfer_data(recipient, amount)

        def build(nonce: int, gas_price: int) -> UnsignedTransaction:
            return build_contract_call(
                identity.address, token.address, call_data, nonce, gas_limit, gas_price
            )

        return self.submit(identity, secret, build)

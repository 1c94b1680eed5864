"""Unit tests for chain/pipeline.py signing and broadcast."""

from __future__ import annotations

import logging

import pytest
from eth_account import Account

from ethmanage.chain.abi import decode_call
from ethmanage.chain.pipeline import SenderLocks, TransactionPipeline, TxState
from ethmanage.chain.tx import build_value_transfer
from ethmanage.errors import (
    AuthenticationError,
    BroadcastError,
    InvalidAmount,
    InvalidRecipient,
    SigningError,
)
from ethmanage.token import Token

RECIPIENT = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
OTHER_SENDER = "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359"
TOKEN_ADDRESS = "0xdAC17F958D2ee523a2206206994597C13D831ec7"


@pytest.fixture()
def node(make_node):
    return make_node(balance=2 * 10**18, nonce=3, gas_price=20)


@pytest.fixture()
def pipeline(node, keystore) -> TransactionPipeline:
    return TransactionPipeline(node=node, keystore=keystore, chain_id=1)


class TestTransferNative:
    """ETH transfers through the full pipeline."""

    def test_builds_signs_and_broadcasts(self, pipeline, node, keystore, identity, password) -> None:
        record = pipeline.transfer_native(identity, password, RECIPIENT, 10**17)

        assert record.state is TxState.CONFIRMED
        tx = record.unsigned
        assert tx.value == 100_000_000_000_000_000
        assert tx.gas_limit == 21_000
        assert tx.nonce == 3
        assert tx.gas_price == 20
        assert tx.to == RECIPIENT

        assert node.sent == [record.signed.raw]
        assert record.tx_hash == record.signed.hash
        assert Account.recover_transaction(record.signed.raw) == identity.address
        assert keystore.sign_requests == [(tx, 1)]
        assert not keystore.is_unlocked(identity)

    def test_node_is_queried_before_unlock(self, pipeline, node, identity, password) -> None:
        pipeline.transfer_native(identity, password, RECIPIENT, 1)
        assert [kind for kind, _ in node.calls] == [
            "get_pending_nonce",
            "suggest_gas_price",
            "send_raw_transaction",
        ]

    def test_wrong_password(self, pipeline, node, keystore, identity) -> None:
        with pytest.raises(AuthenticationError):
            pipeline.transfer_native(identity, "not the password", RECIPIENT, 10**17)

        assert keystore.sign_requests == []
        assert node.sent == []
        assert not keystore.is_unlocked(identity)

    def test_broadcast_rejection_is_reported_verbatim(
        self, make_node, keystore, identity, password
    ) -> None:
        node = make_node(send_error=BroadcastError("nonce too low", code=-32000))
        pipeline = TransactionPipeline(node=node, keystore=keystore, chain_id=1)

        with pytest.raises(BroadcastError, match="^nonce too low$") as excinfo:
            pipeline.transfer_native(identity, password, RECIPIENT, 1)

        assert excinfo.value.code == -32000
        assert len(keystore.sign_requests) == 1
        assert not keystore.is_unlocked(identity)

    def test_invalid_recipient_fails_before_any_io(self, pipeline, node, keystore, identity, password) -> None:
        with pytest.raises(InvalidRecipient):
            pipeline.transfer_native(identity, password, "0x1234", 1)
        assert node.calls == []
        assert keystore.unlock_attempts == 0

    def test_negative_amount_fails_before_any_io(self, pipeline, node, keystore, identity, password) -> None:
        with pytest.raises(InvalidAmount):
            pipeline.transfer_native(identity, password, RECIPIENT, -1)
        assert node.calls == []
        assert keystore.unlock_attempts == 0

    def test_oversized_amount_fails_before_any_io(self, pipeline, node, keystore, identity, password) -> None:
        with pytest.raises(InvalidAmount):
            pipeline.transfer_native(identity, password, RECIPIENT, 2**256)
        assert node.calls == []
        assert keystore.unlock_attempts == 0

    def test_custom_gas_limit(self, pipeline, identity, password) -> None:
        record = pipeline.transfer_native(identity, password, RECIPIENT, 1, gas_limit=30_000)
        assert record.unsigned.gas_limit == 30_000

    def test_hash_mismatch_only_warns(self, pipeline, node, identity, password, caplog) -> None:
        node.send_raw_transaction = lambda raw: "0x" + "ab" * 32

        with caplog.at_level(logging.WARNING, logger="ethmanage.chain.pipeline"):
            record = pipeline.transfer_native(identity, password, RECIPIENT, 1)

        assert record.tx_hash == "0x" + "ab" * 32
        assert "expected" in caplog.text


class TestTransferToken:
    """ERC-20 transfers through the full pipeline."""

    def test_contract_call_transaction(self, pipeline, node, keystore, identity, password) -> None:
        token = Token(TOKEN_ADDRESS, 6, node)
        record = pipeline.transfer_token(identity, password, token, RECIPIENT, 1_500_000)

        tx = record.unsigned
        assert record.state is TxState.CONFIRMED
        assert tx.to == TOKEN_ADDRESS
        assert tx.value == 0
        assert tx.gas_limit == 60_000
        assert tx.nonce == 3

        name, (recipient, amount) = decode_call(token.interface, tx.data)
        assert name == "transfer"
        assert recipient == RECIPIENT.lower()
        assert amount == 1_500_000
        assert node.sent == [record.signed.raw]

    def test_invalid_recipient_fails_before_any_io(self, pipeline, node, keystore, identity, password) -> None:
        token = Token(TOKEN_ADDRESS, 6, node)
        with pytest.raises(InvalidRecipient):
            pipeline.transfer_token(identity, password, token, "not-an-address", 1)
        assert node.calls == []
        assert keystore.unlock_attempts == 0


class TestSubmit:
    """Lower-level pipeline behaviour."""

    def test_sender_must_match_identity(self, pipeline, node, keystore, identity, password) -> None:
        def build(nonce: int, gas_price: int):
            return build_value_transfer(OTHER_SENDER, RECIPIENT, 1, nonce, gas_price=gas_price)

        with pytest.raises(SigningError, match="does not match"):
            pipeline.submit(identity, password, build)

        assert keystore.sign_requests == []
        assert node.sent == []
        assert not keystore.is_unlocked(identity)

    def test_build_runs_under_sender_lock(self, pipeline, identity, password) -> None:
        held = []

        def build(nonce: int, gas_price: int):
            held.append(pipeline.locks.get(identity.address).locked())
            return build_value_transfer(identity.address, RECIPIENT, 1, nonce, gas_price=gas_price)

        pipeline.submit(identity, password, build)

        assert held == [True]
        assert not pipeline.locks.get(identity.address).locked()


class TestSenderLocks:
    def test_one_lock_per_address(self) -> None:
        locks = SenderLocks()
        assert locks.get(RECIPIENT) is locks.get(RECIPIENT.lower())
        assert locks.get(RECIPIENT) is not locks.get(OTHER_SENDER)

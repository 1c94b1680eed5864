"""Unit tests for token/client.py."""

from __future__ import annotations

import pytest
from eth_abi import encode

from ethmanage.chain.abi import decode_call
from ethmanage.errors import DecodeError, InvalidAmount, InvalidRecipient, RpcError
from ethmanage.token import Token, erc20_interface

TOKEN_ADDRESS = "0xdAC17F958D2ee523a2206206994597C13D831ec7"
HOLDER = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


class TestInterface:
    """The bundled ERC-20 interface."""

    def test_has_required_functions(self) -> None:
        interface = erc20_interface()
        assert interface.functions["balanceOf"][0].signature == "balanceOf(address)"
        assert interface.functions["balanceOf"][0].outputs == ("uint256",)
        assert interface.functions["transfer"][0].signature == "transfer(address,uint256)"
        assert interface.functions["transfer"][0].outputs == ("bool",)

    def test_loaded_once(self) -> None:
        assert erc20_interface() is erc20_interface()


class TestBalanceOf:
    """Tests for Token.balance_of."""

    def test_reads_balance_with_eth_call(self, make_node) -> None:
        node = make_node(call_result=encode(["uint256"], [5_000_000]))
        token = Token(TOKEN_ADDRESS, 6, node)

        assert token.balance_of(HOLDER) == 5_000_000

        (kind, (to, data)), = node.calls
        assert kind == "call"
        assert to == TOKEN_ADDRESS
        assert data[:4].hex() == "70a08231"
        assert data[4:] == encode(["address"], [HOLDER])

    def test_empty_reply_is_decode_error(self, make_node) -> None:
        token = Token(TOKEN_ADDRESS, 6, make_node(call_result=b""))
        with pytest.raises(DecodeError):
            token.balance_of(HOLDER)

    def test_short_reply_is_decode_error(self, make_node) -> None:
        token = Token(TOKEN_ADDRESS, 6, make_node(call_result=b"\x01\x02"))
        with pytest.raises(DecodeError):
            token.balance_of(HOLDER)

    def test_node_failure_propagates(self, make_node) -> None:
        node = make_node()

        def failing_call(to: str, data: bytes) -> bytes:
            raise RpcError("eth_call timed out after 30.0s")

        node.call = failing_call
        token = Token(TOKEN_ADDRESS, 6, node)
        with pytest.raises(RpcError, match="timed out"):
            token.balance_of(HOLDER)

    def test_rejects_bad_owner(self, make_node) -> None:
        node = make_node()
        token = Token(TOKEN_ADDRESS, 6, node)
        with pytest.raises(InvalidRecipient):
            token.balance_of("0x1234")
        assert node.calls == []


class TestBuildTransferData:
    """Tests for Token.build_transfer_data."""

    def test_decodes_back_to_recipient_and_amount(self, make_node) -> None:
        token = Token(TOKEN_ADDRESS, 6, make_node())
        data = token.build_transfer_data(HOLDER, 1_500_000)

        name, (recipient, amount) = decode_call(token.interface, data)
        assert name == "transfer"
        assert recipient.lower() == HOLDER.lower()
        assert amount == 1_500_000

    def test_no_io(self, make_node) -> None:
        node = make_node()
        Token(TOKEN_ADDRESS, 6, node).build_transfer_data(HOLDER, 1)
        assert node.calls == []

    @pytest.mark.parametrize(
        "recipient",
        [
            "",
            "0x123",
            "5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
            "0xZZAeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
            # checksum broken by flipping the case of one letter
            "0x5AAeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
        ],
    )
    def test_rejects_malformed_recipient(self, make_node, recipient: str) -> None:
        token = Token(TOKEN_ADDRESS, 6, make_node())
        with pytest.raises(InvalidRecipient):
            token.build_transfer_data(recipient, 1)

    def test_accepts_lowercase_recipient(self, make_node) -> None:
        token = Token(TOKEN_ADDRESS, 6, make_node())
        assert token.build_transfer_data(HOLDER.lower(), 1) == token.build_transfer_data(HOLDER, 1)

    def test_rejects_negative_amount(self, make_node) -> None:
        token = Token(TOKEN_ADDRESS, 6, make_node())
        with pytest.raises(InvalidAmount):
            token.build_transfer_data(HOLDER, -1)

    def test_amount_must_fit_uint256(self, make_node) -> None:
        token = Token(TOKEN_ADDRESS, 6, make_node())
        with pytest.raises(InvalidAmount):
            token.build_transfer_data(HOLDER, 2**256)
        _, (_, amount) = decode_call(token.interface, token.build_transfer_data(HOLDER, 2**256 - 1))
        assert amount == 2**256 - 1


class TestConstruction:
    """Tests for Token construction and unit helpers."""

    def test_rejects_bad_contract_address(self, make_node) -> None:
        with pytest.raises(InvalidRecipient):
            Token("0xnope", 6, make_node())

    def test_rejects_negative_decimals(self, make_node) -> None:
        with pytest.raises(InvalidAmount):
            Token(TOKEN_ADDRESS, -1, make_node())

    def test_unit_helpers_use_token_decimals(self, make_node) -> None:
        token = Token(TOKEN_ADDRESS.lower(), 6, make_node())
        assert token.address == TOKEN_ADDRESS
        assert token.to_base_units("1.5") == 1_500_000
        assert token.format_amount(5_000_000) == "5.000000"

"""
Transfer commands - send ETH or ERC-20 tokens from a keystore account.

Nonce and gas price come from the node at send time. Gas limits are
fixed (GAS_LIMIT_TRANSFER / GAS_LIMIT_TOKEN or --gas-limit); a token whose
transfer needs more gas is rejected by the node.
"""

from __future__ import annotations

from typing import Optional

import click

from ..keystore import select
from ..runtime import Runtime
from ..token import Token
from ..units import DEFAULT_TOKEN_DECIMALS, parse_ether
from . import handle_errors


@click.command("transfer-eth")
@click.option("--from", "from_index", required=True, type=int, help="Index of the sending account")
@click.option("--to", "recipient", required=True, help="Recipient address")
@click.option("--amount", required=True, help="Amount of ETH to transfer (e.g. 0.1)")
@click.option("--gas-limit", default=None, type=click.IntRange(min=1), help="Override the gas limit")
@click.pass_obj
@handle_errors
def transfer_eth(
    runtime: Runtime,
    from_index: int,
    recipient: str,
    amount: str,
    gas_limit: Optional[int],
) -> None:
    """Transfer ETH to another address."""
    identity = select(runtime.keystore.list_identities(), from_index)
    value = parse_ether(amount)
    secret = runtime.settings.require_password()

    record = runtime.pipeline().transfer_native(
        identity,
        secret,
        recipient,
        value,
        gas_limit=gas_limit or runtime.settings.transfer_gas_limit,
    )
    click.echo(f"Transaction sent: {record.tx_hash}")


@click.command("transfer-token")
@click.option("--from", "from_index", required=True, type=int, help="Index of the sending account")
@click.option("--to", "recipient", required=True, help="Recipient address")
@click.option("--amount", required=True, help="Amount of tokens to transfer (e.g. 1.5)")
@click.option("--token-address", required=True, help="Token contract address")
@click.option(
    "--decimal",
    default=DEFAULT_TOKEN_DECIMALS,
    show_default=True,
    type=click.IntRange(min=0),
    help="Token decimals",
)
@click.option("--gas-limit", default=None, type=click.IntRange(min=1), help="Override the gas limit")
@click.pass_obj
@handle_errors
def transfer_token(
    runtime: Runtime,
    from_index: int,
    recipient: str,
    amount: str,
    token_address: str,
    decimal: int,
    gas_limit: Optional[int],
) -> None:
    """Transfer tokens to another address."""
    identity = select(runtime.keystore.list_identities(), from_index)
    token = Token(token_address, decimal, runtime.node)
    raw_amount = token.to_base_units(amount)
    secret = runtime.settings.require_password()

    record = runtime.pipeline().transfer_token(
        identity,
        secret,
        token,
        recipient,
        raw_amount,
        gas_limit=gas_limit or runtime.settings.token_gas_limit,
    )
    click.echo(f"Token transfer transaction sent: {record.tx_hash}")

from __future__ import annotations

import click

from ..keystore import select
from ..runtime import Runtime
from ..token import Token
from ..units import DEFAULT_TOKEN_DECIMALS, format_ether
from . import handle_errors


@click.command("check-balance")
@click.option("--index", required=True, type=int, help="Account index to check balance")
@click.option("--token-address", required=True, help="Token contract address")
@click.option(
    "--decimal",
    default=DEFAULT_TOKEN_DECIMALS,
    show_default=True,
    type=click.IntRange(min=0),
    help="Token decimals",
)
@click.pass_obj
@handle_errors
def check_balance(runtime: Runtime, index: int, token_address: str, decimal: int) -> None:
    """Check ETH and token balances."""
    identity = select(runtime.keystore.list_identities(), index)
    token = Token(token_address, decimal, runtime.node)

    eth_balance = runtime.node.get_balance(identity.address)
    click.echo(f"ETH Balance of {identity.address}: {format_ether(eth_balance)}")

    token_balance = token.balance_of(identity.address)
    click.echo(f"Token Balance of {identity.address}: {token.format_amount(token_balance)}")

"""
Account commands - create and list keystore identities.
"""

from __future__ import annotations

import click

from ..runtime import Runtime
from . import handle_errors


@click.command("create-account")
@click.pass_obj
@handle_errors
def create_account(runtime: Runtime) -> None:
    """Create a new Ethereum account in the keystore."""
    secret = runtime.settings.require_password()
    identity = runtime.keystore.create_identity(secret)
    click.echo(f"Account created: {identity.address}")


@click.command("list-accounts")
@click.pass_obj
@handle_errors
def list_accounts(runtime: Runtime) -> None:
    """List all Ethereum accounts in the keystore."""
    identities = runtime.keystore.list_identities()
    if not identities:
        click.echo("No accounts found.")
        return

    for index, identity in enumerate(identities):
        click.echo(f"Index: {index}, Address: {identity.address}")

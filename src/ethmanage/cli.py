"""
ethmanage CLI

Command-line interface for keystore-backed Ethereum accounts.

Configuration comes from the environment or a .env file (see
``ethmanage.config``).

Commands:
  create-account  - Create a new encrypted keystore account
  list-accounts   - List keystore accounts with their indexes
  check-balance   - Show ETH and ERC-20 token balance of an account
  transfer-eth    - Send ETH from an account
  transfer-token  - Send ERC-20 tokens from an account
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .runtime import Runtime


# ============ Constants ============

VERSION = "1.0.0"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


# ============ Main CLI Group ============


@click.group(invoke_without_command=True)
@click.version_option(version=VERSION, prog_name="ethmanage")
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Load configuration from this file instead of ./.env",
)
@click.option("-v", "--verbose", is_flag=True, help="Log RPC and signing activity")
@click.pass_context
def cli(ctx: click.Context, env_file: Optional[Path], verbose: bool) -> None:
    """ethmanage - Ethereum account and transfer CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )

    if ctx.obj is None:
        runtime = Runtime(env_file=env_file)
        ctx.obj = runtime
        ctx.call_on_close(runtime.close)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ============ Top-level Commands ============

from .commands.accounts import create_account, list_accounts
from .commands.balance import check_balance
from .commands.transfer import transfer_eth, transfer_token

cli.add_command(create_account)
cli.add_command(list_accounts)
cli.add_command(check_balance)
cli.add_command(transfer_eth)
cli.add_command(transfer_token)


# ============ Entry Points ============


def main() -> None:
    """ethmanage CLI entry point."""
    cli()


if __name__ == "__main__":
    main()

"""
Runtime configuration.

Settings are read once from the process environment (after loading a
``.env`` file with python-dotenv) and handed to each component explicitly.

Variables:
    KEYSTORE_DIR        Directory holding V3 keystore files (default: ./keystore)
    KEYSTORE_PASSWORD   Secret used to create and unlock identities
    ETH_NODE_URL        Full JSON-RPC endpoint; overrides the Infura template
    INFURA_KEY          Project key for https://{NETWORK}.infura.io/v3/{INFURA_KEY}
    NETWORK             Network name (default: mainnet)
    CHAIN_ID            EIP-155 chain id (default: derived from NETWORK)
    RPC_TIMEOUT         Seconds before a node call is abandoned (default: 30)
    GAS_LIMIT_TRANSFER  Gas limit for ETH transfers (default: 21000)
    GAS_LIMIT_TOKEN     Gas limit for token transfers (default: 60000)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import dotenv_values, find_dotenv, load_dotenv

from .chain.tx import CONTRACT_CALL_GAS_LIMIT, NATIVE_TRANSFER_GAS_LIMIT
from .errors import ConfigurationError

DEFAULT_KEYSTORE_DIR = Path("keystore")
DEFAULT_NETWORK = "mainnet"
DEFAULT_RPC_TIMEOUT = 30.0
NODE_URL_TEMPLATE = "https://{network}.infura.io/v3/{infura_key}"

KNOWN_CHAIN_IDS: dict[str, int] = {
    "mainnet": 1,
    "sepolia": 11155111,
    "holesky": 17000,
}


@dataclass(frozen=True)
class Settings:
    keystore_dir: Path
    keystore_password: Optional[str]
    node_url: Optional[str]
    network: str
    chain_id: int
    rpc_timeout: float = DEFAULT_RPC_TIMEOUT
    transfer_gas_limit: int = NATIVE_TRANSFER_GAS_LIMIT
    token_gas_limit: int = CONTRACT_CALL_GAS_LIMIT

    def require_password(self) -> str:
        if not self.keystore_password:
            raise ConfigurationError(
                "KEYSTORE_PASSWORD not set. Add it to your .env file or environment."
            )
        return self.keystore_password

    def require_node_url(self) -> str:
        if not self.node_url:
            raise ConfigurationError(
                "No node endpoint configured. Set ETH_NODE_URL, or INFURA_KEY "
                "together with NETWORK."
            )
        return self.node_url


def _int_setting(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw.strip(), 0)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{key} must be positive, got {value}")
    return value


def _float_setting(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{key} must be positive, got {value}")
    return value


def settings_from_env(env: Mapping[str, str]) -> Settings:
    """Build settings from an environment mapping (no file loading)."""
    network = (env.get("NETWORK") or DEFAULT_NETWORK).strip()

    node_url = env.get("ETH_NODE_URL") or None
    infura_key = env.get("INFURA_KEY")
    if node_url is None and infura_key:
        node_url = NODE_URL_TEMPLATE.format(network=network, infura_key=infura_key)

    if env.get("CHAIN_ID"):
        chain_id = _int_setting(env, "CHAIN_ID", 1)
    elif network in KNOWN_CHAIN_IDS:
        chain_id = KNOWN_CHAIN_IDS[network]
    else:
        raise ConfigurationError(
            f"Unknown network {network!r}; set CHAIN_ID explicitly."
        )

    return Settings(
        keystore_dir=Path(env.get("KEYSTORE_DIR") or DEFAULT_KEYSTORE_DIR).expanduser(),
        keystore_password=env.get("KEYSTORE_PASSWORD") or None,
        node_url=node_url,
        network=network,
        chain_id=chain_id,
        rpc_timeout=_float_setting(env, "RPC_TIMEOUT", DEFAULT_RPC_TIMEOUT),
        transfer_gas_limit=_int_setting(env, "GAS_LIMIT_TRANSFER", NATIVE_TRANSFER_GAS_LIMIT),
        token_gas_limit=_int_setting(env, "GAS_LIMIT_TOKEN", CONTRACT_CALL_GAS_LIMIT),
    )


def load_settings(
    env_file: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Load settings from ``env_file`` (or ``./.env``) and the environment.

    Values already present in the environment win over the file. When
    ``environ`` is given it is used instead of ``os.environ`` and the
    process environment is left untouched.

    Raises:
        ConfigurationError: If a file was given but does not exist, or a
            value is invalid
    """
    if env_file is not None:
        if not env_file.exists():
            raise ConfigurationError(f"Env file not found: {env_file}")
        dotenv_path = str(env_file)
    else:
        dotenv_path = find_dotenv(usecwd=True)

    if environ is not None:
        values = {k: v for k, v in dotenv_values(dotenv_path).items() if v is not None}
        values.update(environ)
        return settings_from_env(values)

    load_dotenv(dotenv_path, override=False)
    return settings_from_env(os.environ)

"""
Per-invocation wiring of settings, keystore and node.

Components are created lazily so commands that never touch the node
(``list-accounts``) do not need a node endpoint configured. Tests inject
their own keystore and node through the constructor.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .chain.pipeline import TransactionPipeline
from .chain.rpc import NodeClient, NodeRpc
from .config import Settings, load_settings
from .keystore import IdentityStore, KeystoreDir


class Runtime:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        keystore: Optional[IdentityStore] = None,
        node: Optional[NodeRpc] = None,
        env_file: Optional[Path] = None,
    ) -> None:
        self._settings = settings
        self._keystore = keystore
        self._node = node
        self._env_file = env_file
        self._owned_client: Optional[NodeClient] = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = load_settings(self._env_file)
        return self._settings

    @property
    def keystore(self) -> IdentityStore:
        if self._keystore is None:
            self._keystore = KeystoreDir(self.settings.keystore_dir)
        return self._keystore

    @property
    def node(self) -> NodeRpc:
        if self._node is None:
            settings = self.settings
            self._owned_client = NodeClient(
                settings.require_node_url(), timeout=settings.rpc_timeout
            )
            self._node = self._owned_client
        return self._node

    def pipeline(self) -> TransactionPipeline:
        return TransactionPipeline(
            node=self.node, keystore=self.keystore, chain_id=self.settings.chain_id
        )

    def close(self) -> None:
        if self._owned_client is not None:
            self._owned_client.close()
            self._owned_client = None

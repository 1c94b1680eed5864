"""
JSON-RPC client for Ethereum nodes.

Lightweight alternative to web3.py: httpx for HTTP, hex decoding by hand.
Every request runs under the client's explicit timeout; transport failures,
timeouts and JSON-RPC error objects all surface as ``RpcError``.
"""

from __future__ import annotations

import itertools
import logging
import re
from typing import Any, Optional, Protocol

import httpx

from ..errors import BroadcastError, RpcError
from ..utils import bytes_to_hex, hex_to_bytes

logger = logging.getLogger(__name__)


class NodeRpc(Protocol):
    def get_balance(self, address: str) -> int:
        ...

    def get_pending_nonce(self, address: str) -> int:
        ...

    def suggest_gas_price(self) -> int:
        ...

    def call(self, to: str, data: bytes) -> bytes:
        ...

    def send_raw_transaction(self, raw_tx: bytes) -> str:
        ...


_HEX_QUANTITY = re.compile(r"0x[0-9a-fA-F]+")


def _parse_quantity(result: Any, method: str) -> int:
    if not isinstance(result, str) or not _HEX_QUANTITY.fullmatch(result):
        raise RpcError(f"{method} returned a non-hex result: {result!r}")
    return int(result, 16)


class NodeClient:
    """Synchronous JSON-RPC client bound to one endpoint."""

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._ids = itertools.count(1)
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "NodeClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def request(self, method: str, params: list) -> Any:
        """
        Make a JSON-RPC call.

        Args:
            method: RPC method name (e.g., "eth_call")
            params: RPC parameters

        Returns:
            Result field from the RPC response

        Raises:
            RpcError: On transport failure, timeout, bad payload, or an
                error object in the response (``code`` is set then)
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._ids),
        }
        logger.debug("rpc %s -> %s", method, self.url)

        try:
            response = self._client.post(self.url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as exc:
            raise RpcError(f"{method} timed out after {self.timeout}s") from exc
        except httpx.HTTPStatusError as exc:
            raise RpcError(
                f"{method} failed: HTTP {exc.response.status_code} from node"
            ) from exc
        except httpx.HTTPError as exc:
            raise RpcError(f"{method} failed: {exc}") from exc
        except ValueError as exc:
            raise RpcError(f"{method} returned invalid JSON") from exc

        if not isinstance(data, dict):
            raise RpcError(f"{method} returned a malformed response")

        error = data.get("error")
        if error is not None:
            if isinstance(error, dict):
                raise RpcError(str(error.get("message", error)), code=error.get("code"))
            raise RpcError(str(error))

        if "result" not in data:
            raise RpcError(f"{method} response has no result")
        return data["result"]

    def get_balance(self, address: str) -> int:
        """Balance in wei at the latest block."""
        return _parse_quantity(
            self.request("eth_getBalance", [address, "latest"]), "eth_getBalance"
        )

    def get_pending_nonce(self, address: str) -> int:
        """Nonce including transactions still in the node's pending pool."""
        return _parse_quantity(
            self.request("eth_getTransactionCount", [address, "pending"]),
            "eth_getTransactionCount",
        )

    def suggest_gas_price(self) -> int:
        return _parse_quantity(self.request("eth_gasPrice", []), "eth_gasPrice")

    def chain_id(self) -> int:
        return _parse_quantity(self.request("eth_chainId", []), "eth_chainId")

    def call(self, to: str, data: bytes) -> bytes:
        """Read-only contract call (eth_call) at the latest block."""
        result = self.request(
            "eth_call", [{"to": to, "data": bytes_to_hex(data)}, "latest"]
        )
        if not isinstance(result, str):
            raise RpcError(f"eth_call returned a non-hex result: {result!r}")
        try:
            return hex_to_bytes(result)
        except ValueError as exc:
            raise RpcError(f"eth_call returned a non-hex result: {result!r}") from exc

    def send_raw_transaction(self, raw_tx: bytes) -> str:
        """
        Submit a signed transaction.

        Returns:
            Transaction hash (0x-prefixed hex)

        Raises:
            BroadcastError: If the node rejects the transaction
            RpcError: If the node cannot be reached
        """
        try:
            result = self.request("eth_sendRawTransaction", [bytes_to_hex(raw_tx)])
        except RpcError as exc:
            if exc.code is None:
                raise
            raise BroadcastError(str(exc), code=exc.code) from exc
        if not isinstance(result, str):
            raise RpcError(f"eth_sendRawTransaction returned {result!r}")
        return result

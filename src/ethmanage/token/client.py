"""
Token Client - ERC-20 balance reads and transfer call-data.

The ERC-20 interface is bundled with the package (``erc20.json``) and
parsed once per process. Token decimals are always supplied by the caller;
they are never read from the contract.
"""

from __future__ import annotations

from functools import lru_cache
from importlib import resources
from typing import Optional

from ..chain.abi import ContractInterface, decode_result, encode_call, load_interface
from ..chain.rpc import NodeRpc
from ..errors import DecodeError, InterfaceLoadFailed, InvalidAmount, MalformedInterface
from ..units import MAX_UINT256, from_base_units, to_base_units
from ..utils import normalize_address

ERC20_INTERFACE_RESOURCE = "erc20.json"


@lru_cache(maxsize=1)
def erc20_interface() -> ContractInterface:
    """
    Load the bundled ERC-20 interface.

    Raises:
        InterfaceLoadFailed: If the resource is missing or malformed
    """
    try:
        source = resources.files(__package__).joinpath(ERC20_INTERFACE_RESOURCE).read_bytes()
    except OSError as exc:
        raise InterfaceLoadFailed(f"Failed to load token ABI: {exc}") from exc
    try:
        return load_interface(source)
    except MalformedInterface as exc:
        raise InterfaceLoadFailed(f"Failed to parse token ABI: {exc}") from exc


class Token:
    """
    ERC-20 contract bound to a node.

    Args:
        address: Token contract address
        decimals: Decimal places of the token's display unit
        node: Node used for read-only calls
        interface: Interface override (default: bundled ERC-20)
    """

    def __init__(
        self,
        address: str,
        decimals: int,
        node: NodeRpc,
        interface: Optional[ContractInterface] = None,
    ) -> None:
        if not isinstance(decimals, int) or decimals < 0:
            raise InvalidAmount(f"Token decimals must be a non-negative integer, got {decimals!r}")
        self.address = normalize_address(address, "token address")
        self.decimals = decimals
        self.node = node
        self.interface = interface if interface is not None else erc20_interface()

    def __repr__(self) -> str:
        return f"Token({self.address}, decimals={self.decimals})"

    def balance_of(self, owner: str) -> int:
        """
        Read ``balanceOf(owner)`` with eth_call.

        Raises:
            InvalidRecipient: If ``owner`` is malformed
            RpcError: If the node call fails
            DecodeError: If the reply is not a single uint256
        """
        owner = normalize_address(owner, "owner address")
        data = encode_call(self.interface, "balanceOf", [owner])
        result = self.node.call(self.address, data)
        values = decode_result(self.interface, "balanceOf", result)
        if len(values) != 1 or not isinstance(values[0], int):
            raise DecodeError(f"balanceOf returned {values!r}")
        return values[0]

    def build_transfer_data(self, recipient: str, amount: int) -> bytes:
        """
        Encode ``transfer(recipient, amount)`` call-data. No I/O.

        Raises:
            InvalidRecipient: If ``recipient`` is malformed
            InvalidAmount: If ``amount`` is negative or not an integer
        """
        recipient = normalize_address(recipient, "recipient address")
        if not isinstance(amount, int) or isinstance(amount, bool) or not 0 <= amount <= MAX_UINT256:
            raise InvalidAmount(f"Token amount must be an integer in [0, 2**256), got {amount!r}")
        return encode_call(self.interface, "transfer", [recipient, amount])

    def to_base_units(self, human: str) -> int:
        return to_base_units(human, self.decimals)

    def format_amount(self, amount: int) -> str:
        return from_base_units(amount, self.decimals)

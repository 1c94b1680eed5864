"""
Contract interface encoding.

Parses a JSON ABI once into an immutable ``ContractInterface`` and encodes
function calls / decodes results with eth-abi. Selectors are the first four
bytes of the Keccak-256 hash of the canonical signature text.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Sequence

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_abi.registry import registry

from ..errors import ArgumentMismatch, DecodeError, MalformedInterface, UnknownFunction
from ..utils import keccak256


def _canonical_type(param: Mapping[str, Any]) -> str:
    """Render an ABI parameter as its canonical type string (tuples expanded)."""
    type_str = param.get("type")
    if not isinstance(type_str, str) or not type_str:
        raise MalformedInterface(f"Parameter without type: {param!r}")
    if type_str.startswith("tuple"):
        components = param.get("components")
        if not isinstance(components, list):
            raise MalformedInterface(f"Tuple parameter without components: {param!r}")
        inner = ",".join(_canonical_type(c) for c in components)
        return f"({inner}){type_str[len('tuple'):]}"
    return type_str


def function_selector(signature: str) -> bytes:
    """4-byte selector for a canonical signature such as ``transfer(address,uint256)``."""
    return keccak256(signature.encode("utf-8"))[:4]


@dataclass(frozen=True)
class FunctionSignature:
    name: str
    inputs: tuple[str, ...]
    outputs: tuple[str, ...]

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        return function_selector(self.signature)


@dataclass(frozen=True)
class ContractInterface:
    functions: Mapping[str, tuple[FunctionSignature, ...]]

    def overloads(self, function_name: str) -> tuple[FunctionSignature, ...]:
        found = self.functions.get(function_name)
        if not found:
            raise UnknownFunction(f"Function {function_name} not found in ABI")
        return found

    def by_selector(self, selector: bytes) -> FunctionSignature:
        for candidates in self.functions.values():
            for func in candidates:
                if func.selector == selector:
                    return func
        raise UnknownFunction(f"No function with selector 0x{selector.hex()}")


def load_interface(source: bytes) -> ContractInterface:
    """
    Parse a JSON ABI.

    Accepts either a bare ABI list or a compiler artifact object holding
    the list under ``"abi"``. Non-function entries (events, errors,
    constructor) are ignored.

    Raises:
        MalformedInterface: If the source is not a valid ABI
    """
    try:
        payload = json.loads(source)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedInterface(f"Interface is not valid JSON: {exc}") from exc

    if isinstance(payload, dict):
        payload = payload.get("abi")
    if not isinstance(payload, list):
        raise MalformedInterface("Interface must be a JSON list of ABI entries")

    functions: dict[str, list[FunctionSignature]] = {}
    for entry in payload:
        if not isinstance(entry, dict):
            raise MalformedInterface(f"ABI entry is not an object: {entry!r}")
        if entry.get("type", "function") != "function":
            continue
        name = entry.get("name")
        if not isinstance(name, str) or not name:
            raise MalformedInterface(f"Function entry without name: {entry!r}")
        inputs = entry.get("inputs", [])
        outputs = entry.get("outputs", [])
        if not isinstance(inputs, list) or not isinstance(outputs, list):
            raise MalformedInterface(f"Bad inputs/outputs for function {name}")

        func = FunctionSignature(
            name=name,
            inputs=tuple(_canonical_type(p) for p in inputs),
            outputs=tuple(_canonical_type(p) for p in outputs),
        )
        for type_str in func.inputs + func.outputs:
            if not registry.has_encoder(type_str):
                raise MalformedInterface(
                    f"Unsupported type {type_str!r} in function {name}"
                )
        functions.setdefault(name, []).append(func)

    return ContractInterface(
        functions=MappingProxyType({k: tuple(v) for k, v in functions.items()})
    )


def _encode_args(func: FunctionSignature, arguments: Sequence[Any]) -> bytes:
    try:
        return encode(list(func.inputs), list(arguments))
    except (EncodingError, TypeError, ValueError, OverflowError) as exc:
        raise ArgumentMismatch(f"Arguments do not match {func.signature}: {exc}") from exc


def encode_call(
    interface: ContractInterface,
    function_name: str,
    arguments: Sequence[Any],
) -> bytes:
    """
    ABI-encode a function call.

    Overloads are tried in declaration order; the first one whose arity
    and types accept ``arguments`` wins.

    Returns:
        Selector followed by the encoded arguments

    Raises:
        UnknownFunction: If the interface has no such function
        ArgumentMismatch: If no overload accepts the arguments
    """
    candidates = interface.overloads(function_name)
    arguments = list(arguments)

    last_error: ArgumentMismatch | None = None
    for func in candidates:
        if len(func.inputs) != len(arguments):
            continue
        try:
            encoded_args = _encode_args(func, arguments) if arguments else b""
        except ArgumentMismatch as exc:
            last_error = exc
            continue
        return func.selector + encoded_args

    if last_error is not None:
        raise last_error
    arities = ", ".join(str(len(f.inputs)) for f in candidates)
    raise ArgumentMismatch(
        f"{function_name} takes {arities} argument(s), got {len(arguments)}"
    )


def _decode(types: Sequence[str], data: bytes, what: str) -> tuple[Any, ...]:
    try:
        return tuple(decode(list(types), bytes(data)))
    except (DecodingError, TypeError, ValueError, OverflowError) as exc:
        raise DecodeError(f"Cannot decode {what}: {exc}") from exc


def decode_result(
    interface: ContractInterface,
    function_name: str,
    data: bytes,
) -> tuple[Any, ...]:
    """
    ABI-decode the return data of a call.

    Raises:
        UnknownFunction: If the interface has no such function
        DecodeError: If the data is truncated or malformed
    """
    func = interface.overloads(function_name)[0]
    if not func.outputs:
        return ()
    if not data:
        raise DecodeError(f"Empty result for {func.signature}")
    return _decode(func.outputs, data, f"result of {func.signature}")


def decode_call(interface: ContractInterface, data: bytes) -> tuple[str, tuple[Any, ...]]:
    """Split call-data back into ``(function_name, arguments)``."""
    if len(data) < 4:
        raise DecodeError("Call data shorter than a selector")
    func = interface.by_selector(bytes(data[:4]))
    if not func.inputs:
        return func.name, ()
    return func.name, _decode(func.inputs, data[4:], f"arguments of {func.signature}")

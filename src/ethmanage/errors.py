"""
Error kinds for ethmanage.

Every failure is raised as a distinct subclass of ``EthManageError``.
Library code never renders errors; the CLI prints the message and exits
with the class's ``exit_code``.
"""

from __future__ import annotations

from typing import Optional


class EthManageError(RuntimeError):
    exit_code: int = 1


class ConfigurationError(EthManageError):
    exit_code = 2


class InvalidAmount(EthManageError):
    exit_code = 3


class InvalidRecipient(EthManageError):
    exit_code = 4


class IndexOutOfRange(EthManageError):
    exit_code = 5


class InterfaceLoadFailed(EthManageError):
    exit_code = 6


class AbiError(EthManageError):
    """Base for contract interface encoding failures."""

    exit_code = 7


class MalformedInterface(AbiError):
    pass


class UnknownFunction(AbiError):
    pass


class ArgumentMismatch(AbiError):
    pass


class DecodeError(AbiError):
    pass


class AuthenticationError(EthManageError):
    exit_code = 8


class SigningError(EthManageError):
    exit_code = 9


class RpcError(EthManageError):
    """Node unreachable, timed out, or answered with a JSON-RPC error."""

    exit_code = 10

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.code = code


class BroadcastError(RpcError):
    """The node refused a signed transaction."""

    exit_code = 11


class KeystoreError(EthManageError):
    """The keystore directory cannot be read or written."""

    exit_code = 12


__all__ = [
    "AbiError",
    "ArgumentMismatch",
    "AuthenticationError",
    "BroadcastError",
    "ConfigurationError",
    "DecodeError",
    "EthManageError",
    "IndexOutOfRange",
    "InterfaceLoadFailed",
    "InvalidAmount",
    "InvalidRecipient",
    "KeystoreError",
    "MalformedInterface",
    "RpcError",
    "SigningError",
    "UnknownFunction",
]

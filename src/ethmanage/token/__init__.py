from .client import Token, erc20_interface

__all__ = ["Token", "erc20_interface"]

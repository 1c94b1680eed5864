"""
Keystore - local encrypted identities and transaction signing.
"""

from .store import Identity, IdentityStore, KeystoreDir, select

__all__ = ["Identity", "IdentityStore", "KeystoreDir", "select"]

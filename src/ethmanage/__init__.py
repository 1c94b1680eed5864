__all__ = [
    # Amounts
    "ETH_DECIMALS",
    "from_base_units",
    "to_base_units",
    # Contract interface
    "ContractInterface",
    "decode_call",
    "decode_result",
    "encode_call",
    "load_interface",
    # Transactions
    "SignedTransaction",
    "TransactionPipeline",
    "TransactionRecord",
    "TxState",
    "UnsignedTransaction",
    "build_contract_call",
    "build_value_transfer",
    # Node
    "NodeClient",
    "NodeRpc",
    # Keystore
    "Identity",
    "IdentityStore",
    "KeystoreDir",
    # Token
    "Token",
    # Config
    "Settings",
    "load_settings",
]

from .units import ETH_DECIMALS, from_base_units, to_base_units
from .chain.abi import ContractInterface, decode_call, decode_result, encode_call, load_interface
from .chain.tx import (
    SignedTransaction,
    UnsignedTransaction,
    build_contract_call,
    build_value_transfer,
)
from .chain.pipeline import TransactionPipeline, TransactionRecord, TxState
from .chain.rpc import NodeClient, NodeRpc
from .keystore import Identity, IdentityStore, KeystoreDir
from .token import Token
from .config import Settings, load_settings

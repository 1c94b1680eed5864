"""
Chain - On-chain interaction layer for ethmanage.

Provides the JSON-RPC node client, contract interface encoding,
transaction building and the signing/broadcast pipeline.

Uses httpx + eth-account + eth-abi instead of the heavyweight web3.py.
"""

"""
UTXO provider implementations.

Available providers:
- SnapshotProvider: JSON snapshot files, one per wallet
- EsploraProvider: Esplora / mempool.space compatible REST API
"""

from utxohealth.providers.base import UTXOProvider
from utxohealth.providers.esplora import EsploraProvider
from utxohealth.providers.snapshot import SnapshotProvider

__all__ = [
    "EsploraProvider",
    "SnapshotProvider",
    "UTXOProvider",
]

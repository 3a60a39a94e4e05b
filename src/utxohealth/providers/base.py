"""
Base UTXO provider interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class UTXOProvider(ABC):
    """
    Source of raw UTXO records for a wallet.

    Implementations return one snapshot per call as a list of records:

        {"txid", "voutIndex", "value", "address", "scriptKind", "confirmations",
         "blockHeight" (optional), "isFinal" (optional)}

    Any failure (timeout, unreachable service, malformed response) is raised
    as ProviderError. Providers never retry on their own.
    """

    @abstractmethod
    async def get_utxos(self, wallet_id: str) -> list[dict[str, Any]]:
        """Fetch the current UTXO snapshot of a wallet"""

    async def close(self) -> None:
        """Release provider resources"""
        pass

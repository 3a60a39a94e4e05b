"""
Esplora REST API UTXO provider.

Works against any Esplora-compatible API (Blockstream Esplora, mempool.space).
The API only reports addresses, so the script kind is derived from the address
and confirmations are computed from the current tip height.
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from utxohealth.address import script_kind_for_address
from utxohealth.errors import ProviderError
from utxohealth.providers.base import UTXOProvider

DEFAULT_TIMEOUT = 30.0


class EsploraProvider(UTXOProvider):
    """
    UTXO provider backed by an Esplora REST API.

    A wallet is the set of addresses the provider is configured with.
    """

    def __init__(
        self,
        api_url: str = "https://mempool.space/api",
        addresses: list[str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.addresses = list(addresses or [])
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def _api_get(self, endpoint: str) -> Any:
        url = f"{self.api_url}/{endpoint}"

        try:
            response = await self.client.get(url)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.error(f"Esplora request timed out: {endpoint} - {e}")
            raise ProviderError(f"Timeout fetching {url}") from e
        except httpx.HTTPError as e:
            logger.error(f"Esplora request failed: {endpoint} - {e}")
            raise ProviderError(f"Request to {url} failed: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"Malformed response from {url}") from e

    async def get_tip_height(self) -> int:
        result = await self._api_get("blocks/tip/height")
        if isinstance(result, bool) or not isinstance(result, int):
            raise ProviderError(f"Malformed tip height: {result!r}")
        return result

    def _to_record(self, address: str, entry: dict[str, Any], tip_height: int) -> dict[str, Any]:
        status = entry.get("status") or {}
        block_height = status.get("block_height") if status.get("confirmed") else None
        confirmations = tip_height - block_height + 1 if block_height is not None else 0

        return {
            "txid": entry.get("txid"),
            "voutIndex": entry.get("vout"),
            "value": entry.get("value"),
            "address": address,
            "scriptKind": script_kind_for_address(address),
            "confirmations": max(0, confirmations),
            "blockHeight": block_height,
        }

    async def get_utxos(self, wallet_id: str) -> list[dict[str, Any]]:
        if not self.addresses:
            raise ProviderError(f"No addresses configured for wallet '{wallet_id}'")

        tip_height = await self.get_tip_height()
        records: list[dict[str, Any]] = []

        for address in self.addresses:
            entries = await self._api_get(f"address/{address}/utxo")
            if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
                raise ProviderError(f"Malformed UTXO list for address {address}")
            records.extend(self._to_record(address, entry, tip_height) for entry in entries)

        logger.info(
            f"Fetched {len(records)} UTXOs for '{wallet_id}' "
            f"across {len(self.addresses)} address(es) at height {tip_height}"
        )
        return records

    async def close(self) -> None:
        await self.client.aclose()

"""
File-based UTXO provider.

Reads wallet snapshots from <directory>/<wallet>.json. A snapshot is either a
list of UTXO records or an object with a "utxos" list.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

from loguru import logger

from utxohealth.errors import ProviderError
from utxohealth.providers.base import UTXOProvider


class SnapshotProvider(UTXOProvider):
    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def snapshot_path(self, wallet_id: str) -> Path:
        if not wallet_id or "/" in wallet_id or "\\" in wallet_id or wallet_id.startswith("."):
            raise ProviderError(f"Invalid wallet name: {wallet_id!r}")
        return self.directory / f"{wallet_id}.json"

    async def get_utxos(self, wallet_id: str) -> list[dict[str, Any]]:
        path = self.snapshot_path(wallet_id)

        try:
            raw = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError as e:
            raise ProviderError(f"No snapshot for wallet '{wallet_id}' at {path}") from e
        except OSError as e:
            raise ProviderError(f"Could not read snapshot {path}: {e}") from e

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ProviderError(f"Malformed snapshot {path}: {e}") from e

        records = document.get("utxos") if isinstance(document, dict) else document
        if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
            raise ProviderError(f"Malformed snapshot {path}: expected a list of UTXO records")

        logger.debug(f"Loaded {len(records)} UTXO records for '{wallet_id}' from {path}")
        return records

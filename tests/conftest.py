"""
Pytest configuration and fixtures for wallet health tests.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

import pytest

from utxohealth.models import UTXO

UTXOFactory = Callable[..., UTXO]


def txid_for(index: int) -> str:
    """Deterministic 64-hex txid for test outputs"""
    return f"{index:064x}"


@pytest.fixture
def make_utxo() -> UTXOFactory:
    """Factory for UTXOs with sensible spendable defaults."""

    def _make(
        index: int,
        value: int = 105_000,
        confirmations: int = 10,
        address: str | None = None,
        script_kind: str = "p2wpkh",
        txid: str | None = None,
        vout: int = 0,
        is_final: bool = False,
        token_id: str | None = None,
    ) -> UTXO:
        return UTXO(
            txid=txid if txid is not None else txid_for(index),
            vout=vout,
            value=value,
            address=address or f"bc1qaddress{index:04d}",
            script_kind=script_kind,
            confirmations=confirmations,
            is_final=is_final,
            token_id=token_id,
        )

    return _make


@pytest.fixture
def healthy_utxos(make_utxo: UTXOFactory) -> list[UTXO]:
    """10 mature outputs of 105k each on distinct addresses"""
    return [make_utxo(i) for i in range(10)]


@pytest.fixture
def dust_attack_utxos(make_utxo: UTXOFactory) -> list[UTXO]:
    """2 regular outputs plus 8 dust outputs from 8 different transactions"""
    regular = [make_utxo(i) for i in range(2)]
    dust = [make_utxo(100 + i, value=100) for i in range(8)]
    return regular + dust


@pytest.fixture
def reused_address_utxos(make_utxo: UTXOFactory) -> list[UTXO]:
    """5 regular outputs all paid to the same address"""
    return [make_utxo(i, address="bc1qsharedaddress") for i in range(5)]


@pytest.fixture
def fixed_time() -> datetime:
    return datetime(2026, 10, 19, 12, 0, 0, tzinfo=UTC)

"""
Exceptions raised by the wallet health analysis.
"""

from __future__ import annotations


class UTXOHealthError(Exception):
    """Base class for all wallet health analysis errors."""

    pass


class InputError(UTXOHealthError):
    """Raw UTXO data is malformed or invalid (negative value, bad reference, ...)."""

    pass


class ProviderError(UTXOHealthError):
    """The UTXO provider failed to deliver a snapshot (timeout, malformed response)."""

    pass


class ComputationError(UTXOHealthError):
    """An internal invariant was violated. Indicates a defect, never expected."""

    pass


class ExportError(UTXOHealthError):
    """Persisting a computed report failed. The report itself is still valid."""

    pass


class AnalyticsDisabledError(UTXOHealthError):
    """Analytics are disabled for this wallet, so no analysis is performed."""

    def __init__(self, wallet_id: str):
        super().__init__(f"Analytics are disabled for wallet '{wallet_id}'")
        self.wallet_id = wallet_id

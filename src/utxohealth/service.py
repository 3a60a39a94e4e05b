"""
Wallet health service: the query surface used by callers.

Fetching the UTXO snapshot is the only asynchronous step. Once a report is
computed for a wallet it is cached, so the dashboard, detailed, dust and
security queries all share the same classification and aggregation result.
"""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from utxohealth.config import AnalysisConfig
from utxohealth.errors import AnalyticsDisabledError, ProviderError
from utxohealth.models import UTXO, HealthReport
from utxohealth.pipeline import analyze_utxos
from utxohealth.providers.base import UTXOProvider
from utxohealth.report import (
    DashboardView,
    DetailedView,
    DustView,
    ReportView,
    SecurityView,
    export_report,
    render,
)


class WalletHealthService:
    """
    Analyze wallets fetched from a UTXO provider.

    Args:
        provider: Source of raw UTXO snapshots
        config: Analysis thresholds, defaults if not given
        analytics_enabled: Analytics gate of the caller. When False every
            query raises AnalyticsDisabledError without touching the provider.
    """

    def __init__(
        self,
        provider: UTXOProvider,
        config: AnalysisConfig | None = None,
        analytics_enabled: bool = True,
    ):
        self.provider = provider
        self.config = config or AnalysisConfig()
        self.analytics_enabled = analytics_enabled
        self._reports: dict[str, HealthReport] = {}

    async def fetch_snapshot(self, wallet_id: str) -> list[UTXO]:
        """
        Fetch and parse the wallet's UTXOs.

        Raises:
            ProviderError: If the provider fails
            InputError: If a record is malformed
        """
        try:
            records = await self.provider.get_utxos(wallet_id)
        except ProviderError:
            raise
        except OSError as e:
            raise ProviderError(f"Provider I/O failure for '{wallet_id}': {e}") from e

        return [UTXO.from_record(record) for record in records]

    async def analyze(self, wallet_id: str, refresh: bool = False) -> HealthReport:
        """
        Analyze a wallet, reusing the cached report unless refresh is set.

        Cancelling during the fetch aborts the whole analysis: nothing is
        cached and no partial report exists.
        """
        if not self.analytics_enabled:
            raise AnalyticsDisabledError(wallet_id)

        if not refresh and wallet_id in self._reports:
            return self._reports[wallet_id]

        logger.info(f"Analyzing health for wallet '{wallet_id}'...")
        utxos = await self.fetch_snapshot(wallet_id)
        report = analyze_utxos(wallet_id, utxos, self.config)

        self._reports[wallet_id] = report
        return report

    async def compute_dashboard(self, wallet_id: str) -> DashboardView:
        report = await self.analyze(wallet_id)
        return render(report, ReportView.DASHBOARD)  # type: ignore[return-value]

    async def compute_detailed(self, wallet_id: str) -> DetailedView:
        report = await self.analyze(wallet_id)
        return render(report, ReportView.DETAILED)  # type: ignore[return-value]

    async def compute_dust_analysis(self, wallet_id: str) -> DustView:
        report = await self.analyze(wallet_id)
        return render(report, ReportView.DUST_ONLY)  # type: ignore[return-value]

    async def compute_security_analysis(self, wallet_id: str) -> SecurityView:
        report = await self.analyze(wallet_id)
        return render(report, ReportView.SECURITY_ONLY)  # type: ignore[return-value]

    async def export(self, wallet_id: str, directory: Path) -> Path:
        """
        Export the wallet's report under its default file name in `directory`,
        creating the directory if needed.

        Raises:
            ExportError: If writing fails; the cached report stays available
        """
        report = await self.analyze(wallet_id)
        return export_report(report, directory, as_directory=True)

    async def close(self) -> None:
        await self.provider.close()

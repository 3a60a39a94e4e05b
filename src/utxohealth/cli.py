"""
Wallet health CLI - analyze a wallet's UTXOs for health, dust attacks and privacy.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from utxohealth.config import Settings, get_settings
from utxohealth.errors import ExportError, InputError, ProviderError
from utxohealth.providers.base import UTXOProvider
from utxohealth.providers.esplora import EsploraProvider
from utxohealth.providers.snapshot import SnapshotProvider
from utxohealth.report import ViewModel
from utxohealth.service import WalletHealthService

app = typer.Typer(
    name="utxohealth",
    help="Wallet UTXO health, dust-attack and privacy analysis",
    add_completion=False,
)


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def create_provider(
    settings: Settings,
    backend: str | None,
    snapshot_dir: Path | None,
    api_url: str | None,
    addresses: list[str] | None,
) -> UTXOProvider:
    backend = backend or settings.backend
    if backend == "snapshot":
        return SnapshotProvider(snapshot_dir or settings.snapshot_dir)
    if backend == "esplora":
        return EsploraProvider(
            api_url=api_url or settings.esplora_url,
            addresses=addresses or [],
            timeout=settings.request_timeout,
        )
    raise ValueError(f"Unknown backend: {backend} (expected snapshot | esplora)")


def print_view(view: ViewModel) -> None:
    typer.echo(view.model_dump_json(by_alias=True, indent=2))


@app.callback()
def main_callback() -> None:
    """Wallet UTXO health analysis."""


@app.command()
def health(
    name: Annotated[str, typer.Option("--name", "-n", help="Wallet name")],
    detailed: Annotated[
        bool, typer.Option("--detailed", help="Show detailed analysis (includes all views)")
    ] = False,
    dust_analysis: Annotated[
        bool, typer.Option("--dust-analysis", help="Show dust attack analysis")
    ] = False,
    security: Annotated[bool, typer.Option("--security", help="Show security analysis")] = False,
    export: Annotated[bool, typer.Option("--export", help="Export the report as JSON")] = False,
    export_dir: Annotated[
        Path | None, typer.Option("--export-dir", help="Directory for exported reports")
    ] = None,
    backend: Annotated[
        str | None, typer.Option("--backend", "-b", help="UTXO source: snapshot | esplora")
    ] = None,
    snapshot_dir: Annotated[
        Path | None, typer.Option("--snapshot-dir", help="Directory with wallet snapshots")
    ] = None,
    api_url: Annotated[
        str | None, typer.Option("--api-url", envvar="ESPLORA_URL", help="Esplora API URL")
    ] = None,
    addresses: Annotated[
        list[str] | None,
        typer.Option("--address", "-a", help="Wallet address (esplora backend, repeatable)"),
    ] = None,
    log_level: Annotated[str | None, typer.Option("--log-level", "-l")] = None,
) -> None:
    """Analyze wallet health and show the dashboard plus any requested views."""
    settings = get_settings()
    setup_logging(log_level or settings.log_level)

    if not settings.analytics_enabled:
        typer.echo("Analytics are disabled for this wallet.")
        typer.echo("Enable analytics to use health monitoring:")
        typer.echo("   export ANALYTICS_ENABLED=true")
        return

    try:
        provider = create_provider(settings, backend, snapshot_dir, api_url, addresses)
    except ValueError as e:
        logger.error(str(e))
        raise typer.Exit(1)

    service = WalletHealthService(provider, config=settings.analysis_config())

    try:
        asyncio.run(
            _run_health(
                service,
                name,
                detailed=detailed,
                dust_analysis=dust_analysis,
                security=security,
                export_dir=(export_dir or settings.export_dir) if export else None,
            )
        )
    except (InputError, ProviderError) as e:
        logger.error(f"Error analyzing wallet health: {e}")
        raise typer.Exit(1)


async def _run_health(
    service: WalletHealthService,
    wallet_id: str,
    detailed: bool,
    dust_analysis: bool,
    security: bool,
    export_dir: Path | None,
) -> None:
    try:
        print_view(await service.compute_dashboard(wallet_id))

        if detailed:
            print_view(await service.compute_detailed(wallet_id))
        if dust_analysis or detailed:
            print_view(await service.compute_dust_analysis(wallet_id))
        if security or detailed:
            print_view(await service.compute_security_analysis(wallet_id))

        if export_dir is not None:
            try:
                path = await service.export(wallet_id, export_dir)
                typer.echo(f"Health report exported to: {path}")
            except ExportError as e:
                logger.warning(f"Could not export health report: {e}")
                typer.echo("Report displayed, export unavailable.")
    finally:
        await service.close()


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()

"""
Health report assembly, rendering and export.

Views are built from report fields only, nothing is recomputed. The export
encoding is JSON with camelCase keys in a fixed field order:

    generatedAt, wallet, metrics, dustAnalysis, privacyScore,
    overallStatus, recommendations
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from collections.abc import Sequence
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from utxohealth.errors import ExportError, InputError
from utxohealth.models import (
    DetectionStatus,
    DustAnalysisResult,
    FrozenModel,
    HealthMetrics,
    HealthReport,
    OverallStatus,
    PrivacyScore,
    Recommendation,
    RiskLevel,
    Severity,
)
from utxohealth.recommendations import DUST_CATEGORIES, SECURITY_CATEGORIES

# Number of high-severity alerts shown on the dashboard
DASHBOARD_ALERT_LIMIT = 3


class ReportView(str, Enum):
    DASHBOARD = "dashboard"
    DETAILED = "detailed"
    DUST_ONLY = "dustOnly"
    SECURITY_ONLY = "securityOnly"


class DashboardView(FrozenModel):
    wallet: str
    generated_at: datetime
    overall_status: OverallStatus
    total_utxos: int
    total_balance: int
    spendable_balance: int
    spendable_ratio_percent: float
    dust_risk_level: RiskLevel
    dust_detection_status: DetectionStatus
    privacy_score: int
    alerts: tuple[Recommendation, ...]
    recommendation_count: int


class DetailedView(FrozenModel):
    wallet: str
    generated_at: datetime
    overall_status: OverallStatus
    metrics: HealthMetrics
    dust_analysis: DustAnalysisResult
    privacy_score: PrivacyScore
    recommendations: tuple[Recommendation, ...]


class DustView(FrozenModel):
    wallet: str
    generated_at: datetime
    dust_analysis: DustAnalysisResult
    recommendations: tuple[Recommendation, ...]


class SecurityView(FrozenModel):
    wallet: str
    generated_at: datetime
    privacy_score: PrivacyScore
    dust_risk_level: RiskLevel
    dust_detection_status: DetectionStatus
    recommendations: tuple[Recommendation, ...]


ViewModel = DashboardView | DetailedView | DustView | SecurityView


def build_report(
    wallet_id: str,
    metrics: HealthMetrics,
    dust: DustAnalysisResult,
    privacy: PrivacyScore,
    status: OverallStatus,
    recommendations: Sequence[Recommendation],
    generated_at: datetime | None = None,
) -> HealthReport:
    """
    Assemble the immutable report for one analysis run.

    Raises:
        InputError: If the wallet id is empty
    """
    try:
        return HealthReport(
            generated_at=generated_at or datetime.now(UTC),
            wallet=wallet_id,
            metrics=metrics,
            dust_analysis=dust,
            privacy_score=privacy,
            overall_status=status,
            recommendations=tuple(recommendations),
        )
    except ValidationError as e:
        raise InputError(f"Invalid health report for wallet {wallet_id!r}: {e}") from e


def render(report: HealthReport, view: ReportView | str) -> ViewModel:
    """
    Project a report onto one of its views.

    Args:
        report: Report to render
        view: ReportView or its string value ("dashboard", "detailed",
            "dustOnly", "securityOnly")

    Raises:
        ValueError: If the view is unknown
    """
    view = ReportView(view)

    if view == ReportView.DASHBOARD:
        alerts = tuple(
            rec for rec in report.recommendations if rec.severity.rank >= Severity.HIGH.rank
        )[:DASHBOARD_ALERT_LIMIT]
        return DashboardView(
            wallet=report.wallet,
            generated_at=report.generated_at,
            overall_status=report.overall_status,
            total_utxos=report.metrics.total_utxos,
            total_balance=report.metrics.total_balance,
            spendable_balance=report.metrics.spendable_balance,
            spendable_ratio_percent=report.metrics.spendable_ratio_percent,
            dust_risk_level=report.dust_analysis.risk_level,
            dust_detection_status=report.dust_analysis.detection_status,
            privacy_score=report.privacy_score.score,
            alerts=alerts,
            recommendation_count=len(report.recommendations),
        )

    if view == ReportView.DETAILED:
        return DetailedView(
            wallet=report.wallet,
            generated_at=report.generated_at,
            overall_status=report.overall_status,
            metrics=report.metrics,
            dust_analysis=report.dust_analysis,
            privacy_score=report.privacy_score,
            recommendations=report.recommendations,
        )

    if view == ReportView.DUST_ONLY:
        return DustView(
            wallet=report.wallet,
            generated_at=report.generated_at,
            dust_analysis=report.dust_analysis,
            recommendations=tuple(
                rec for rec in report.recommendations if rec.category in DUST_CATEGORIES
            ),
        )

    return SecurityView(
        wallet=report.wallet,
        generated_at=report.generated_at,
        privacy_score=report.privacy_score,
        dust_risk_level=report.dust_analysis.risk_level,
        dust_detection_status=report.dust_analysis.detection_status,
        recommendations=tuple(
            rec for rec in report.recommendations if rec.category in SECURITY_CATEGORIES
        ),
    )


def serialize(report: HealthReport) -> bytes:
    """Canonical UTF-8 JSON encoding of a report."""
    document = report.model_dump(mode="json", by_alias=True)
    return json.dumps(document, indent=2, ensure_ascii=False).encode("utf-8")


def deserialize(data: bytes | str) -> HealthReport:
    """
    Decode a report produced by serialize().

    Raises:
        InputError: If the data is not a valid report document
    """
    try:
        return HealthReport.model_validate_json(data)
    except ValidationError as e:
        raise InputError(f"Invalid health report document: {e}") from e


def default_export_filename(report: HealthReport) -> str:
    return f"{report.wallet}-health-report-{report.generated_at.date().isoformat()}.json"


def export_report(report: HealthReport, path: Path, as_directory: bool = False) -> Path:
    """
    Write a report to disk atomically.

    The report is serialized in memory, written to a temporary file next to
    the target and then moved into place, so a crash never leaves a partially
    written report behind.

    Args:
        report: Report to export
        path: Target file, or an existing directory to place the default file
            name in
        as_directory: Treat path as a directory even if it does not exist yet;
            it is created along with the default file name inside it

    Returns:
        Path of the written file

    Raises:
        ExportError: On any I/O failure
    """
    if as_directory or path.is_dir():
        path = path / default_export_filename(report)

    data = serialize(report)
    tmp_name: str | None = None

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name is not None:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
        raise ExportError(f"Could not export health report to {path}: {e}") from e

    logger.info(f"Health report exported to {path}")
    return path

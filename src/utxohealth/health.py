"""
Overall health evaluation.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from utxohealth.models import (
    DustAnalysisResult,
    HealthMetrics,
    OverallStatus,
    PrivacyScore,
    RiskLevel,
)


@dataclass(frozen=True)
class HealthRule:
    """One row of the status table: minimum thresholds for a status."""

    min_spendable_ratio: float
    max_dust_risk: RiskLevel
    min_privacy_score: int
    status: OverallStatus


# Evaluated top-down, first match wins. Anything below the last row is CRITICAL.
HEALTH_RULES: tuple[HealthRule, ...] = (
    HealthRule(90.0, RiskLevel.LOW, 70, OverallStatus.HEALTHY),
    HealthRule(75.0, RiskLevel.MEDIUM, 50, OverallStatus.GOOD),
    HealthRule(50.0, RiskLevel.HIGH, 30, OverallStatus.FAIR),
    HealthRule(25.0, RiskLevel.CRITICAL, 0, OverallStatus.POOR),
)


def evaluate(
    metrics: HealthMetrics, dust: DustAnalysisResult, privacy: PrivacyScore
) -> OverallStatus:
    """Map metrics, dust risk and privacy score onto an overall status."""
    if metrics.total_utxos == 0:
        # Nothing spendable in an empty wallet
        return OverallStatus.CRITICAL

    status = OverallStatus.CRITICAL
    for rule in HEALTH_RULES:
        if (
            metrics.spendable_ratio_percent >= rule.min_spendable_ratio
            and dust.risk_level.rank <= rule.max_dust_risk.rank
            and privacy.score >= rule.min_privacy_score
        ):
            status = rule.status
            break

    # Zero total balance has no real ratio, never call that healthy
    if metrics.total_balance == 0 and status == OverallStatus.HEALTHY:
        status = OverallStatus.CRITICAL

    logger.debug(
        f"Health {status.value}: ratio={metrics.spendable_ratio_percent}%, "
        f"dust={dust.risk_level.value}, privacy={privacy.score}"
    )
    return status

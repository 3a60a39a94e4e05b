"""
Recommendation engine.

Every triggered rule emits one recommendation with a fixed severity, category
and message template. Recommendations sharing a category are merged, keeping
the most severe one, and the result is ordered by severity (highest first)
then by category name.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger

from utxohealth.constants import (
    FACTOR_ADDRESS_REUSE,
    FACTOR_CONCENTRATION,
    FACTOR_ROUND_VALUES,
    UNCONFIRMED_ACCUMULATION_LIMIT,
)
from utxohealth.models import (
    DetectionStatus,
    DustAnalysisResult,
    HealthMetrics,
    PrivacyScore,
    Recommendation,
    RiskLevel,
    Severity,
)

CATEGORY_DUST_ATTACK = "dust-attack"
CATEGORY_DUST_EXPOSURE = "dust-exposure"
CATEGORY_LIQUIDITY = "liquidity"
CATEGORY_PRIVACY = "privacy"
CATEGORY_ADDRESS_REUSE = "address-reuse"
CATEGORY_CONCENTRATION = "concentration"
CATEGORY_ROUND_VALUES = "round-values"
CATEGORY_UNCONFIRMED = "unconfirmed"
CATEGORY_NONSTANDARD = "nonstandard-scripts"
CATEGORY_EMPTY = "empty-wallet"

# Categories shown in the dust and security views
DUST_CATEGORIES = frozenset({CATEGORY_DUST_ATTACK, CATEGORY_DUST_EXPOSURE})
SECURITY_CATEGORIES = frozenset(
    {
        CATEGORY_DUST_ATTACK,
        CATEGORY_DUST_EXPOSURE,
        CATEGORY_PRIVACY,
        CATEGORY_ADDRESS_REUSE,
        CATEGORY_CONCENTRATION,
        CATEGORY_ROUND_VALUES,
        CATEGORY_NONSTANDARD,
    }
)


@dataclass(frozen=True)
class AnalysisSignals:
    """Stage outputs a recommendation rule can look at."""

    metrics: HealthMetrics
    dust: DustAnalysisResult
    privacy: PrivacyScore


@dataclass(frozen=True)
class RecommendationRule:
    category: str
    severity: Severity
    remediation: str
    condition: Callable[[AnalysisSignals], bool]
    message: Callable[[AnalysisSignals], str]


def _has_utxos(s: AnalysisSignals) -> bool:
    return s.metrics.total_utxos > 0


RULES: tuple[RecommendationRule, ...] = (
    RecommendationRule(
        category=CATEGORY_DUST_ATTACK,
        severity=Severity.CRITICAL,
        remediation="freeze-dust",
        condition=lambda s: s.dust.detection_status == DetectionStatus.CONFIRMED,
        message=lambda s: (
            f"Dust attack confirmed: {s.dust.dust_count} dust outputs from "
            f"{s.dust.distinct_sources} transactions. Do not spend them."
        ),
    ),
    RecommendationRule(
        category=CATEGORY_DUST_ATTACK,
        severity=Severity.HIGH,
        remediation="freeze-dust",
        condition=lambda s: s.dust.detection_status == DetectionStatus.SUSPECTED,
        message=lambda s: (
            f"Possible dust attack: {s.dust.dust_count} dust outputs from "
            f"{s.dust.distinct_sources} transactions. Avoid spending them."
        ),
    ),
    RecommendationRule(
        category=CATEGORY_DUST_ATTACK,
        severity=Severity.HIGH,
        remediation="freeze-dust",
        condition=lambda s: s.dust.has_systematic_pattern,
        message=lambda s: (
            "Systematic dust pattern: "
            + ", ".join(
                f"{p.count} outputs of {p.value}" for p in s.dust.value_patterns if p.systematic
            )
        ),
    ),
    RecommendationRule(
        category=CATEGORY_DUST_EXPOSURE,
        severity=Severity.MEDIUM,
        remediation="coin-control",
        condition=lambda s: s.dust.risk_level.rank >= RiskLevel.MEDIUM.rank,
        message=lambda s: (
            f"{s.dust.dust_proportion_percent:.1f}% of outputs are dust. "
            "Use coin control to keep them out of transactions."
        ),
    ),
    RecommendationRule(
        category=CATEGORY_DUST_EXPOSURE,
        severity=Severity.HIGH,
        remediation="coin-control",
        condition=lambda s: s.dust.risk_level.rank >= RiskLevel.HIGH.rank,
        message=lambda s: (
            f"{s.dust.dust_proportion_percent:.1f}% of outputs are dust. "
            "Exclude them from coin selection."
        ),
    ),
    RecommendationRule(
        category=CATEGORY_LIQUIDITY,
        severity=Severity.HIGH,
        remediation="consolidate",
        condition=lambda s: _has_utxos(s) and s.metrics.spendable_ratio_percent < 50.0,
        message=lambda s: (
            f"Only {s.metrics.spendable_ratio_percent:.1f}% of the balance is spendable. "
            "Consolidate spendable outputs."
        ),
    ),
    RecommendationRule(
        category=CATEGORY_LIQUIDITY,
        severity=Severity.CRITICAL,
        remediation="consolidate",
        condition=lambda s: _has_utxos(s) and s.metrics.spendable_ratio_percent < 25.0,
        message=lambda s: (
            f"Only {s.metrics.spendable_ratio_percent:.1f}% of the balance is spendable. "
            "Most funds are locked in unusable outputs."
        ),
    ),
    RecommendationRule(
        category=CATEGORY_PRIVACY,
        severity=Severity.MEDIUM,
        remediation="privacy-coin-selection",
        condition=lambda s: s.privacy.score < 50,
        message=lambda s: (
            f"Privacy score {s.privacy.score}/100 is below the recommended level. "
            "Use privacy-focused coin selection."
        ),
    ),
    RecommendationRule(
        category=CATEGORY_PRIVACY,
        severity=Severity.HIGH,
        remediation="privacy-coin-selection",
        condition=lambda s: s.privacy.score < 30,
        message=lambda s: (
            f"Privacy score {s.privacy.score}/100: outputs are easily linked together."
        ),
    ),
    RecommendationRule(
        category=CATEGORY_ADDRESS_REUSE,
        severity=Severity.MEDIUM,
        remediation="rotate-addresses",
        condition=lambda s: s.privacy.penalty_for(FACTOR_ADDRESS_REUSE) > 0,
        message=lambda s: "Addresses are reused. Use a fresh address for every receive.",
    ),
    RecommendationRule(
        category=CATEGORY_CONCENTRATION,
        severity=Severity.LOW,
        remediation="split-outputs",
        condition=lambda s: s.privacy.penalty_for(FACTOR_CONCENTRATION) > 0,
        message=lambda s: (
            f"Spendable balance is held in {s.metrics.counts_by_classification.spendable} "
            "output(s). Spending will reveal most of the balance."
        ),
    ),
    RecommendationRule(
        category=CATEGORY_UNCONFIRMED,
        severity=Severity.INFO,
        remediation="await-confirmations",
        condition=lambda s: s.metrics.counts_by_classification.immature > 0,
        message=lambda s: (
            f"{s.metrics.counts_by_classification.immature} output(s) are not yet "
            "confirmed. Wait for confirmations before spending."
        ),
    ),
    RecommendationRule(
        category=CATEGORY_UNCONFIRMED,
        severity=Severity.MEDIUM,
        remediation="await-confirmations",
        condition=lambda s: s.metrics.unconfirmed_utxos >= UNCONFIRMED_ACCUMULATION_LIMIT,
        message=lambda s: (
            f"{s.metrics.unconfirmed_utxos} unconfirmed outputs have accumulated. "
            "Check for unexpected incoming activity."
        ),
    ),
    RecommendationRule(
        category=CATEGORY_ROUND_VALUES,
        severity=Severity.LOW,
        remediation="vary-amounts",
        condition=lambda s: s.privacy.penalty_for(FACTOR_ROUND_VALUES) > 0,
        message=lambda s: (
            "Several outputs hold round amounts, which makes change outputs easy to "
            "tell apart. Avoid round payment amounts."
        ),
    ),
    RecommendationRule(
        category=CATEGORY_NONSTANDARD,
        severity=Severity.LOW,
        remediation="review-scripts",
        condition=lambda s: s.metrics.counts_by_classification.nonstandard > 0,
        message=lambda s: (
            f"{s.metrics.counts_by_classification.nonstandard} output(s) use an "
            "unsupported script type and cannot be spent by this wallet."
        ),
    ),
    RecommendationRule(
        category=CATEGORY_EMPTY,
        severity=Severity.INFO,
        remediation="fund-wallet",
        condition=lambda s: s.metrics.total_utxos == 0,
        message=lambda s: "Wallet has no UTXOs.",
    ),
)


def merge_by_category(recommendations: list[Recommendation]) -> list[Recommendation]:
    """Keep one recommendation per category: the most severe, first one on ties."""
    merged: dict[str, Recommendation] = {}
    for rec in recommendations:
        current = merged.get(rec.category)
        if current is None or rec.severity.rank > current.severity.rank:
            merged[rec.category] = rec
    return list(merged.values())


def recommend(
    metrics: HealthMetrics, dust: DustAnalysisResult, privacy: PrivacyScore
) -> tuple[Recommendation, ...]:
    """Translate flagged issues into ranked, deduplicated recommendations."""
    signals = AnalysisSignals(metrics=metrics, dust=dust, privacy=privacy)

    triggered = [
        Recommendation(
            severity=rule.severity,
            category=rule.category,
            message=rule.message(signals),
            remediation=rule.remediation,
        )
        for rule in RULES
        if rule.condition(signals)
    ]

    merged = merge_by_category(triggered)
    merged.sort(key=lambda r: (-r.severity.rank, r.category))

    logger.debug(f"{len(triggered)} rules triggered, {len(merged)} recommendations")
    return tuple(merged)

"""
End-to-end analysis of one wallet snapshot.

Everything in here is pure and synchronous: given the same UTXOs (in any
order) and configuration it produces the same report, up to the timestamp.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from loguru import logger

from utxohealth.classifier import classify
from utxohealth.config import AnalysisConfig
from utxohealth.dust import detect_dust_attack
from utxohealth.health import evaluate
from utxohealth.metrics import aggregate
from utxohealth.models import UTXO, HealthReport
from utxohealth.privacy import score_privacy
from utxohealth.recommendations import recommend
from utxohealth.report import build_report


def analyze_utxos(
    wallet_id: str,
    utxos: Sequence[UTXO],
    config: AnalysisConfig | None = None,
    generated_at: datetime | None = None,
) -> HealthReport:
    """
    Run classification, aggregation, detection, scoring, evaluation and
    recommendation over a snapshot and assemble the report.

    Raises:
        InputError: If the snapshot contains invalid UTXOs
        ComputationError: On an internal invariant violation
    """
    config = config or AnalysisConfig()

    classified = classify(utxos, config.classification)
    metrics = aggregate(classified)
    # Both only read the classified set
    dust = detect_dust_attack(classified, config.detector)
    privacy = score_privacy(classified, config.privacy)
    status = evaluate(metrics, dust, privacy)
    recommendations = recommend(metrics, dust, privacy)

    logger.info(
        f"Wallet '{wallet_id}': {status.value}, {metrics.total_utxos} UTXOs, "
        f"dust risk {dust.risk_level.value}, privacy {privacy.score}/100, "
        f"{len(recommendations)} recommendation(s)"
    )

    return build_report(
        wallet_id,
        metrics,
        dust,
        privacy,
        status,
        recommendations,
        generated_at=generated_at,
    )

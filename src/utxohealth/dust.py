"""
Dust-attack detection.

A dust attack sends many tiny outputs to a wallet so that spending them later
links the wallet's addresses together. The detector looks at two signals:

- the proportion of dust outputs among all outputs, and
- the number of distinct funding transactions the dust came from.

Many dust outputs from many different transactions look like a mass, automated
distribution rather than incidental small change. The risk level depends only
on the proportion and is always reported alongside the detection status.
"""

from __future__ import annotations

from collections import Counter

from loguru import logger

from utxohealth.config import DetectorConfig
from utxohealth.models import (
    Classification,
    ClassifiedSet,
    DetectionStatus,
    DustAnalysisResult,
    DustValuePattern,
    RiskLevel,
)


def dust_proportion(classified: ClassifiedSet) -> float:
    """Percentage of outputs tagged as dust (0.0 for an empty set)."""
    if classified.count == 0:
        return 0.0
    return len(classified.of(Classification.DUST)) / classified.count * 100


def risk_level_for(proportion: float, bands: tuple[float, float, float, float]) -> RiskLevel:
    """Map a dust proportion onto its risk band."""
    levels = (RiskLevel.NONE, RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH)
    for level, upper in zip(levels, bands, strict=True):
        if proportion < upper:
            return level
    return RiskLevel.CRITICAL


def find_value_patterns(values: list[int], config: DetectorConfig) -> tuple[DustValuePattern, ...]:
    """Dust amounts repeated at least pattern_min_repeats times, most frequent first."""
    counts = Counter(values)
    patterns = [
        DustValuePattern(
            value=value,
            count=count,
            systematic=count >= config.systematic_repeats,
        )
        for value, count in counts.items()
        if count >= config.pattern_min_repeats
    ]
    patterns.sort(key=lambda p: (-p.count, p.value))
    return tuple(patterns)


def detect_dust_attack(
    classified: ClassifiedSet, config: DetectorConfig | None = None
) -> DustAnalysisResult:
    """
    Scan a classified set for dust-attack patterns.

    Returns:
        DustAnalysisResult with risk level, detection status and the dust
        outputs as evidence, ordered by value then reference
    """
    config = config or DetectorConfig()

    dust = classified.of(Classification.DUST)
    proportion = dust_proportion(classified)
    distinct_sources = len({item.utxo.txid.lower() for item in dust})
    diverse = distinct_sources >= config.min_distinct_sources

    if proportion > config.high_water_percent and diverse:
        status = DetectionStatus.CONFIRMED
    elif proportion > config.low_water_percent and diverse:
        status = DetectionStatus.SUSPECTED
    else:
        status = DetectionStatus.NOT_DETECTED

    risk = risk_level_for(proportion, config.risk_bands)

    evidence = tuple(
        item.ref
        for item in sorted(dust, key=lambda d: (d.value, d.utxo.txid.lower(), d.utxo.vout))
    )

    if status != DetectionStatus.NOT_DETECTED:
        logger.warning(
            f"Dust attack {status.value.lower()}: {len(dust)} dust UTXOs "
            f"({proportion:.1f}%) from {distinct_sources} transactions"
        )
    else:
        logger.debug(f"Dust proportion {proportion:.1f}%, risk {risk.value}")

    return DustAnalysisResult(
        risk_level=risk,
        detection_status=status,
        evidence=evidence,
        dust_count=len(dust),
        dust_value=sum(item.value for item in dust),
        dust_proportion_percent=round(proportion, 2),
        distinct_sources=distinct_sources,
        value_patterns=find_value_patterns([item.value for item in dust], config),
    )

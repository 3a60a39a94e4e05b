"""
Privacy scoring.

The score starts at 100 and independent penalties are subtracted:

- address reuse: every extra output on an already used address
- dust exposure: proportional to the share of dust outputs
- concentration: the spendable balance sits in too few outputs
- round values: several outputs hold round amounts

Each penalty is capped, the result is floored at 0.
"""

from __future__ import annotations

from collections import Counter

from loguru import logger

from utxohealth.address import normalize_address
from utxohealth.config import PrivacyConfig
from utxohealth.constants import (
    FACTOR_ADDRESS_REUSE,
    FACTOR_CONCENTRATION,
    FACTOR_DUST_EXPOSURE,
    FACTOR_ROUND_VALUES,
    MAX_PRIVACY_SCORE,
    ROUND_VALUE_UNIT,
)
from utxohealth.dust import dust_proportion
from utxohealth.models import Classification, ClassifiedSet, PrivacyFactor, PrivacyScore


def address_occurrences(classified: ClassifiedSet) -> Counter[str]:
    """Outputs per address, segwit addresses compared case-insensitively."""
    return Counter(normalize_address(item.utxo.address) for item in classified.utxos)


def is_round_value(value: int) -> bool:
    return value > 0 and value % ROUND_VALUE_UNIT == 0


def address_reuse_penalty(classified: ClassifiedSet, config: PrivacyConfig) -> float:
    occurrences = address_occurrences(classified)
    extra = sum(count - 1 for count in occurrences.values() if count > 1)
    return min(extra * config.reuse_weight, config.reuse_cap)


def dust_exposure_penalty(classified: ClassifiedSet, config: PrivacyConfig) -> float:
    return min(dust_proportion(classified) * config.dust_weight, config.dust_cap)


def concentration_penalty(classified: ClassifiedSet, config: PrivacyConfig) -> float:
    spendable = [item for item in classified.of(Classification.SPENDABLE) if item.value > 0]
    if classified.count <= config.min_diversification or not spendable:
        return 0.0
    if len(spendable) < config.min_diversification:
        return config.concentration_weight
    return 0.0


def round_value_penalty(classified: ClassifiedSet, config: PrivacyConfig) -> float:
    round_values = sum(1 for item in classified.utxos if is_round_value(item.value))
    if round_values >= config.min_round_values:
        return config.round_value_weight
    return 0.0


def score_privacy(classified: ClassifiedSet, config: PrivacyConfig | None = None) -> PrivacyScore:
    """
    Compute the 0-100 privacy score of a classified set.

    The set is already sorted by reference, so grouping is deterministic
    for any provider ordering.
    """
    config = config or PrivacyConfig()

    penalties = [
        (FACTOR_ADDRESS_REUSE, address_reuse_penalty(classified, config)),
        (FACTOR_DUST_EXPOSURE, dust_exposure_penalty(classified, config)),
        (FACTOR_CONCENTRATION, concentration_penalty(classified, config)),
        (FACTOR_ROUND_VALUES, round_value_penalty(classified, config)),
    ]

    factors = tuple(
        PrivacyFactor(name=name, penalty=round(penalty, 2))
        for name, penalty in penalties
        if penalty > 0
    )
    total_penalty = sum(penalty for _, penalty in penalties)
    score = max(0, min(MAX_PRIVACY_SCORE, round(MAX_PRIVACY_SCORE - total_penalty)))

    logger.debug(
        f"Privacy score {score}/100 "
        f"({', '.join(f'{f.name}=-{f.penalty}' for f in factors) or 'no penalties'})"
    )

    return PrivacyScore(score=score, contributing_factors=factors)

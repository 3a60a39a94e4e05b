"""
Aggregate health metrics over a classified UTXO set.
"""

from __future__ import annotations

from loguru import logger

from utxohealth.distribution import age_distribution, find_utxo_issues, value_distribution
from utxohealth.errors import ComputationError
from utxohealth.models import Classification, ClassificationCounts, ClassifiedSet, HealthMetrics


def spendable_ratio(spendable_balance: int, total_balance: int) -> float:
    """
    Percentage of the balance held in spendable outputs, one decimal.

    A zero total balance has no meaningful ratio and is reported as 0.0.
    """
    if total_balance == 0:
        return 0.0
    return round(spendable_balance / total_balance * 100, 1)


def aggregate(classified: ClassifiedSet) -> HealthMetrics:
    """
    Reduce a classified set into counts, balances, the spendable ratio and
    the value and age distribution.

    Raises:
        ComputationError: If the per-classification counts do not add up
    """
    counts = ClassificationCounts(
        spendable=len(classified.of(Classification.SPENDABLE)),
        dust=len(classified.of(Classification.DUST)),
        immature=len(classified.of(Classification.IMMATURE)),
        nonstandard=len(classified.of(Classification.NONSTANDARD)),
    )
    total_utxos = classified.count

    if counts.total != total_utxos:
        raise ComputationError(
            f"Classification counts sum to {counts.total}, expected {total_utxos}"
        )

    total_balance = classified.total_value
    spendable_balance = sum(item.value for item in classified.of(Classification.SPENDABLE))

    if spendable_balance > total_balance:
        raise ComputationError(
            f"Spendable balance {spendable_balance} exceeds total balance {total_balance}"
        )

    if total_utxos > 0 and total_balance == 0:
        logger.warning("Wallet holds UTXOs but zero total balance")

    return HealthMetrics(
        total_utxos=total_utxos,
        counts_by_classification=counts,
        total_balance=total_balance,
        spendable_balance=spendable_balance,
        spendable_ratio_percent=spendable_ratio(spendable_balance, total_balance),
        token_utxos=sum(1 for item in classified.utxos if item.utxo.has_token),
        unconfirmed_utxos=sum(1 for item in classified.utxos if item.utxo.confirmations == 0),
        value_distribution=value_distribution(classified),
        age_distribution=age_distribution(classified),
        utxo_issues=find_utxo_issues(classified),
    )

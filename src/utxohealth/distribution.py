"""
Value and age distribution of a classified set, and per-UTXO issues.
"""

from __future__ import annotations

from collections import Counter

from utxohealth.address import normalize_address
from utxohealth.constants import AGE_BUCKET_BOUNDS, UTXO_ISSUE_LIMIT, VALUE_BUCKET_BOUNDS
from utxohealth.models import (
    AgeBucket,
    AgeDistribution,
    Classification,
    ClassifiedSet,
    ClassifiedUTXO,
    UTXOIssue,
    ValueBucket,
    ValueDistribution,
)
from utxohealth.privacy import address_occurrences, is_round_value

ISSUE_DUST = "dust"
ISSUE_UNCONFIRMED = "unconfirmed"
ISSUE_IMMATURE = "immature"
ISSUE_NONSTANDARD = "nonstandard-script"
ISSUE_REUSED_ADDRESS = "reused-address"
ISSUE_ROUND_VALUE = "round-value"


def value_bucket(item: ClassifiedUTXO) -> ValueBucket:
    if item.utxo.has_token:
        return ValueBucket.TOKEN
    if item.classification == Classification.DUST:
        return ValueBucket.DUST

    buckets = (ValueBucket.MICRO, ValueBucket.SMALL, ValueBucket.MEDIUM, ValueBucket.LARGE)
    for bucket, upper in zip(buckets, VALUE_BUCKET_BOUNDS, strict=True):
        if item.value < upper:
            return bucket
    return ValueBucket.WHALE


def age_bucket(confirmations: int) -> AgeBucket:
    if confirmations == 0:
        return AgeBucket.UNCONFIRMED

    buckets = (AgeBucket.FRESH, AgeBucket.RECENT, AgeBucket.MATURE, AgeBucket.AGED)
    for bucket, upper in zip(buckets, AGE_BUCKET_BOUNDS, strict=True):
        if confirmations < upper:
            return bucket
    return AgeBucket.ANCIENT


def value_distribution(classified: ClassifiedSet) -> ValueDistribution:
    counts = Counter(value_bucket(item).value for item in classified.utxos)
    return ValueDistribution(**counts)


def age_distribution(classified: ClassifiedSet) -> AgeDistribution:
    counts = Counter(age_bucket(item.utxo.confirmations).value for item in classified.utxos)
    return AgeDistribution(**counts)


def find_utxo_issues(
    classified: ClassifiedSet, limit: int = UTXO_ISSUE_LIMIT
) -> tuple[UTXOIssue, ...]:
    """
    List the outputs with at least one issue.

    Outputs with the most issues come first, ties keep reference order.
    At most `limit` outputs are returned.
    """
    occurrences = address_occurrences(classified)
    found: list[UTXOIssue] = []

    for item in classified.utxos:
        utxo = item.utxo
        issues: list[str] = []

        if item.classification == Classification.DUST:
            issues.append(ISSUE_DUST)
        if utxo.confirmations == 0:
            issues.append(ISSUE_UNCONFIRMED)
        elif item.classification == Classification.IMMATURE:
            issues.append(ISSUE_IMMATURE)
        if item.classification == Classification.NONSTANDARD:
            issues.append(ISSUE_NONSTANDARD)
        if occurrences[normalize_address(utxo.address)] > 1:
            issues.append(ISSUE_REUSED_ADDRESS)
        if is_round_value(utxo.value):
            issues.append(ISSUE_ROUND_VALUE)

        if issues:
            found.append(
                UTXOIssue(
                    ref=item.ref,
                    value=item.value,
                    classification=item.classification,
                    issues=tuple(issues),
                )
            )

    # sort() is stable
    found.sort(key=lambda issue: -len(issue.issues))
    return tuple(found[:limit])

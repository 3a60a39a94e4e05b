"""
UTXO classification.

Each output receives exactly one tag. Rules are evaluated in fixed priority
order and the first match wins:

1. value below the dust threshold         -> dust (token outputs excepted)
2. fewer confirmations than required      -> immature
3. script kind outside the supported set  -> nonstandard
4. anything else                          -> spendable
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from loguru import logger

from utxohealth.config import ClassificationConfig
from utxohealth.constants import TOKEN_ID_LENGTH
from utxohealth.errors import InputError
from utxohealth.models import UTXO, Classification, ClassifiedSet, ClassifiedUTXO

TXID_PATTERN = re.compile(r"^[0-9a-fA-F]{64}$")
TOKEN_ID_PATTERN = re.compile(rf"^[0-9a-fA-F]{{{TOKEN_ID_LENGTH}}}$")


def validate_utxo(utxo: UTXO) -> None:
    """
    Check value range and reference format of a single UTXO.

    Raises:
        InputError: On negative value or confirmations, a malformed reference
            or a malformed token id
    """
    if not TXID_PATTERN.match(utxo.txid):
        raise InputError(f"Malformed txid in UTXO reference: {utxo.txid!r}")
    if utxo.vout < 0:
        raise InputError(f"Negative output index in UTXO {utxo.txid}:{utxo.vout}")
    if utxo.value < 0:
        raise InputError(f"Negative value {utxo.value} in UTXO {utxo.ref}")
    if utxo.confirmations < 0:
        raise InputError(f"Negative confirmations {utxo.confirmations} in UTXO {utxo.ref}")
    if utxo.token_id is not None and not TOKEN_ID_PATTERN.match(utxo.token_id):
        raise InputError(f"Malformed token id {utxo.token_id!r} in UTXO {utxo.ref}")


def classify_utxo(utxo: UTXO, config: ClassificationConfig) -> Classification:
    """Tag a single, already validated UTXO."""
    if utxo.value < config.dust_threshold and not utxo.has_token:
        return Classification.DUST

    if utxo.confirmations < config.mature_confirmations:
        if not (config.finality_counts_as_mature and utxo.is_final):
            return Classification.IMMATURE

    if utxo.script_kind.lower() not in config.supported_script_kinds:
        return Classification.NONSTANDARD

    return Classification.SPENDABLE


def classify(utxos: Sequence[UTXO], config: ClassificationConfig | None = None) -> ClassifiedSet:
    """
    Classify a wallet snapshot.

    The result is sorted by reference so that every downstream computation is
    independent of the order the provider returned the outputs in.

    Args:
        utxos: Raw UTXOs of one wallet snapshot (may be empty)
        config: Classification thresholds, defaults if not given

    Returns:
        ClassifiedSet with one tag per UTXO

    Raises:
        InputError: If any UTXO is invalid or an outpoint appears twice
    """
    config = config or ClassificationConfig()

    seen: set[tuple[str, int]] = set()
    classified: list[ClassifiedUTXO] = []

    for utxo in utxos:
        validate_utxo(utxo)

        outpoint = (utxo.txid.lower(), utxo.vout)
        if outpoint in seen:
            raise InputError(f"Duplicate UTXO reference: {utxo.ref}")
        seen.add(outpoint)

        classified.append(
            ClassifiedUTXO(utxo=utxo, classification=classify_utxo(utxo, config))
        )

    classified.sort(key=lambda item: (item.utxo.txid.lower(), item.utxo.vout))

    logger.debug(
        f"Classified {len(classified)} UTXOs: "
        + ", ".join(
            f"{tag.value}={sum(1 for c in classified if c.classification == tag)}"
            for tag in Classification
        )
    )

    return ClassifiedSet(utxos=tuple(classified))

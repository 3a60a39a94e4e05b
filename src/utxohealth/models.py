"""
Data models for wallet health analysis, using Pydantic for validation and
serialization.

Every model is frozen: each pipeline stage produces new values from the output
of the previous stage and never mutates its input.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, ValidationError
from pydantic.alias_generators import to_camel

from utxohealth.errors import InputError


class FrozenModel(BaseModel):
    """Immutable model base with camelCase aliases for the export schema."""

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class Classification(str, Enum):
    SPENDABLE = "spendable"
    DUST = "dust"
    IMMATURE = "immature"
    NONSTANDARD = "nonstandard"


class RiskLevel(str, Enum):
    NONE = "NONE"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return list(RiskLevel).index(self)


class DetectionStatus(str, Enum):
    NOT_DETECTED = "NOT_DETECTED"
    SUSPECTED = "SUSPECTED"
    CONFIRMED = "CONFIRMED"


class Severity(str, Enum):
    INFO = "INFO"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return list(Severity).index(self)


class OverallStatus(str, Enum):
    HEALTHY = "HEALTHY"
    GOOD = "GOOD"
    FAIR = "FAIR"
    POOR = "POOR"
    CRITICAL = "CRITICAL"


class UTXORef(FrozenModel):
    """Outpoint reference: funding transaction id and output index."""

    txid: str
    vout: int

    def __str__(self) -> str:
        return f"{self.txid}:{self.vout}"


class UTXO(FrozenModel):
    """
    A raw unspent output as delivered by the UTXO provider.

    Field types are enforced here; value ranges and reference format are
    checked by the classifier, which reports them as InputError.
    """

    txid: str
    vout: int = Field(validation_alias=AliasChoices("vout", "voutIndex", "vout_index"))
    value: int
    address: str
    script_kind: str
    confirmations: int
    block_height: int | None = None
    # Externally reported pre-consensus finality, consumed as-is
    is_final: bool = False
    # Token carried by the output, if any. Token outputs hold their value in
    # the token and are never dust.
    token_id: str | None = None

    @property
    def ref(self) -> UTXORef:
        return UTXORef(txid=self.txid, vout=self.vout)

    @property
    def has_token(self) -> bool:
        return self.token_id is not None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> UTXO:
        """
        Build a UTXO from a provider record.

        Accepts both the provider's camelCase keys (voutIndex, scriptKind, ...)
        and snake_case keys.

        Raises:
            InputError: If a field is missing or has the wrong type
        """
        try:
            return cls.model_validate(record)
        except ValidationError as e:
            raise InputError(f"Malformed UTXO record: {e}") from e


class ClassifiedUTXO(FrozenModel):
    utxo: UTXO
    classification: Classification

    @property
    def ref(self) -> UTXORef:
        return self.utxo.ref

    @property
    def value(self) -> int:
        return self.utxo.value


class ClassifiedSet(FrozenModel):
    """All classified outputs of one wallet snapshot, sorted by reference."""

    utxos: tuple[ClassifiedUTXO, ...] = ()

    @property
    def count(self) -> int:
        return len(self.utxos)

    def of(self, classification: Classification) -> list[ClassifiedUTXO]:
        return [item for item in self.utxos if item.classification == classification]

    @property
    def total_value(self) -> int:
        return sum(item.value for item in self.utxos)


class ClassificationCounts(FrozenModel):
    spendable: int = Field(..., ge=0)
    dust: int = Field(..., ge=0)
    immature: int = Field(..., ge=0)
    nonstandard: int = Field(..., ge=0)

    @property
    def total(self) -> int:
        return self.spendable + self.dust + self.immature + self.nonstandard

    def get(self, classification: Classification) -> int:
        return int(getattr(self, classification.value))


class ValueBucket(str, Enum):
    TOKEN = "token"
    DUST = "dust"
    MICRO = "micro"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    WHALE = "whale"


class AgeBucket(str, Enum):
    UNCONFIRMED = "unconfirmed"
    FRESH = "fresh"
    RECENT = "recent"
    MATURE = "mature"
    AGED = "aged"
    ANCIENT = "ancient"


class ValueDistribution(FrozenModel):
    """Output counts per value bucket."""

    token: int = Field(default=0, ge=0)
    dust: int = Field(default=0, ge=0)
    micro: int = Field(default=0, ge=0)
    small: int = Field(default=0, ge=0)
    medium: int = Field(default=0, ge=0)
    large: int = Field(default=0, ge=0)
    whale: int = Field(default=0, ge=0)

    def get(self, bucket: ValueBucket) -> int:
        return int(getattr(self, bucket.value))


class AgeDistribution(FrozenModel):
    """Output counts per age bucket."""

    unconfirmed: int = Field(default=0, ge=0)
    fresh: int = Field(default=0, ge=0)
    recent: int = Field(default=0, ge=0)
    mature: int = Field(default=0, ge=0)
    aged: int = Field(default=0, ge=0)
    ancient: int = Field(default=0, ge=0)

    def get(self, bucket: AgeBucket) -> int:
        return int(getattr(self, bucket.value))


class UTXOIssue(FrozenModel):
    """Problems found on a single output."""

    ref: UTXORef
    value: int
    classification: Classification
    issues: tuple[str, ...]


class HealthMetrics(FrozenModel):
    total_utxos: int = Field(..., ge=0)
    counts_by_classification: ClassificationCounts
    total_balance: int = Field(..., ge=0)
    spendable_balance: int = Field(..., ge=0)
    spendable_ratio_percent: float = Field(..., ge=0.0, le=100.0)
    token_utxos: int = Field(default=0, ge=0)
    unconfirmed_utxos: int = Field(default=0, ge=0)
    value_distribution: ValueDistribution = Field(default_factory=ValueDistribution)
    age_distribution: AgeDistribution = Field(default_factory=AgeDistribution)
    # Most affected outputs first, capped
    utxo_issues: tuple[UTXOIssue, ...] = ()


class DustValuePattern(FrozenModel):
    """A dust amount that occurs repeatedly across the wallet."""

    value: int
    count: int
    systematic: bool


class DustAnalysisResult(FrozenModel):
    risk_level: RiskLevel
    detection_status: DetectionStatus
    evidence: tuple[UTXORef, ...]
    dust_count: int = Field(..., ge=0)
    dust_value: int = Field(..., ge=0)
    dust_proportion_percent: float = Field(..., ge=0.0, le=100.0)
    distinct_sources: int = Field(..., ge=0)
    value_patterns: tuple[DustValuePattern, ...]

    @property
    def has_systematic_pattern(self) -> bool:
        return any(pattern.systematic for pattern in self.value_patterns)


class PrivacyFactor(FrozenModel):
    name: str
    penalty: float = Field(..., ge=0.0)


class PrivacyScore(FrozenModel):
    score: int = Field(..., ge=0, le=100)
    contributing_factors: tuple[PrivacyFactor, ...]

    def penalty_for(self, name: str) -> float:
        for factor in self.contributing_factors:
            if factor.name == name:
                return factor.penalty
        return 0.0


class Recommendation(FrozenModel):
    severity: Severity
    category: str
    message: str
    remediation: str | None


class HealthReport(FrozenModel):
    """
    Complete health assessment of one wallet snapshot.

    This is the only unit that is rendered or persisted. Field order defines
    the order of the export document.
    """

    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    wallet: str = Field(..., min_length=1)
    metrics: HealthMetrics
    dust_analysis: DustAnalysisResult
    privacy_score: PrivacyScore
    overall_status: OverallStatus
    recommendations: tuple[Recommendation, ...]

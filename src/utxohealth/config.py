"""
Analysis configuration and process settings.

Analysis knobs are plain Pydantic models so they can be built in code and in
tests. Process-level settings are loaded with pydantic-settings from the
environment or a .env file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utxohealth.constants import (
    DEFAULT_CONCENTRATION_WEIGHT,
    DEFAULT_DUST_CAP,
    DEFAULT_DUST_THRESHOLD,
    DEFAULT_DUST_WEIGHT,
    DEFAULT_HIGH_WATER_PERCENT,
    DEFAULT_LOW_WATER_PERCENT,
    DEFAULT_MATURE_CONFIRMATIONS,
    DEFAULT_MIN_DISTINCT_SOURCES,
    DEFAULT_MIN_DIVERSIFICATION,
    DEFAULT_MIN_ROUND_VALUES,
    DEFAULT_PATTERN_MIN_REPEATS,
    DEFAULT_REUSE_CAP,
    DEFAULT_REUSE_WEIGHT,
    DEFAULT_RISK_BANDS,
    DEFAULT_ROUND_VALUE_WEIGHT,
    DEFAULT_SYSTEMATIC_REPEATS,
    SUPPORTED_SCRIPT_KINDS,
)


class ClassificationConfig(BaseModel):
    """Thresholds used to tag each UTXO."""

    dust_threshold: int = Field(
        default=DEFAULT_DUST_THRESHOLD,
        ge=0,
        description="Outputs with a value strictly below this are dust",
    )
    mature_confirmations: int = Field(
        default=DEFAULT_MATURE_CONFIRMATIONS,
        ge=0,
        description="Minimum confirmations before an output is mature",
    )
    supported_script_kinds: frozenset[str] = Field(default=SUPPORTED_SCRIPT_KINDS)
    # When set, outputs the network reports as final are mature even with
    # fewer confirmations than mature_confirmations
    finality_counts_as_mature: bool = False

    model_config = {"frozen": True}

    @field_validator("supported_script_kinds")
    @classmethod
    def normalize_script_kinds(cls, v: frozenset[str]) -> frozenset[str]:
        return frozenset(kind.lower() for kind in v)


class DetectorConfig(BaseModel):
    """Dust-attack detection thresholds (percentages of the UTXO count)."""

    low_water_percent: float = Field(default=DEFAULT_LOW_WATER_PERCENT, ge=0.0, le=100.0)
    high_water_percent: float = Field(default=DEFAULT_HIGH_WATER_PERCENT, ge=0.0, le=100.0)
    min_distinct_sources: int = Field(default=DEFAULT_MIN_DISTINCT_SOURCES, ge=1)
    risk_bands: tuple[float, float, float, float] = DEFAULT_RISK_BANDS
    pattern_min_repeats: int = Field(default=DEFAULT_PATTERN_MIN_REPEATS, ge=2)
    systematic_repeats: int = Field(default=DEFAULT_SYSTEMATIC_REPEATS, ge=2)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_thresholds(self) -> DetectorConfig:
        if self.low_water_percent > self.high_water_percent:
            raise ValueError(
                f"low_water_percent ({self.low_water_percent}) must not exceed "
                f"high_water_percent ({self.high_water_percent})"
            )
        if list(self.risk_bands) != sorted(self.risk_bands):
            raise ValueError(f"risk_bands must be ascending, got {self.risk_bands}")
        if self.systematic_repeats < self.pattern_min_repeats:
            raise ValueError("systematic_repeats must be >= pattern_min_repeats")
        return self


class PrivacyConfig(BaseModel):
    """Penalty weights and caps for the privacy score."""

    reuse_weight: float = Field(default=DEFAULT_REUSE_WEIGHT, ge=0.0)
    reuse_cap: float = Field(default=DEFAULT_REUSE_CAP, ge=0.0, le=100.0)
    dust_weight: float = Field(default=DEFAULT_DUST_WEIGHT, ge=0.0)
    dust_cap: float = Field(default=DEFAULT_DUST_CAP, ge=0.0, le=100.0)
    min_diversification: int = Field(default=DEFAULT_MIN_DIVERSIFICATION, ge=1)
    concentration_weight: float = Field(default=DEFAULT_CONCENTRATION_WEIGHT, ge=0.0, le=100.0)
    round_value_weight: float = Field(default=DEFAULT_ROUND_VALUE_WEIGHT, ge=0.0, le=100.0)
    min_round_values: int = Field(default=DEFAULT_MIN_ROUND_VALUES, ge=1)

    model_config = {"frozen": True}


class AnalysisConfig(BaseModel):
    """Configuration for the whole analysis pipeline."""

    classification: ClassificationConfig = Field(default_factory=ClassificationConfig)
    detector: DetectorConfig = Field(default_factory=DetectorConfig)
    privacy: PrivacyConfig = Field(default_factory=PrivacyConfig)

    model_config = {"frozen": True}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    # Checked by the caller before any analysis is started
    analytics_enabled: bool = True

    backend: Literal["snapshot", "esplora"] = "snapshot"
    snapshot_dir: Path = Path.home() / ".utxohealth" / "wallets"
    esplora_url: str = "https://mempool.space/api"
    request_timeout: float = 30.0

    export_dir: Path = Path(".")

    log_level: str = "INFO"

    dust_threshold: int = DEFAULT_DUST_THRESHOLD
    mature_confirmations: int = DEFAULT_MATURE_CONFIRMATIONS
    finality_counts_as_mature: bool = False
    low_water_percent: float = DEFAULT_LOW_WATER_PERCENT
    high_water_percent: float = DEFAULT_HIGH_WATER_PERCENT
    min_distinct_sources: int = DEFAULT_MIN_DISTINCT_SOURCES

    def analysis_config(self) -> AnalysisConfig:
        return AnalysisConfig(
            classification=ClassificationConfig(
                dust_threshold=self.dust_threshold,
                mature_confirmations=self.mature_confirmations,
                finality_counts_as_mature=self.finality_counts_as_mature,
            ),
            detector=DetectorConfig(
                low_water_percent=self.low_water_percent,
                high_water_percent=self.high_water_percent,
                min_distinct_sources=self.min_distinct_sources,
            ),
        )


def get_settings() -> Settings:
    return Settings()

"""
Default thresholds and weights for wallet health analysis.

All values here are defaults only; every one of them can be overridden through
the analysis configuration models in utxohealth.config.
"""

from __future__ import annotations

# Standard P2PKH dust limit (in the smallest currency unit).
# Outputs below this are uneconomical to spend and are the typical payload of
# dust attacks.
STANDARD_DUST_LIMIT = 546

DEFAULT_DUST_THRESHOLD = STANDARD_DUST_LIMIT

# An output needs at least one confirmation before it is treated as mature
DEFAULT_MATURE_CONFIRMATIONS = 1

# Script kinds every supported wallet can sign for
SUPPORTED_SCRIPT_KINDS: frozenset[str] = frozenset({"p2pkh", "p2sh", "p2wpkh", "p2wsh", "p2tr"})

# Dust-attack detection
DEFAULT_LOW_WATER_PERCENT = 20.0
DEFAULT_HIGH_WATER_PERCENT = 50.0
DEFAULT_MIN_DISTINCT_SOURCES = 3

# Upper bounds (exclusive) of the NONE, LOW, MEDIUM and HIGH risk bands.
# Anything at or above the last bound is CRITICAL.
DEFAULT_RISK_BANDS: tuple[float, float, float, float] = (5.0, 20.0, 35.0, 50.0)

# Identical dust amounts: a value seen this often is reported as a pattern,
# and as systematic (scripted) once it reaches DEFAULT_SYSTEMATIC_REPEATS.
DEFAULT_PATTERN_MIN_REPEATS = 3
DEFAULT_SYSTEMATIC_REPEATS = 5

# Privacy scoring
MAX_PRIVACY_SCORE = 100
DEFAULT_REUSE_WEIGHT = 5.0
DEFAULT_REUSE_CAP = 30.0
DEFAULT_DUST_WEIGHT = 0.4
DEFAULT_DUST_CAP = 40.0
DEFAULT_MIN_DIVERSIFICATION = 3
DEFAULT_CONCENTRATION_WEIGHT = 10.0

# Privacy factor names, also used as recommendation triggers
FACTOR_ADDRESS_REUSE = "address-reuse"
FACTOR_DUST_EXPOSURE = "dust-exposure"
FACTOR_CONCENTRATION = "concentration"
FACTOR_ROUND_VALUES = "round-values"

# Round amounts: multiples of this unit are easy to pick out of a transaction
ROUND_VALUE_UNIT = 10_000
DEFAULT_ROUND_VALUE_WEIGHT = 5.0
DEFAULT_MIN_ROUND_VALUES = 3

# Unconfirmed outputs piling up at once
UNCONFIRMED_ACCUMULATION_LIMIT = 10

# Length of a token id (hex-encoded genesis txid)
TOKEN_ID_LENGTH = 64

# Upper bounds (exclusive) of the micro, small, medium and large value buckets.
# Anything at or above the last bound is a whale output.
VALUE_BUCKET_BOUNDS: tuple[int, int, int, int] = (10_000, 1_000_000, 10_000_000, 100_000_000)

# Upper bounds (exclusive, in confirmations) of the fresh, recent, mature and
# aged buckets: an hour, a day, four weeks and a year of blocks.
AGE_BUCKET_BOUNDS: tuple[int, int, int, int] = (6, 144, 4_032, 52_560)

# Per-UTXO issues listed in the detailed view
UTXO_ISSUE_LIMIT = 10

"""
utxohealth - Wallet UTXO health analysis

Classifies a wallet's unspent outputs and reports balance health, dust-attack
risk, a privacy score and ranked recommendations.
"""

__version__ = "0.1.0"

from utxohealth.classifier import classify
from utxohealth.config import (
    AnalysisConfig,
    ClassificationConfig,
    DetectorConfig,
    PrivacyConfig,
    Settings,
    get_settings,
)
from utxohealth.dust import detect_dust_attack
from utxohealth.errors import (
    AnalyticsDisabledError,
    ComputationError,
    ExportError,
    InputError,
    ProviderError,
    UTXOHealthError,
)
from utxohealth.health import evaluate
from utxohealth.metrics import aggregate
from utxohealth.models import (
    UTXO,
    AgeDistribution,
    Classification,
    ClassifiedSet,
    ClassifiedUTXO,
    DetectionStatus,
    DustAnalysisResult,
    HealthMetrics,
    HealthReport,
    OverallStatus,
    PrivacyScore,
    Recommendation,
    RiskLevel,
    Severity,
    UTXOIssue,
    UTXORef,
    ValueDistribution,
)
from utxohealth.pipeline import analyze_utxos
from utxohealth.privacy import score_privacy
from utxohealth.recommendations import recommend
from utxohealth.report import (
    ReportView,
    build_report,
    deserialize,
    export_report,
    render,
    serialize,
)
from utxohealth.service import WalletHealthService

__all__ = [
    "AgeDistribution",
    "AnalysisConfig",
    "AnalyticsDisabledError",
    "Classification",
    "ClassificationConfig",
    "ClassifiedSet",
    "ClassifiedUTXO",
    "ComputationError",
    "DetectionStatus",
    "DetectorConfig",
    "DustAnalysisResult",
    "ExportError",
    "HealthMetrics",
    "HealthReport",
    "InputError",
    "OverallStatus",
    "PrivacyConfig",
    "PrivacyScore",
    "ProviderError",
    "Recommendation",
    "ReportView",
    "RiskLevel",
    "Settings",
    "Severity",
    "UTXO",
    "UTXOHealthError",
    "UTXOIssue",
    "UTXORef",
    "ValueDistribution",
    "WalletHealthService",
    "aggregate",
    "analyze_utxos",
    "build_report",
    "classify",
    "deserialize",
    "detect_dust_attack",
    "evaluate",
    "export_report",
    "get_settings",
    "recommend",
    "render",
    "score_privacy",
    "serialize",
]

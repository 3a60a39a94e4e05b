"""
Tests for dust-attack detection.
"""

from __future__ import annotations

import random

import pytest

from utxohealth.classifier import classify
from utxohealth.config import DetectorConfig
from utxohealth.dust import detect_dust_attack, find_value_patterns, risk_level_for
from utxohealth.models import DetectionStatus, DustValuePattern, RiskLevel


class TestRiskBands:
    @pytest.mark.parametrize(
        "proportion,expected",
        [
            (0.0, RiskLevel.NONE),
            (4.99, RiskLevel.NONE),
            (5.0, RiskLevel.LOW),
            (19.9, RiskLevel.LOW),
            (20.0, RiskLevel.MEDIUM),
            (34.99, RiskLevel.MEDIUM),
            (35.0, RiskLevel.HIGH),
            (49.99, RiskLevel.HIGH),
            (50.0, RiskLevel.CRITICAL),
            (100.0, RiskLevel.CRITICAL),
        ],
    )
    def test_default_bands(self, proportion: float, expected: RiskLevel) -> None:
        assert risk_level_for(proportion, DetectorConfig().risk_bands) == expected

    def test_custom_bands(self) -> None:
        bands = (1.0, 2.0, 3.0, 4.0)
        assert risk_level_for(0.5, bands) == RiskLevel.NONE
        assert risk_level_for(3.5, bands) == RiskLevel.HIGH
        assert risk_level_for(4.0, bands) == RiskLevel.CRITICAL


class TestDetection:
    def test_empty_wallet(self) -> None:
        result = detect_dust_attack(classify([]))
        assert result.detection_status == DetectionStatus.NOT_DETECTED
        assert result.risk_level == RiskLevel.NONE
        assert result.dust_proportion_percent == 0.0
        assert result.evidence == ()
        assert result.value_patterns == ()

    def test_no_dust(self, healthy_utxos) -> None:
        result = detect_dust_attack(classify(healthy_utxos))
        assert result.detection_status == DetectionStatus.NOT_DETECTED
        assert result.risk_level == RiskLevel.NONE
        assert result.dust_count == 0
        assert result.distinct_sources == 0

    def test_confirmed_attack(self, dust_attack_utxos) -> None:
        result = detect_dust_attack(classify(dust_attack_utxos))

        assert result.detection_status == DetectionStatus.CONFIRMED
        assert result.risk_level == RiskLevel.CRITICAL
        assert result.dust_count == 8
        assert result.dust_value == 800
        assert result.dust_proportion_percent == 80.0
        assert result.distinct_sources == 8
        assert len(result.evidence) == 8
        assert result.value_patterns == (DustValuePattern(value=100, count=8, systematic=True),)
        assert result.has_systematic_pattern

    def test_suspected_attack(self, make_utxo) -> None:
        utxos = [make_utxo(i) for i in range(7)] + [make_utxo(50 + i, value=200) for i in range(3)]
        result = detect_dust_attack(classify(utxos))

        assert result.detection_status == DetectionStatus.SUSPECTED
        assert result.risk_level == RiskLevel.MEDIUM
        assert result.dust_proportion_percent == 30.0

    def test_token_outputs_are_not_dust(self, make_utxo) -> None:
        token_id = "ef" * 32
        utxos = [make_utxo(i) for i in range(2)]
        utxos += [make_utxo(100 + i, value=545, token_id=token_id) for i in range(8)]

        result = detect_dust_attack(classify(utxos))

        assert result.detection_status == DetectionStatus.NOT_DETECTED
        assert result.dust_count == 0
        assert result.evidence == ()

    def test_single_source_is_not_an_attack(self, make_utxo) -> None:
        """Lots of dust from one transaction is not a distributed attack."""
        shared = "ee" * 32
        utxos = [make_utxo(i) for i in range(2)] + [
            make_utxo(50, value=100, txid=shared, vout=v) for v in range(8)
        ]
        result = detect_dust_attack(classify(utxos))

        assert result.detection_status == DetectionStatus.NOT_DETECTED
        # Risk depends on proportion only
        assert result.risk_level == RiskLevel.CRITICAL
        assert result.distinct_sources == 1

    def test_source_count_is_case_insensitive(self, make_utxo) -> None:
        utxos = [
            make_utxo(50, value=100, txid="ab" * 32, vout=0),
            make_utxo(51, value=100, txid="AB" * 32, vout=1),
        ]
        assert detect_dust_attack(classify(utxos)).distinct_sources == 1

    def test_low_water_is_strict(self, make_utxo) -> None:
        # 3 of 15 outputs: exactly 20%
        utxos = [make_utxo(i) for i in range(12)] + [make_utxo(50 + i, value=1) for i in range(3)]
        result = detect_dust_attack(classify(utxos))
        assert result.dust_proportion_percent == 20.0
        assert result.detection_status == DetectionStatus.NOT_DETECTED

    def test_high_water_is_strict(self, make_utxo) -> None:
        # 3 of 6 outputs: exactly 50%
        utxos = [make_utxo(i) for i in range(3)] + [make_utxo(50 + i, value=1) for i in range(3)]
        result = detect_dust_attack(classify(utxos))
        assert result.dust_proportion_percent == 50.0
        assert result.detection_status == DetectionStatus.SUSPECTED
        assert result.risk_level == RiskLevel.CRITICAL

    def test_custom_thresholds(self, make_utxo) -> None:
        config = DetectorConfig(
            low_water_percent=5.0, high_water_percent=10.0, min_distinct_sources=2
        )
        utxos = [make_utxo(i) for i in range(8)] + [make_utxo(50 + i, value=1) for i in range(2)]
        result = detect_dust_attack(classify(utxos), config)
        assert result.detection_status == DetectionStatus.CONFIRMED

    def test_evidence_ordered_by_value_then_reference(self, make_utxo) -> None:
        utxos = [
            make_utxo(3, value=300),
            make_utxo(2, value=100),
            make_utxo(1, value=200),
            make_utxo(4, value=100),
        ]
        result = detect_dust_attack(classify(utxos))
        assert [ref.txid for ref in result.evidence] == [
            utxos[1].txid,
            utxos[3].txid,
            utxos[2].txid,
            utxos[0].txid,
        ]

    def test_deterministic_under_reordering(self, dust_attack_utxos, make_utxo) -> None:
        utxos = dust_attack_utxos + [make_utxo(200 + i, value=300 + i) for i in range(5)]
        expected = detect_dust_attack(classify(utxos))

        rng = random.Random(7)
        for _ in range(5):
            shuffled = list(utxos)
            rng.shuffle(shuffled)
            assert detect_dust_attack(classify(shuffled)) == expected

    def test_adding_dust_never_lowers_risk(self, healthy_utxos, make_utxo) -> None:
        utxos = list(healthy_utxos)
        previous = detect_dust_attack(classify(utxos)).risk_level

        for i in range(30):
            utxos.append(make_utxo(500 + i, value=50))
            current = detect_dust_attack(classify(utxos)).risk_level
            assert current.rank >= previous.rank
            previous = current

        assert previous == RiskLevel.CRITICAL


class TestValuePatterns:
    def test_repeated_values(self) -> None:
        values = [100] * 3 + [200] * 5 + [300] * 2
        patterns = find_value_patterns(values, DetectorConfig())
        assert patterns == (
            DustValuePattern(value=200, count=5, systematic=True),
            DustValuePattern(value=100, count=3, systematic=False),
        )

    def test_ties_ordered_by_value(self) -> None:
        patterns = find_value_patterns([545] * 3 + [1] * 3, DetectorConfig())
        assert [p.value for p in patterns] == [1, 545]

    def test_no_repeats(self) -> None:
        assert find_value_patterns([1, 2, 3, 4], DetectorConfig()) == ()

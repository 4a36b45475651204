"""Tests for the single-shock depeg risk estimator."""

import pytest

from models.depeg_model import (
    RISK_HIGH,
    RISK_LOW,
    RISK_MEDIUM,
    calculate_depeg_risk,
    depeg_probability,
    describe_stability_mode,
    estimate_conversion,
)
from models.validation import InvalidParameter


class TestCalculateDepegRisk:
    def test_half_price_hits_depeg(self):
        result = calculate_depeg_risk(10_000_000.0, 5_000_000.0, 30.0, 100.0, 50.0)
        assert result.current_ratio == pytest.approx(200.0)
        assert result.after_drop_ratio == pytest.approx(100.0)
        assert "Depeg Risk" in result.stability_mode
        assert result.stability_mode_class == RISK_HIGH
        assert result.depeg_probability >= 75
        assert result.conversion_percentage > 0
        assert result.max_safe_drop_percentage == pytest.approx(35.0)

    def test_full_pool_converts_at_depeg(self):
        result = calculate_depeg_risk(10_000_000.0, 5_000_000.0, 30.0, 100.0, 50.0)
        assert result.converted == pytest.approx(1_500_000.0)
        assert result.conversion_percentage == pytest.approx(100.0)

    def test_modes_by_drop(self):
        normal = calculate_depeg_risk(10_000_000.0, 5_000_000.0, 30.0, 100.0, 20.0)
        warning = calculate_depeg_risk(10_000_000.0, 5_000_000.0, 30.0, 100.0, 30.0)
        critical = calculate_depeg_risk(10_000_000.0, 5_000_000.0, 30.0, 100.0, 40.0)

        assert "Normal Operation" in normal.stability_mode
        assert "Warning" in warning.stability_mode
        assert "Critical" in critical.stability_mode

        assert normal.stability_mode_class == RISK_LOW
        assert warning.stability_mode_class == RISK_MEDIUM
        assert critical.stability_mode_class == RISK_HIGH

        assert normal.converted == 0.0
        assert warning.converted == 0.0
        assert critical.converted == pytest.approx(500_000.0)

    def test_zero_drop(self):
        result = calculate_depeg_risk(10_000_000.0, 5_000_000.0, 30.0, 100.0, 0.0)
        assert result.after_drop_ratio == pytest.approx(result.current_ratio)
        assert result.depeg_level == "Very Low"

    def test_invalid_inputs(self):
        with pytest.raises(InvalidParameter):
            calculate_depeg_risk(10e6, 0.0, 30.0, 100.0, 50.0)
        with pytest.raises(InvalidParameter):
            calculate_depeg_risk(10e6, 5e6, 30.0, 0.0, 50.0)
        with pytest.raises(InvalidParameter):
            calculate_depeg_risk(10e6, 5e6, 30.0, 100.0, 150.0)


class TestBands:
    def test_stability_mode_labels(self):
        assert describe_stability_mode(90.0)[0].startswith("Depeg Risk")
        assert describe_stability_mode(125.0) == ("Critical (Mode 2)", RISK_HIGH)
        assert describe_stability_mode(145.0) == ("Warning (Mode 1)", RISK_MEDIUM)
        assert describe_stability_mode(151.0) == ("Normal Operation", RISK_LOW)

    def test_probability_bands(self):
        assert depeg_probability(95.0) == (99, "Extreme", RISK_HIGH)
        assert depeg_probability(105.0) == (75, "High", RISK_HIGH)
        assert depeg_probability(115.0) == (50, "Medium", RISK_MEDIUM)
        assert depeg_probability(125.0) == (25, "Low", RISK_LOW)
        assert depeg_probability(160.0) == (5, "Very Low", RISK_LOW)

    def test_conversion_capped_at_pool(self):
        converted, pct = estimate_conversion(50.0, 1_000.0)
        assert converted == pytest.approx(1_000.0)
        assert pct == pytest.approx(100.0)
        assert estimate_conversion(140.0, 1_000.0) == (0.0, 0.0)

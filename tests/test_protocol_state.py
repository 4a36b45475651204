"""Tests for the daily protocol state updater and stability-pool conversion."""

import pytest

from config.params import ConversionParams
from models.protocol_state import (
    CRITICAL,
    NORMAL,
    WARNING,
    advance_day,
    classify_stability_mode,
    collateral_ratio,
    conversion_rate,
    initial_state,
    residual_token_price,
)
from models.validation import InvalidParameter


class TestCollateralRatio:
    def test_basic(self):
        assert collateral_ratio(10_000_000.0, 5_000_000.0) == pytest.approx(200.0)

    def test_strictly_decreasing_in_supply(self):
        supplies = [1e6, 2e6, 5e6, 8e6, 1.2e7]
        ratios = [collateral_ratio(10_000_000.0, s) for s in supplies]
        for i in range(len(ratios) - 1):
            assert ratios[i + 1] < ratios[i]

    def test_zero_supply_rejected(self):
        with pytest.raises(InvalidParameter):
            collateral_ratio(10_000_000.0, 0.0)


class TestClassification:
    def test_thresholds(self):
        assert classify_stability_mode(100.0) == CRITICAL
        assert classify_stability_mode(130.0) == CRITICAL
        assert classify_stability_mode(130.01) == WARNING
        assert classify_stability_mode(150.0) == WARNING
        assert classify_stability_mode(150.01) == NORMAL
        assert classify_stability_mode(400.0) == NORMAL


class TestResidualPrice:
    def test_excess_collateral_per_token(self):
        assert residual_token_price(7e6, 5e6, 1e5, 50.0) == pytest.approx(20.0)

    def test_fallback_without_supply(self):
        assert residual_token_price(7e6, 5e6, 0.0, 50.0) == 50.0


class TestConversionRate:
    def test_zero_above_critical(self):
        assert conversion_rate(131.0, 200.0) == 0.0

    def test_severity_scaling(self):
        # base min(0.2, 0.1) scaled by 1 + (200 - 120) / 200
        assert conversion_rate(120.0, 200.0) == pytest.approx(0.14)

    def test_capped_base_rate(self):
        # base capped at 0.2, severity 0.5
        assert conversion_rate(100.0, 200.0) == pytest.approx(0.30)

    def test_never_negative(self):
        # Ratio above its starting point gives negative severity
        assert conversion_rate(125.0, 50.0) >= 0.0
        assert conversion_rate(10.0, 1.0) == 0.0


class TestInitialState:
    def test_bootstrap(self):
        state, ref = initial_state(10_000_000.0, 5_000_000.0, 30.0, 100.0)
        assert state.staked_stable == pytest.approx(1_500_000.0)
        assert state.residual_supply == pytest.approx(100_000.0)
        assert state.collateral_ratio == pytest.approx(200.0)
        assert ref.initial_residual_price == pytest.approx(50.0)
        assert ref.initial_collateral_ratio == pytest.approx(200.0)
        assert not state.terminal

    def test_undercollateralized_start_has_no_residual_tokens(self):
        state, ref = initial_state(4_000_000.0, 5_000_000.0, 30.0, 100.0)
        assert state.residual_supply == 0.0
        assert ref.initial_residual_price == pytest.approx(50.0)

    def test_invalid_inputs(self):
        with pytest.raises(InvalidParameter):
            initial_state(10e6, 0.0, 30.0, 100.0)
        with pytest.raises(InvalidParameter):
            initial_state(10e6, 5e6, 30.0, 0.0)
        with pytest.raises(InvalidParameter):
            initial_state(10e6, 5e6, 130.0, 100.0)
        with pytest.raises(InvalidParameter):
            initial_state(-1.0, 5e6, 30.0, 100.0)
        with pytest.raises(InvalidParameter):
            initial_state(float("nan"), 5e6, 30.0, 100.0)


class TestAdvanceDay:
    def setup_method(self):
        self.state, self.ref = initial_state(10_000_000.0, 5_000_000.0, 30.0, 100.0)

    def test_day_zero_unchanged(self):
        record, state = advance_day(self.state, 0, 100.0, self.ref)
        assert record.collateral_ratio == pytest.approx(200.0)
        assert record.stability_mode == NORMAL
        assert record.residual_price == pytest.approx(50.0)
        assert record.effective_leverage == 0.0
        assert record.converted == 0.0
        assert record.minted == 0.0
        assert state == self.state

    def test_warning_day_no_conversion(self):
        record, state = advance_day(self.state, 1, 70.0, self.ref)
        assert record.collateral_ratio == pytest.approx(140.0)
        assert record.stability_mode == WARNING
        assert record.converted == 0.0
        assert state.stable_supply == self.state.stable_supply
        assert state.collateral_value == pytest.approx(7_000_000.0)

    def test_effective_leverage(self):
        record, _ = advance_day(self.state, 1, 70.0, self.ref)
        # residual 50 -> 20 (-60%) against asset -30%
        assert record.residual_price == pytest.approx(20.0)
        assert record.effective_leverage == pytest.approx(2.0)

    def test_derived_fields(self):
        record, _ = advance_day(self.state, 1, 70.0, self.ref)
        assert record.asset_price_change_percent == pytest.approx(-30.0)
        assert record.collateral_value_change_percent == pytest.approx(-30.0)
        assert record.ratio_change_from_initial == pytest.approx(-60.0)
        assert record.ratio_change_percent == pytest.approx(-30.0)
        assert record.depeg_buffer == pytest.approx(40.0)
        assert record.depeg_buffer_percent == pytest.approx(0.4)

    def test_critical_day_converts_and_mints(self):
        record, state = advance_day(self.state, 1, 60.0, self.ref)
        assert record.stability_mode == CRITICAL
        assert record.converted == pytest.approx(210_000.0)
        assert record.conversion_percent_of_staked == pytest.approx(14.0)
        # residual price (6M - 5M) / 100k = 10
        assert record.minted == pytest.approx(21_000.0)
        assert state.staked_stable == pytest.approx(1_290_000.0)
        assert state.stable_supply == pytest.approx(4_790_000.0)
        assert state.residual_supply == pytest.approx(121_000.0)
        assert record.stable_supply == state.stable_supply

    def test_collateral_tracks_initial_value_not_previous_day(self):
        _, state = advance_day(self.state, 1, 60.0, self.ref)
        record, _ = advance_day(state, 2, 80.0, self.ref)
        assert record.collateral_value == pytest.approx(8_000_000.0)
        assert record.collateral_ratio == pytest.approx(8e6 / 4.79e6 * 100.0)

    def test_worthless_residual_mints_nothing(self):
        record, state = advance_day(self.state, 1, 50.0, self.ref)
        assert record.residual_price == pytest.approx(0.0)
        assert record.converted == pytest.approx(450_000.0)
        assert record.minted == 0.0
        assert state.stable_supply == pytest.approx(4_550_000.0)
        assert state.residual_supply == pytest.approx(self.state.residual_supply)

    def test_visibility_floor_with_empty_pool(self):
        state, ref = initial_state(10_000_000.0, 5_000_000.0, 0.0, 100.0)
        record, next_state = advance_day(state, 1, 60.0, ref)
        assert record.converted == pytest.approx(0.001)
        assert record.minted == 0.0
        assert record.conversion_percent_of_staked == 0.0
        assert next_state.stable_supply == state.stable_supply

    def test_pool_drain_is_terminal(self):
        aggressive = ConversionParams(max_daily_rate=1.0)
        record, state = advance_day(self.state, 1, 10.0, self.ref, conversion=aggressive)
        assert record.terminal
        assert state.terminal
        assert record.converted == 0.0
        assert state.staked_stable == self.state.staked_stable
        assert state.stable_supply == self.state.stable_supply

        record, after = advance_day(state, 2, 100.0, self.ref, conversion=aggressive)
        assert record.terminal
        assert record.collateral_value == pytest.approx(10_000_000.0)
        assert after.stable_supply == self.state.stable_supply

    def test_terminal_state_stops_conversions(self):
        aggressive = ConversionParams(max_daily_rate=1.0)
        _, state = advance_day(self.state, 1, 10.0, self.ref, conversion=aggressive)
        record, after = advance_day(state, 2, 60.0, self.ref)
        assert record.stability_mode == CRITICAL
        assert record.converted == 0.0
        assert after.staked_stable == self.state.staked_stable

    def test_negative_price_rejected(self):
        with pytest.raises(InvalidParameter):
            advance_day(self.state, 1, -1.0, self.ref)

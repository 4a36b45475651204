"""Tests for parameter defaults and environment overrides."""

import pytest

from config.params import (
    DEFAULT_SCENARIO,
    SCENARIOS,
    CalculatorDefaults,
    load_defaults,
)

ENV_VARS = (
    "CALC_COLLATERAL_VALUE", "CALC_STABLE_SUPPLY", "CALC_STAKED_PERCENTAGE",
    "CALC_ASSET_PRICE", "CALC_BASE_YIELD", "CALC_YIELD_DISTRIBUTION",
    "CALC_PRICE_DROP", "CALC_SCENARIO",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_env():
    assert load_defaults() == CalculatorDefaults()


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("CALC_STAKED_PERCENTAGE", "45")
    monkeypatch.setenv("CALC_COLLATERAL_VALUE", "12000000")
    monkeypatch.setenv("CALC_SCENARIO", " severe ")
    defaults = load_defaults()
    assert defaults.staked_percentage == pytest.approx(45.0)
    assert defaults.collateral_value == pytest.approx(12_000_000.0)
    assert defaults.scenario == "severe"


def test_unparseable_env_keeps_default(monkeypatch):
    monkeypatch.setenv("CALC_ASSET_PRICE", "one hundred")
    monkeypatch.setenv("CALC_SCENARIO", "   ")
    defaults = load_defaults()
    assert defaults.asset_price == pytest.approx(100.0)
    assert defaults.scenario == DEFAULT_SCENARIO


def test_scenario_table():
    assert set(SCENARIOS) == {"moderate", "severe", "extreme", "flash-crash", "var-99"}
    assert DEFAULT_SCENARIO in SCENARIOS
    for params in SCENARIOS.values():
        assert params.drop_days >= 1
        assert 0.0 < params.drop_percent <= 100.0

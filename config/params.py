"""
Protocol parameters for the synthetic-dollar risk calculators.

Thresholds and conversion constants mirror the protocol's stability-pool
rules. Calculator input defaults can be overridden from the environment
(see load_defaults); entry points load a .env file first.
"""

import os
from dataclasses import dataclass

DEFAULT_SCENARIO = "moderate"


@dataclass(frozen=True)
class StabilityThresholds:
    """Collateral-ratio thresholds (percent) driving stability modes."""
    critical_ratio: float = 130.0
    # Stability mode 2: staked stable asset converts into residual tokens
    warning_ratio: float = 150.0
    # Stability mode 1: fees rise, no conversion yet
    depeg_ratio: float = 100.0
    # At or below this the stable asset is no longer fully backed


@dataclass(frozen=True)
class ConversionParams:
    """Stability-pool conversion rules."""
    max_daily_rate: float = 0.20
    # Cap on the base daily conversion rate before the severity multiplier
    visibility_floor: float = 0.001
    # Reported minimum for a conversion day so charts never show a gap
    fallback_fraction: float = 0.01
    # Share of the initial staked balance shown when no day converts
    depeg_conversion_band: float = 30.0
    # Ratio points below the critical threshold for full pool conversion


@dataclass(frozen=True)
class RecoveryParams:
    """Shape of the post-shock recovery leg of the price path."""
    recovery_days: int = 10
    recovery_fraction: float = 0.70


@dataclass(frozen=True)
class ResidualTokenParams:
    """Bootstrap of the leveraged residual-claim token."""
    initial_price_fraction: float = 0.5
    # Initial residual price as a fraction of the initial asset price


@dataclass(frozen=True)
class YieldParams:
    """Staking yield estimator settings."""
    staking_levels: tuple = (10, 20, 30, 40, 50, 60, 70, 80, 90)
    reference_investment: float = 1_000.0
    risk_factor_bands: tuple = ((130.0, 0.40), (150.0, 0.20), (180.0, 0.10))
    # (ratio upper bound exclusive, probability of conversion during stress)
    floor_risk_factor: float = 0.05
    staking_risk_bands: tuple = ((20.0, "High"), (40.0, "Medium"))
    floor_staking_risk: str = "Low"


@dataclass(frozen=True)
class DepegParams:
    """Depeg probability bands keyed by post-shock collateral ratio (inclusive upper bound)."""
    probability_bands: tuple = (
        (100.0, 99, "Extreme", "risk-high"),
        (110.0, 75, "High", "risk-high"),
        (120.0, 50, "Medium", "risk-medium"),
        (130.0, 25, "Low", "risk-low"),
    )
    floor_probability: int = 5
    floor_level: str = "Very Low"


@dataclass(frozen=True)
class ScenarioParameters:
    """Shock definition: total asset-price drop spread over drop_days."""
    drop_percent: float
    drop_days: int


SCENARIOS = {
    "moderate": ScenarioParameters(drop_percent=30.0, drop_days=7),
    "severe": ScenarioParameters(drop_percent=50.0, drop_days=3),
    "extreme": ScenarioParameters(drop_percent=70.0, drop_days=5),
    "flash-crash": ScenarioParameters(drop_percent=40.0, drop_days=1),
    "var-99": ScenarioParameters(drop_percent=33.0, drop_days=1),
}


@dataclass(frozen=True)
class CalculatorDefaults:
    """Default calculator inputs used by the CLI."""
    collateral_value: float = 10_000_000.0
    stable_supply: float = 5_000_000.0
    staked_percentage: float = 30.0
    asset_price: float = 100.0
    base_yield: float = 8.0
    yield_distribution: float = 80.0
    price_drop: float = 50.0
    scenario: str = DEFAULT_SCENARIO


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def load_defaults(base: CalculatorDefaults | None = None) -> CalculatorDefaults:
    """
    Resolve calculator defaults from CALC_* environment variables.

    Unset or unparseable variables keep the value from ``base``.
    """
    base = base or CalculatorDefaults()
    return CalculatorDefaults(
        collateral_value=_env_float("CALC_COLLATERAL_VALUE", base.collateral_value),
        stable_supply=_env_float("CALC_STABLE_SUPPLY", base.stable_supply),
        staked_percentage=_env_float("CALC_STAKED_PERCENTAGE", base.staked_percentage),
        asset_price=_env_float("CALC_ASSET_PRICE", base.asset_price),
        base_yield=_env_float("CALC_BASE_YIELD", base.base_yield),
        yield_distribution=_env_float("CALC_YIELD_DISTRIBUTION", base.yield_distribution),
        price_drop=_env_float("CALC_PRICE_DROP", base.price_drop),
        scenario=_env_str("CALC_SCENARIO", base.scenario),
    )


# Convenient default instances (used throughout codebase)
THRESHOLDS = StabilityThresholds()
CONVERSION = ConversionParams()
RECOVERY = RecoveryParams()
RESIDUAL = ResidualTokenParams()
YIELD = YieldParams()
DEPEG = DepegParams()
DEFAULTS = CalculatorDefaults()

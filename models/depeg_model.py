"""
Single-shock depeg risk estimator.

Applies an instantaneous asset-price drop to the collateral and reports the
resulting collateral ratio, stability mode, expected stability-pool
conversion and a banded depeg probability.

    CR_after = CR_now * (1 - drop)
    conversion share = min(1, (130 - CR_after) / 30)    for CR_after <= 130
    max safe drop    = 1 - 130 / CR_now
"""

from dataclasses import dataclass, asdict

from config.params import (
    CONVERSION, DEPEG, THRESHOLDS,
    ConversionParams, DepegParams, StabilityThresholds,
)
from models.protocol_state import collateral_ratio
from models.validation import require_non_negative, require_percentage, require_positive

RISK_HIGH = "risk-high"
RISK_MEDIUM = "risk-medium"
RISK_LOW = "risk-low"


@dataclass
class DepegRiskResult:
    current_ratio: float
    after_drop_ratio: float
    stability_mode: str
    stability_mode_class: str
    converted: float
    conversion_percentage: float
    depeg_probability: int
    depeg_level: str
    depeg_class: str
    max_safe_drop_percentage: float

    def to_dict(self) -> dict:
        return asdict(self)


def describe_stability_mode(ratio: float,
                            thresholds: StabilityThresholds = THRESHOLDS) -> tuple[str, str]:
    """Display label and risk class for a post-shock ratio."""
    if ratio <= thresholds.depeg_ratio:
        return f"Depeg Risk (CR ≤ {thresholds.depeg_ratio:.0f}%)", RISK_HIGH
    if ratio <= thresholds.critical_ratio:
        return "Critical (Mode 2)", RISK_HIGH
    if ratio <= thresholds.warning_ratio:
        return "Warning (Mode 1)", RISK_MEDIUM
    return "Normal Operation", RISK_LOW


def estimate_conversion(ratio: float, staked_stable: float,
                        conversion: ConversionParams = CONVERSION,
                        thresholds: StabilityThresholds = THRESHOLDS) -> tuple[float, float]:
    """
    Staked balance converted at ``ratio`` and its share of the pool (%).

    The whole pool converts once the ratio is depeg_conversion_band points
    below the critical threshold.
    """
    if ratio > thresholds.critical_ratio:
        return 0.0, 0.0
    rate = min(1.0, (thresholds.critical_ratio - ratio) / conversion.depeg_conversion_band)
    return staked_stable * rate, rate * 100.0


def depeg_probability(ratio: float, params: DepegParams = DEPEG) -> tuple[int, str, str]:
    """Banded (probability %, level, risk class) for a collateral ratio."""
    for upper, probability, level, css in params.probability_bands:
        if ratio <= upper:
            return probability, level, css
    return params.floor_probability, params.floor_level, RISK_LOW


def calculate_depeg_risk(collateral_value: float, stable_supply: float,
                         staked_percentage: float, asset_price: float,
                         price_drop_percentage: float,
                         thresholds: StabilityThresholds = THRESHOLDS) -> DepegRiskResult:
    """Assess protocol state after an instantaneous asset-price drop."""
    collateral_value = require_non_negative("collateral_value", collateral_value)
    stable_supply = require_positive("stable_supply", stable_supply)
    staked_percentage = require_percentage("staked_percentage", staked_percentage)
    asset_price = require_positive("asset_price", asset_price)
    price_drop_percentage = require_percentage("price_drop_percentage", price_drop_percentage)

    current_ratio = collateral_ratio(collateral_value, stable_supply)
    staked_stable = stable_supply * staked_percentage / 100.0

    new_price = asset_price * (1.0 - price_drop_percentage / 100.0)
    new_collateral = collateral_value * (new_price / asset_price)
    after_drop_ratio = collateral_ratio(new_collateral, stable_supply)

    mode, mode_class = describe_stability_mode(after_drop_ratio, thresholds)
    converted, conversion_pct = estimate_conversion(
        after_drop_ratio, staked_stable, thresholds=thresholds,
    )
    probability, level, depeg_class = depeg_probability(after_drop_ratio)

    if current_ratio > 0.0:
        max_safe_drop = (1.0 - thresholds.critical_ratio / current_ratio) * 100.0
    else:
        max_safe_drop = 0.0

    return DepegRiskResult(
        current_ratio=current_ratio,
        after_drop_ratio=after_drop_ratio,
        stability_mode=mode,
        stability_mode_class=mode_class,
        converted=converted,
        conversion_percentage=conversion_pct,
        depeg_probability=probability,
        depeg_level=level,
        depeg_class=depeg_class,
        max_safe_drop_percentage=max_safe_drop,
    )

"""
Stability-pool staking yield estimator.

Stakers receive a share of the protocol's base collateral yield, levered by
how much collateral stands behind each staked unit:

    yield_multiple = collateral_value / staked_stable
    raw_apy        = base_yield * distribution * yield_multiple

The risk-adjusted APY discounts the raw APY by the chance that staked
balances get converted into residual tokens during stress, which rises as
the collateral ratio falls.
"""

from dataclasses import dataclass, asdict

from config.params import YIELD, YieldParams
from models.protocol_state import collateral_ratio
from models.validation import require_non_negative, require_percentage, require_positive


@dataclass
class StakingLevel:
    """APY at one hypothetical staking participation level."""
    percentage: float
    apy: float
    risk_level: str


@dataclass
class YieldResult:
    collateral_ratio: float
    staked_stable: float
    yield_multiple: float
    raw_apy: float
    risk_factor: float
    risk_adjusted_apy: float
    annual_yield_on_reference_investment: float
    staking_levels: list

    def to_dict(self) -> dict:
        return asdict(self)


def conversion_risk_factor(ratio: float, params: YieldParams = YIELD) -> float:
    """Probability that staked balances are converted during stress."""
    for upper, factor in params.risk_factor_bands:
        if ratio < upper:
            return factor
    return params.floor_risk_factor


def staking_risk_level(staked_percentage: float, params: YieldParams = YIELD) -> str:
    """Thin participation concentrates conversions on fewer stakers."""
    for upper, level in params.staking_risk_bands:
        if staked_percentage < upper:
            return level
    return params.floor_staking_risk


def _apy(collateral_value: float, staked_stable: float,
         base_yield: float, yield_distribution: float) -> float:
    return base_yield * (yield_distribution / 100.0) * (collateral_value / staked_stable)


def calculate_yield(collateral_value: float, stable_supply: float,
                    staked_percentage: float, base_yield: float,
                    yield_distribution_percentage: float,
                    params: YieldParams = YIELD) -> YieldResult:
    """
    Estimate stability-pool APY.

    Parameters:
        collateral_value: Total collateral value backing the protocol
        stable_supply: Outstanding stable asset supply (> 0)
        staked_percentage: Share of stable supply staked, in percent (0, 100]
        base_yield: Annual yield earned on collateral, in percent
        yield_distribution_percentage: Share of that yield paid to stakers

    Returns:
        YieldResult with raw and risk-adjusted APY plus a table of APYs at
        alternative staking levels.
    """
    collateral_value = require_non_negative("collateral_value", collateral_value)
    stable_supply = require_positive("stable_supply", stable_supply)
    staked_percentage = require_percentage(
        "staked_percentage", staked_percentage, allow_zero=False,
    )
    base_yield = require_non_negative("base_yield", base_yield)
    yield_distribution_percentage = require_percentage(
        "yield_distribution_percentage", yield_distribution_percentage,
    )

    ratio = collateral_ratio(collateral_value, stable_supply)
    staked_stable = stable_supply * staked_percentage / 100.0
    yield_multiple = collateral_value / staked_stable
    raw_apy = _apy(collateral_value, staked_stable, base_yield,
                   yield_distribution_percentage)
    risk_factor = conversion_risk_factor(ratio, params)

    levels = []
    for level in params.staking_levels:
        level_staked = stable_supply * level / 100.0
        levels.append(StakingLevel(
            percentage=level,
            apy=_apy(collateral_value, level_staked, base_yield,
                     yield_distribution_percentage),
            risk_level=staking_risk_level(level, params),
        ))

    return YieldResult(
        collateral_ratio=ratio,
        staked_stable=staked_stable,
        yield_multiple=yield_multiple,
        raw_apy=raw_apy,
        risk_factor=risk_factor,
        risk_adjusted_apy=raw_apy * (1.0 - risk_factor),
        annual_yield_on_reference_investment=raw_apy / 100.0 * params.reference_investment,
        staking_levels=levels,
    )

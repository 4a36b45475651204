"""
Daily protocol state updater for the stress-test simulation.

Each simulated day marks collateral to the asset price, recomputes the
collateral ratio and residual-token price, and applies the stability-pool
conversion rule when the ratio is at or below the critical threshold:

    severity   = (CR_0 - CR_t) / CR_0
    rate       = max(0, min(0.2, (130 - CR_t) / 100) * (1 + severity))
    conversion = min(staked, staked * rate)
    minted     = conversion / residual_price

State is threaded explicitly: advance_day takes the previous ProtocolState
and returns the day's record together with the next state.
"""

from dataclasses import dataclass, asdict, replace

from config.params import (
    CONVERSION, RESIDUAL, THRESHOLDS,
    ConversionParams, ResidualTokenParams, StabilityThresholds,
)
from models.validation import (
    InvalidParameter,
    require_non_negative,
    require_percentage,
    require_positive,
)

NORMAL = "normal"
WARNING = "warning"
CRITICAL = "critical"


@dataclass(frozen=True)
class ProtocolState:
    """Protocol balances carried from one day to the next."""
    collateral_value: float
    stable_supply: float
    staked_stable: float
    residual_supply: float
    terminal: bool = False

    @property
    def collateral_ratio(self) -> float:
        return collateral_ratio(self.collateral_value, self.stable_supply)


@dataclass(frozen=True)
class SimulationReference:
    """Day-0 values every later day is measured against."""
    initial_price: float
    initial_collateral_value: float
    initial_collateral_ratio: float
    initial_residual_price: float
    initial_staked_stable: float


@dataclass(frozen=True)
class DayRecord:
    """Snapshot of one simulated day (post-conversion balances)."""
    day: int
    asset_price: float
    asset_price_change_percent: float
    collateral_value: float
    collateral_value_change_percent: float
    collateral_ratio: float
    ratio_change_from_initial: float
    ratio_change_percent: float
    stability_mode: str
    residual_price: float
    residual_price_change_percent: float
    effective_leverage: float
    stable_supply: float
    staked_stable: float
    residual_supply: float
    converted: float
    minted: float
    conversion_percent_of_staked: float
    depeg_buffer: float
    depeg_buffer_percent: float
    terminal: bool = False
    synthetic: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


def collateral_ratio(collateral_value: float, stable_supply: float) -> float:
    """Collateral value over stable supply, in percent."""
    if stable_supply <= 0.0:
        raise InvalidParameter(f"stable_supply must be > 0, got {stable_supply}")
    return collateral_value / stable_supply * 100.0


def classify_stability_mode(ratio: float,
                            thresholds: StabilityThresholds = THRESHOLDS) -> str:
    if ratio <= thresholds.critical_ratio:
        return CRITICAL
    if ratio <= thresholds.warning_ratio:
        return WARNING
    return NORMAL


def residual_token_price(collateral_value: float, stable_supply: float,
                         residual_supply: float, fallback_price: float) -> float:
    """
    Residual claim per token: (collateral - stable liabilities) / supply.

    Falls back to ``fallback_price`` while no residual tokens exist.
    """
    if residual_supply > 0.0:
        return (collateral_value - stable_supply) / residual_supply
    return fallback_price


def conversion_rate(ratio: float, initial_ratio: float,
                    conversion: ConversionParams = CONVERSION,
                    thresholds: StabilityThresholds = THRESHOLDS) -> float:
    """
    Daily share of the staked balance converted at ``ratio``.

    Zero above the critical threshold; never negative.
    """
    if ratio > thresholds.critical_ratio:
        return 0.0
    severity = (initial_ratio - ratio) / initial_ratio if initial_ratio > 0.0 else 0.0
    base_rate = min(conversion.max_daily_rate,
                    (thresholds.critical_ratio - ratio) / 100.0)
    return max(0.0, base_rate * (1.0 + severity))


def initial_state(collateral_value: float, stable_supply: float,
                  staked_percentage: float, asset_price: float,
                  residual: ResidualTokenParams = RESIDUAL,
                  ) -> tuple[ProtocolState, SimulationReference]:
    """
    Bootstrap day-0 state from calculator inputs.

    The residual token starts at ``initial_price_fraction`` of the asset
    price, with supply sized so that its market cap equals the collateral
    in excess of the stable supply.
    """
    collateral_value = require_non_negative("collateral_value", collateral_value)
    stable_supply = require_positive("stable_supply", stable_supply)
    staked_percentage = require_percentage("staked_percentage", staked_percentage)
    asset_price = require_positive("asset_price", asset_price)

    initial_residual_price = asset_price * residual.initial_price_fraction
    excess = max(collateral_value - stable_supply, 0.0)
    residual_supply = excess / initial_residual_price
    staked_stable = stable_supply * staked_percentage / 100.0

    state = ProtocolState(
        collateral_value=collateral_value,
        stable_supply=stable_supply,
        staked_stable=staked_stable,
        residual_supply=residual_supply,
    )
    reference = SimulationReference(
        initial_price=asset_price,
        initial_collateral_value=collateral_value,
        initial_collateral_ratio=state.collateral_ratio,
        initial_residual_price=initial_residual_price,
        initial_staked_stable=staked_stable,
    )
    return state, reference


def advance_day(state: ProtocolState, day: int, asset_price: float,
                reference: SimulationReference,
                thresholds: StabilityThresholds = THRESHOLDS,
                conversion: ConversionParams = CONVERSION,
                ) -> tuple[DayRecord, ProtocolState]:
    """
    Advance protocol state by one day at ``asset_price``.

    A conversion that would drain the whole staked pool (and with it
    possibly the stable supply) is not applied; the day is flagged terminal
    instead and balances stay frozen for the rest of the run. Terminal days
    keep marking collateral to the price path.

    When the residual price is not positive the conversion still retires
    staked stable, but no residual tokens are minted.
    """
    asset_price = require_non_negative("asset_price", asset_price)

    collateral_value = (
        reference.initial_collateral_value * asset_price / reference.initial_price
    )
    ratio = collateral_ratio(collateral_value, state.stable_supply)
    mode = classify_stability_mode(ratio, thresholds)
    residual_price = residual_token_price(
        collateral_value, state.stable_supply, state.residual_supply,
        reference.initial_residual_price,
    )

    asset_change = (asset_price / reference.initial_price - 1.0) * 100.0
    residual_change = (residual_price / reference.initial_residual_price - 1.0) * 100.0
    if asset_change != 0.0:
        effective_leverage = abs(residual_change / asset_change)
    else:
        effective_leverage = 0.0

    converted = 0.0
    minted = 0.0
    conversion_pct = 0.0
    terminal = state.terminal
    next_state = replace(state, collateral_value=collateral_value)

    if not terminal and ratio <= thresholds.critical_ratio:
        staked = state.staked_stable
        rate = conversion_rate(ratio, reference.initial_collateral_ratio,
                               conversion, thresholds)
        daily_conversion = min(staked, staked * rate)

        if daily_conversion > 0.0 and daily_conversion >= staked:
            terminal = True
        else:
            converted = max(daily_conversion, conversion.visibility_floor)
            if staked > 0.0:
                conversion_pct = converted / staked * 100.0
            if daily_conversion > 0.0:
                if residual_price > 0.0:
                    minted = daily_conversion / residual_price
                next_state = ProtocolState(
                    collateral_value=collateral_value,
                    stable_supply=state.stable_supply - daily_conversion,
                    staked_stable=staked - daily_conversion,
                    residual_supply=state.residual_supply + minted,
                )

    next_state = replace(next_state, terminal=terminal)

    record = DayRecord(
        day=day,
        asset_price=asset_price,
        asset_price_change_percent=asset_change,
        collateral_value=collateral_value,
        collateral_value_change_percent=(
            (collateral_value / reference.initial_collateral_value - 1.0) * 100.0
            if reference.initial_collateral_value > 0.0 else 0.0
        ),
        collateral_ratio=ratio,
        ratio_change_from_initial=ratio - reference.initial_collateral_ratio,
        ratio_change_percent=(
            (ratio / reference.initial_collateral_ratio - 1.0) * 100.0
            if reference.initial_collateral_ratio > 0.0 else 0.0
        ),
        stability_mode=mode,
        residual_price=residual_price,
        residual_price_change_percent=residual_change,
        effective_leverage=effective_leverage,
        stable_supply=next_state.stable_supply,
        staked_stable=next_state.staked_stable,
        residual_supply=next_state.residual_supply,
        converted=converted,
        minted=minted,
        conversion_percent_of_staked=conversion_pct,
        depeg_buffer=ratio - thresholds.depeg_ratio,
        depeg_buffer_percent=ratio / thresholds.depeg_ratio - 1.0,
        terminal=terminal,
    )
    return record, next_state

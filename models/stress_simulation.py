"""
Stress-test engine: named shock scenarios, day-by-day simulation and
summary risk metrics.

Pipeline:
1. Resolve scenario name -> (drop_percent, drop_days)
2. Shock-and-recovery asset price path
3. Fold the daily updater over the path (one DayRecord per day)
4. Conversion-visibility fallback for charting
5. Reduce the records into SummaryMetrics
"""

import json
from dataclasses import dataclass, asdict, replace

import numpy as np

from config.params import (
    CONVERSION, DEFAULT_SCENARIO, RECOVERY, SCENARIOS, THRESHOLDS,
    ConversionParams, RecoveryParams, ScenarioParameters, StabilityThresholds,
)
from models.price_path import generate_price_path
from models.protocol_state import (
    CRITICAL,
    WARNING,
    DayRecord,
    SimulationReference,
    advance_day,
    initial_state,
)


@dataclass
class SummaryMetrics:
    """Risk metrics reduced from the per-day series."""
    initial_collateral_ratio: float
    min_collateral_ratio: float
    min_ratio_change_percent: float
    final_collateral_ratio: float
    final_ratio_change_percent: float
    total_converted: float
    conversion_percentage: float
    residual_drawdown: float
    residual_leverage: float
    survived: bool
    days_in_warning: int
    days_in_critical: int
    recovery_from_trough: float
    depeg_buffer: float
    trough_day: int
    terminal_day: int | None = None


@dataclass
class SimulationResult:
    """Summary plus the full per-day series for downstream charting."""
    scenario: str
    parameters: ScenarioParameters
    summary: SummaryMetrics
    daily_data: list[DayRecord]

    def series(self, field_name: str) -> np.ndarray:
        """One DayRecord field across all days."""
        return np.array([getattr(r, field_name) for r in self.daily_data])

    def to_dict(self) -> dict:
        return {
            "scenario": self.scenario,
            "parameters": asdict(self.parameters),
            "summary": asdict(self.summary),
            "daily_data": [r.to_dict() for r in self.daily_data],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


def resolve_scenario(name: str | None) -> ScenarioParameters:
    """Scenario parameters by name; unknown names use the default scenario."""
    return SCENARIOS.get(name, SCENARIOS[DEFAULT_SCENARIO])


def simulate(collateral_value: float, stable_supply: float,
             staked_percentage: float, asset_price: float,
             drop_percent: float, drop_days: int,
             thresholds: StabilityThresholds = THRESHOLDS,
             conversion: ConversionParams = CONVERSION,
             recovery: RecoveryParams = RECOVERY,
             ) -> tuple[list[DayRecord], SimulationReference]:
    """
    Run the day-by-day simulation for one shock.

    Returns (records, reference); records has drop_days + 1 +
    recovery.recovery_days entries.
    """
    state, reference = initial_state(
        collateral_value, stable_supply, staked_percentage, asset_price,
    )
    price_path = generate_price_path(asset_price, drop_percent, drop_days, recovery)

    records = []
    for day, price in enumerate(price_path):
        record, state = advance_day(
            state, day, float(price), reference,
            thresholds=thresholds, conversion=conversion,
        )
        records.append(record)
    return records, reference


def ensure_conversion_visibility(records: list[DayRecord], initial_staked: float,
                                 conversion: ConversionParams = CONVERSION) -> list[DayRecord]:
    """
    Guarantee at least one day with a non-zero conversion.

    When no day converted, the lowest-ratio day is replaced by a copy
    showing ``fallback_fraction`` of the initial staked balance and flagged
    synthetic. This is a display accommodation only: balances and minted
    amounts are left untouched.
    """
    if not records or any(r.converted > 0.0 for r in records):
        return list(records)

    ratios = np.array([r.collateral_ratio for r in records])
    trough = int(np.argmin(ratios))
    out = list(records)
    out[trough] = replace(
        records[trough],
        converted=max(initial_staked * conversion.fallback_fraction,
                      conversion.visibility_floor),
        synthetic=True,
    )
    return out


def summarize(records: list[DayRecord], reference: SimulationReference,
              drop_percent: float,
              thresholds: StabilityThresholds = THRESHOLDS) -> SummaryMetrics:
    """Reduce a DayRecord series into summary risk metrics."""
    ratios = np.array([r.collateral_ratio for r in records], dtype=float)
    residual_prices = np.array([r.residual_price for r in records], dtype=float)
    converted = np.array([r.converted for r in records], dtype=float)
    modes = [r.stability_mode for r in records]

    initial_ratio = reference.initial_collateral_ratio
    trough_day = int(np.argmin(ratios))
    min_ratio = float(ratios[trough_day])
    final_ratio = float(ratios[-1])
    total_converted = float(np.sum(converted))

    if reference.initial_staked_stable > 0.0:
        conversion_pct = total_converted / reference.initial_staked_stable * 100.0
    else:
        conversion_pct = 0.0

    if residual_prices[0] != 0.0:
        residual_drawdown = (float(np.min(residual_prices)) / residual_prices[0] - 1.0) * 100.0
    else:
        residual_drawdown = 0.0
    if drop_percent != 0.0:
        residual_leverage = abs(residual_drawdown / -drop_percent)
    else:
        residual_leverage = 0.0

    def _change_pct(ratio: float) -> float:
        if initial_ratio <= 0.0:
            return 0.0
        return (ratio / initial_ratio - 1.0) * 100.0

    terminal_days = [r.day for r in records if r.terminal]

    return SummaryMetrics(
        initial_collateral_ratio=initial_ratio,
        min_collateral_ratio=min_ratio,
        min_ratio_change_percent=_change_pct(min_ratio),
        final_collateral_ratio=final_ratio,
        final_ratio_change_percent=_change_pct(final_ratio),
        total_converted=total_converted,
        conversion_percentage=conversion_pct,
        residual_drawdown=float(residual_drawdown),
        residual_leverage=float(residual_leverage),
        survived=min_ratio > thresholds.depeg_ratio,
        days_in_warning=sum(1 for m in modes if m == WARNING),
        days_in_critical=sum(1 for m in modes if m == CRITICAL),
        recovery_from_trough=final_ratio - min_ratio,
        depeg_buffer=min_ratio - thresholds.depeg_ratio,
        trough_day=trough_day,
        terminal_day=terminal_days[0] if terminal_days else None,
    )


def run_scenario(collateral_value: float, stable_supply: float,
                 staked_percentage: float, asset_price: float,
                 scenario_name: str = DEFAULT_SCENARIO) -> SimulationResult:
    """
    Run a named stress scenario end to end.

    Unknown scenario names fall back to the default (moderate) shock.
    """
    params = resolve_scenario(scenario_name)
    records, reference = simulate(
        collateral_value, stable_supply, staked_percentage, asset_price,
        params.drop_percent, params.drop_days,
    )
    records = ensure_conversion_visibility(records, reference.initial_staked_stable)
    summary = summarize(records, reference, params.drop_percent)
    name = scenario_name if scenario_name in SCENARIOS else DEFAULT_SCENARIO
    return SimulationResult(
        scenario=name,
        parameters=params,
        summary=summary,
        daily_data=records,
    )

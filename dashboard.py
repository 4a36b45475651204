"""
Dashboard orchestrator: runs the three calculators on one set of inputs and
packages the results for display.

Pipeline:
1. Staking APY estimate (current ratio, staking-level table)
2. Single-shock depeg risk
3. Multi-day stress test for the selected scenario(s)
4. Chart-ready series (labels + datasets) from the per-day records
5. JSON or text report
"""

import json
import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timezone

import numpy as np

from config.params import DEFAULTS, SCENARIOS, CalculatorDefaults
from models.depeg_model import calculate_depeg_risk
from models.stress_simulation import SimulationResult, run_scenario
from models.yield_model import calculate_yield

LOGGER = logging.getLogger(__name__)

# (key, title, DayRecord field(s), dataset label(s), chart type)
CHART_SPECS = (
    ("price", "Asset Price Path", ("asset_price",), ("Asset Price (USD)",), "line"),
    ("collateral_ratio", "Collateral Ratio", ("collateral_ratio",),
     ("Collateral Ratio (%)",), "line"),
    ("residual_price", "Residual Token Price", ("residual_price",),
     ("Residual Token Price (USD)",), "line"),
    ("conversion", "Daily Stable Conversion", ("converted",),
     ("Stable Converted",), "bar"),
    ("effective_leverage", "Residual Token Effective Leverage",
     ("effective_leverage",), ("Effective Leverage",), "line"),
    ("price_compare", "Price Change Comparison (%)",
     ("asset_price_change_percent", "residual_price_change_percent"),
     ("Asset Price %", "Residual Token Price %"), "line"),
    ("ratio_change", "Collateral Ratio Change", ("ratio_change_from_initial",),
     ("CR Change from Initial",), "line"),
    ("depeg_buffer", "Distance from Depeg (100% CR)", ("depeg_buffer",),
     ("Buffer Above Depeg (%)",), "line"),
)


@dataclass
class DashboardOutput:
    """Complete dashboard output."""
    timestamp: str
    inputs: dict
    yield_estimate: dict
    depeg_risk: dict
    stress_tests: list
    charts: dict

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(asdict(self), indent=indent, default=_json_default)


def _json_default(obj):
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, (np.float64, np.float32)):
        return float(obj)
    if isinstance(obj, (np.int64, np.int32)):
        return int(obj)
    if isinstance(obj, np.bool_):
        return bool(obj)
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def build_chart_series(result: SimulationResult) -> dict:
    """Chart configs keyed by chart name: type, title, labels, datasets."""
    labels = [f"Day {r.day}" for r in result.daily_data]
    charts = {}
    for key, title, fields, names, chart_type in CHART_SPECS:
        charts[key] = {
            "type": chart_type,
            "title": title,
            "labels": labels,
            "datasets": [
                {"label": name, "data": result.series(field).tolist()}
                for field, name in zip(fields, names)
            ],
        }
    return charts


def format_currency(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_percent(value: float) -> str:
    """Format a value already expressed in percent."""
    return f"{value:,.2f}%"


class CalculatorDashboard:
    """
    Runs yield, depeg and stress calculators against shared inputs.

    The stress test runs the selected scenario, or every known scenario
    when ``all_scenarios`` is set; charts are built for the first one.
    """

    def __init__(self, defaults: CalculatorDefaults = DEFAULTS):
        self.inputs = defaults

    def _resolve_scenarios(self, scenario: str | None, all_scenarios: bool) -> list[str]:
        if all_scenarios:
            return list(SCENARIOS)
        name = scenario or self.inputs.scenario
        if name not in SCENARIOS:
            LOGGER.warning("Unknown scenario %r, using default parameters", name)
        return [name]

    def run(self, scenario: str | None = None,
            all_scenarios: bool = False) -> DashboardOutput:
        inp = self.inputs
        yield_result = calculate_yield(
            inp.collateral_value, inp.stable_supply, inp.staked_percentage,
            inp.base_yield, inp.yield_distribution,
        )
        depeg_result = calculate_depeg_risk(
            inp.collateral_value, inp.stable_supply, inp.staked_percentage,
            inp.asset_price, inp.price_drop,
        )

        results = []
        for name in self._resolve_scenarios(scenario, all_scenarios):
            result = run_scenario(
                inp.collateral_value, inp.stable_supply, inp.staked_percentage,
                inp.asset_price, name,
            )
            if result.summary.terminal_day is not None:
                LOGGER.warning(
                    "Scenario %s hit a terminal state on day %d; balances frozen",
                    result.scenario, result.summary.terminal_day,
                )
            LOGGER.debug(
                "Scenario %s: min CR %.2f%%, converted %.0f",
                result.scenario, result.summary.min_collateral_ratio,
                result.summary.total_converted,
            )
            results.append(result)

        return DashboardOutput(
            timestamp=datetime.now(timezone.utc).isoformat(),
            inputs=asdict(inp),
            yield_estimate=yield_result.to_dict(),
            depeg_risk=depeg_result.to_dict(),
            stress_tests=[r.to_dict() for r in results],
            charts=build_chart_series(results[0]),
        )


def format_report(output: DashboardOutput) -> str:
    """Human-readable summary of a dashboard run."""
    y = output.yield_estimate
    d = output.depeg_risk
    lines = [
        "STAKING YIELD",
        f"  Collateral ratio:        {format_percent(y['collateral_ratio'])}",
        f"  Current APY:             {format_percent(y['raw_apy'])}",
        f"  Yield multiple:          {y['yield_multiple']:.2f}x",
        f"  Risk-adjusted APY:       {format_percent(y['risk_adjusted_apy'])}",
        f"  Annual yield on $1,000:  "
        f"{format_currency(y['annual_yield_on_reference_investment'])}",
        "",
        "  Staked %   APY        Risk",
    ]
    for level in y["staking_levels"]:
        lines.append(
            f"  {level['percentage']:>7}%  {format_percent(level['apy']):>9}  "
            f"{level['risk_level']}"
        )

    lines += [
        "",
        "DEPEG RISK",
        f"  Current CR:              {format_percent(d['current_ratio'])}",
        f"  CR after drop:           {format_percent(d['after_drop_ratio'])}",
        f"  Stability mode:          {d['stability_mode']}",
        f"  Stable converted:        {d['converted']:,.0f} "
        f"({format_percent(d['conversion_percentage'])})",
        f"  Depeg probability:       {d['depeg_level']} ({d['depeg_probability']}%)",
        f"  Max safe drop:           {format_percent(d['max_safe_drop_percentage'])}",
    ]

    for stress in output.stress_tests:
        s = stress["summary"]
        p = stress["parameters"]
        lines += [
            "",
            f"STRESS TEST: {stress['scenario']} "
            f"(-{p['drop_percent']:.0f}% over {p['drop_days']}d)",
            f"  Initial CR:              {format_percent(s['initial_collateral_ratio'])}",
            f"  Minimum CR:              {format_percent(s['min_collateral_ratio'])} "
            f"({format_percent(s['min_ratio_change_percent'])})",
            f"  Final CR:                {format_percent(s['final_collateral_ratio'])} "
            f"({format_percent(s['final_ratio_change_percent'])})",
            f"  Stable converted:        {s['total_converted']:,.0f} "
            f"({format_percent(s['conversion_percentage'])})",
            f"  Residual drawdown:       {format_percent(s['residual_drawdown'])}",
            f"  Residual leverage:       {s['residual_leverage']:.2f}x",
            f"  Depeg buffer:            {format_percent(s['depeg_buffer'])} above depeg",
            f"  CR recovery:             +{format_percent(s['recovery_from_trough'])}",
            f"  Days in warning/critical: {s['days_in_warning']}/{s['days_in_critical']}",
            "  Survived:                "
            + ("Yes (maintained peg)" if s["survived"] else "No (lost peg)"),
        ]
    return "\n".join(lines)

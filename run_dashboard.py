"""
CLI entry point for the synthetic-dollar protocol risk calculators.

Usage:
    python run_dashboard.py --collateral 10000000 --supply 5000000 --staked 30
    python run_dashboard.py --scenario severe --json
    python run_dashboard.py --all-scenarios

Defaults come from CALC_* environment variables (a local .env is loaded).
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent / ".env")

from config.params import SCENARIOS, load_defaults
from dashboard import CalculatorDashboard, format_report
from models.validation import InvalidParameter


def build_parser(defaults) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Synthetic-dollar protocol yield, depeg and stress calculators"
    )
    parser.add_argument("--collateral", type=float, default=defaults.collateral_value,
                        help=f"Total collateral value (default: {defaults.collateral_value:,.0f})")
    parser.add_argument("--supply", type=float, default=defaults.stable_supply,
                        help=f"Stable asset supply (default: {defaults.stable_supply:,.0f})")
    parser.add_argument("--staked", type=float, default=defaults.staked_percentage,
                        help=f"Percent of supply staked (default: {defaults.staked_percentage})")
    parser.add_argument("--price", type=float, default=defaults.asset_price,
                        help=f"Collateral asset price (default: {defaults.asset_price})")
    parser.add_argument("--base-yield", type=float, default=defaults.base_yield,
                        help=f"Annual collateral yield in percent (default: {defaults.base_yield})")
    parser.add_argument("--distribution", type=float, default=defaults.yield_distribution,
                        help="Percent of yield paid to stakers "
                             f"(default: {defaults.yield_distribution})")
    parser.add_argument("--drop", type=float, default=defaults.price_drop,
                        help=f"Price drop for the depeg estimate (default: {defaults.price_drop})")
    parser.add_argument("--scenario", choices=sorted(SCENARIOS), default=None,
                        help=f"Stress scenario (default: {defaults.scenario})")
    parser.add_argument("--all-scenarios", action="store_true",
                        help="Run every stress scenario")
    parser.add_argument("--json", action="store_true",
                        help="Output raw JSON instead of formatted text")
    parser.add_argument("--verbose", action="store_true",
                        help="Enable debug logging")
    return parser


def main(argv=None) -> int:
    defaults = load_defaults()
    args = build_parser(defaults).parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="  [%(levelname)s] %(name)s: %(message)s",
    )

    inputs = replace(
        defaults,
        collateral_value=args.collateral,
        stable_supply=args.supply,
        staked_percentage=args.staked,
        asset_price=args.price,
        base_yield=args.base_yield,
        yield_distribution=args.distribution,
        price_drop=args.drop,
    )

    try:
        output = CalculatorDashboard(inputs).run(
            scenario=args.scenario, all_scenarios=args.all_scenarios,
        )
    except InvalidParameter as exc:
        print(f"  [ERROR] Invalid input: {exc}", file=sys.stderr)
        return 2

    if args.json:
        print(output.to_json())
        return 0

    print("=" * 70)
    print("  Synthetic-Dollar Protocol Risk Calculators")
    print("=" * 70)
    print(f"  Collateral: {inputs.collateral_value:,.0f} | Supply: {inputs.stable_supply:,.0f}"
          f" | Staked: {inputs.staked_percentage}% | Price: {inputs.asset_price}")
    print("=" * 70)
    print()
    print(format_report(output))
    return 0


if __name__ == "__main__":
    sys.exit(main())

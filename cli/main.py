"""Rebalancer CLI.

Provides commands for:
- rebalance: Allocate a contribution or withdrawal across asset classes
- balance: Minimum contribution that brings every asset to target
"""
from __future__ import annotations

import argparse
import logging
from typing import Any, Dict, List

from common.config_loader import LoadedConfig, load_all
from engine.contribution_engine import calculate_balancing_contribution
from engine.explanation_engine import explain_transactions
from engine.rebalance_engine import rebalance_portfolio
from engine.trade_planner import RebalanceResult
from policy.allocation_policy import InvalidInputError, RebalanceError
from policy.rebalance_policy import RebalancePolicy
from policy.types import AssetClass
from reporting.summary import result_summary, transactions_frame


def _pick(info: Dict[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in info:
            return info[k]
    raise InvalidInputError(f"Asset {info.get('name', '?')!r} is missing {keys[0]!r}")


def build_asset_classes(assets: List[Dict[str, Any]]) -> List[AssetClass]:
    """Build asset classes from asset-file entries."""
    classes = []
    for info in assets:
        if not isinstance(info, dict):
            raise InvalidInputError(f"Asset entries must be mappings, got {type(info).__name__}")
        classes.append(
            AssetClass(
                name=str(_pick(info, "name")),
                target_percent=float(_pick(info, "target_percent", "targetPercent")),
                current_value=float(_pick(info, "current_value", "currentValue")),
                sell=bool(info.get("sell", False)),
            )
        )
    return classes


def print_result(result: RebalanceResult, explain: bool = False) -> None:
    print("\nSummary:")
    for k, v in result_summary(result).items():
        if isinstance(v, float):
            print(f"  {k}: ${v:,.2f}")
        else:
            print(f"  {k}: {v}")

    print("\nTransactions:")
    lines = explain_transactions(result.transactions) if explain else [str(t) for t in result.transactions]
    for line in lines:
        print("  " + line)


def cmd_rebalance(args, cfg: LoadedConfig) -> int:
    """Handle rebalance command: place a contribution or withdrawal."""
    result = rebalance_portfolio(args.amount, build_asset_classes(cfg.assets), RebalancePolicy(cfg.policy))

    action = "Contribution" if args.amount >= 0 else "Withdrawal"
    print(f"{action}: ${abs(args.amount):,.2f}")
    print("=" * 50)
    print_result(result, explain=args.explain)

    if args.csv:
        transactions_frame(result).to_csv(args.csv)
        print(f"\nTransactions written to {args.csv}")
    return 0


def cmd_balance(args, cfg: LoadedConfig) -> int:
    """Handle balance command: minimum balancing contribution."""
    pol = RebalancePolicy(cfg.policy)
    classes = build_asset_classes(cfg.assets)
    contribution = calculate_balancing_contribution(classes, pol)

    print(f"Balancing contribution: ${contribution:,.2f}")
    if args.explain and contribution > 0:
        print_result(rebalance_portfolio(contribution, classes, pol), explain=True)
    return 0


def run(args) -> int:
    try:
        cfg = load_all(args.policy, args.assets)
        return args.func(args, cfg)
    except FileNotFoundError as e:
        print(f"Error: file not found: {e.filename}")
        return 1
    except RebalanceError as e:
        print(f"Error: {e}")
        return 1


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="rebalancer",
        description="Allocate contributions and withdrawals across target asset classes",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    # Common arguments for all commands
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--policy", default="config/rebalance_policy.yaml", help="Tolerance policy file")
    common.add_argument("--assets", default="config/assets.yaml", help="Asset classes file")
    common.add_argument("--explain", action="store_true", help="Show before/after percentages")

    rb = sub.add_parser("rebalance", parents=[common], help="Place a contribution or withdrawal")
    rb.add_argument(
        "--amount",
        type=float,
        required=True,
        help="Amount to contribute (positive) or withdraw (negative)",
    )
    rb.add_argument("--csv", default=None, help="Write transactions to this CSV file")
    rb.set_defaults(func=cmd_rebalance)

    bal = sub.add_parser("balance", parents=[common], help="Minimum contribution to reach targets")
    bal.set_defaults(func=cmd_balance)

    return p


def main(argv=None):
    """Main entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    raise SystemExit(run(args))


if __name__ == "__main__":
    main()

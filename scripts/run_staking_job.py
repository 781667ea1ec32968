#!/usr/bin/env python3
"""
Run a staking job by hand.

Every job is safe to repeat: a day that was already paid, a counter that
already advanced today or a pool that was already distributed is skipped.

Usage:
    python scripts/run_staking_job.py daily-roi [--day 2026-10-19]
    python scripts/run_staking_job.py compounding
    python scripts/run_staking_job.py matching [--day 2026-10-19]
    python scripts/run_staking_job.py pool-preview --program II --month 2026-09
    python scripts/run_staking_job.py pool-distribute --program II --month 2026-09
    python scripts/run_staking_job.py pool-distribute --previous-month
    python scripts/run_staking_job.py ranks
    python scripts/run_staking_job.py reconcile
"""

import argparse
import asyncio
import json
import sys
from datetime import date
from pathlib import Path
from typing import Any

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger

from app.config.database import async_engine
from app.services.staking_operations import StakingOperations

logger.remove()
logger.add(sys.stderr, level="INFO", format="{time:HH:mm:ss} | {level} | {message}")


def build_parser() -> argparse.ArgumentParser:
    """Command line interface with one subcommand per job."""
    parser = argparse.ArgumentParser(description="Run a staking job manually")
    commands = parser.add_subparsers(dest="command", required=True)

    roi = commands.add_parser("daily-roi", help="Daily ROI cycle")
    roi.add_argument("--day", type=date.fromisoformat, help="UTC day (YYYY-MM-DD)")

    commands.add_parser("compounding", help="Update compounding counters")

    matching = commands.add_parser("matching", help="Level overrides and matching bonus")
    matching.add_argument("--day", type=date.fromisoformat, help="UTC day (YYYY-MM-DD)")

    preview = commands.add_parser("pool-preview", help="Preview a pool distribution")
    preview.add_argument("--program", required=True)
    preview.add_argument("--month", required=True, help="YYYY-MM")

    distribute = commands.add_parser("pool-distribute", help="Distribute a pool")
    distribute.add_argument("--program")
    distribute.add_argument("--month", help="YYYY-MM")
    distribute.add_argument(
        "--previous-month",
        action="store_true",
        help="Distribute last month's pools of all configured programs",
    )

    commands.add_parser("ranks", help="Recalculate user ranks")
    commands.add_parser("reconcile", help="Flag ledger inconsistencies")
    return parser


async def run_command(args: argparse.Namespace) -> dict[str, Any]:
    """Dispatch the parsed command to the staking operations."""
    operations = StakingOperations()

    if args.command == "daily-roi":
        return await operations.run_manual_roi(args.day)
    if args.command == "compounding":
        return await operations.update_compounding_counters()
    if args.command == "matching":
        return await operations.process_daily_matching_bonuses(args.day)
    if args.command == "pool-preview":
        return await operations.calculate_leadership_distribution(args.program, args.month)
    if args.command == "pool-distribute":
        if args.previous_month:
            return await operations.distribute_previous_month_pools()
        if not args.program or not args.month:
            raise SystemExit("pool-distribute needs --program and --month, or --previous-month")
        return await operations.distribute_leadership_pool(args.program, args.month)
    if args.command == "ranks":
        return await operations.update_all_user_ranks()
    return await operations.reconcile()


async def main() -> int:
    args = build_parser().parse_args()
    logger.info(f"Running staking job: {args.command}")

    try:
        result = await run_command(args)
    finally:
        await async_engine.dispose()

    print(json.dumps(result, indent=2, default=str))
    return 0 if result.get("success", True) else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))

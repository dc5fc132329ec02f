"""Command-line entry point.

Usage:
    python -m mev_sentinel run
    python -m mev_sentinel analyze --chain ethereum --block 19000000 --contract 0x...
    python -m mev_sentinel alerts --contract 0x... [--limit 50] [--high-risk]
    python -m mev_sentinel stats --contract 0x...
    python -m mev_sentinel init-db
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence

from redis.asyncio import Redis

from mev_sentinel.alerter.formatter import AlertFormatter
from mev_sentinel.analyzer import BlockAnalyzer
from mev_sentinel.chain.client import Web3ChainConnector, build_connectors
from mev_sentinel.config import SUPPORTED_CHAIN_NAMES, Settings, get_settings
from mev_sentinel.detector.base import default_detectors
from mev_sentinel.detector.composite import CompositeStrategyDetector
from mev_sentinel.monitor import BlockMonitor
from mev_sentinel.service import MEVService
from mev_sentinel.stats import StatsAggregator
from mev_sentinel.storage.database import DatabaseManager
from mev_sentinel.storage.store import AlertStoreError, SqlAlertStore

logger = logging.getLogger("mev_sentinel")


def _configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.get_logging_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_analyzer(settings: Settings, connectors: dict[str, Web3ChainConnector]) -> BlockAnalyzer:
    composite = CompositeStrategyDetector(
        high_value_max_ether=settings.detection.high_value_max_ether,
        high_value_total_ether=settings.detection.high_value_total_ether,
    )
    return BlockAnalyzer(
        connectors,
        detectors=default_detectors(),
        composite=composite,
        fetch_timeout_seconds=settings.chains.rpc_timeout_seconds,
    )


def _build_service(settings: Settings, analyzer: BlockAnalyzer, db: DatabaseManager) -> MEVService:
    return MEVService(
        analyzer,
        SqlAlertStore(db),
        stats_sample_limit=settings.detection.stats_sample_limit,
    )


async def _close_connectors(connectors: dict[str, Web3ChainConnector]) -> None:
    for connector in connectors.values():
        await connector.aclose()


async def _cmd_run(settings: Settings) -> int:
    settings.validate_requirements(command="run")
    redis = Redis.from_url(settings.redis.url) if settings.redis.url else None
    connectors = build_connectors(settings, redis=redis)
    db = DatabaseManager(settings.database.url)
    try:
        service = _build_service(settings, _build_analyzer(settings, connectors), db)
        monitor = BlockMonitor(
            settings.monitor.contracts,
            connectors,
            service,
            poll_interval_seconds=settings.monitor.poll_interval_seconds,
            max_concurrency_per_chain=settings.monitor.max_concurrency_per_chain,
            max_blocks_per_tick=settings.monitor.max_blocks_per_tick,
        )
        await monitor.run()
    finally:
        await _close_connectors(connectors)
        await db.dispose_async()
        if redis is not None:
            await redis.aclose()
    return 0


async def _cmd_analyze(settings: Settings, args: argparse.Namespace) -> int:
    settings.validate_requirements(command="analyze")
    if settings.chains.rpc_url_for(args.chain) is None:
        print(f"No RPC URL configured for {args.chain}", file=sys.stderr)
        return 2

    connectors = build_connectors(settings)
    db = DatabaseManager(settings.database.url) if args.persist else None
    try:
        analyzer = _build_analyzer(settings, connectors)
        if db is not None:
            alerts = await _build_service(settings, analyzer, db).process_block(
                args.chain, args.block, args.contract
            )
        else:
            alerts = await analyzer.analyze_block(args.chain, args.block, args.contract)
    finally:
        await _close_connectors(connectors)
        if db is not None:
            await db.dispose_async()

    formatter = AlertFormatter(verbosity=args.verbosity)
    if not alerts:
        print(f"No MEV activity detected for {args.contract} in block {args.block}")
    for alert in alerts:
        print(formatter.format(alert, chain=args.chain).plain_text)
        print()
    return 0


async def _cmd_alerts(settings: Settings, args: argparse.Namespace) -> int:
    db = DatabaseManager(settings.database.url)
    try:
        alerts = await SqlAlertStore(db).list_by_contract(args.contract, limit=args.limit)
    finally:
        await db.dispose_async()
    if args.high_risk:
        alerts = [alert for alert in alerts if alert.is_high_risk]
    for alert in alerts:
        print(json.dumps(alert.to_dict(), default=str))
    return 0


async def _cmd_stats(settings: Settings, args: argparse.Namespace) -> int:
    db = DatabaseManager(settings.database.url)
    try:
        aggregator = StatsAggregator(SqlAlertStore(db), sample_limit=settings.detection.stats_sample_limit)
        stats = await aggregator.stats(args.contract)
    finally:
        await db.dispose_async()
    print(json.dumps(stats.to_dict(), indent=2))
    return 0


async def _cmd_init_db(settings: Settings) -> int:
    db = DatabaseManager(settings.database.url)
    try:
        await db.init_schema_async()
    finally:
        await db.dispose_async()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mev_sentinel", description="MEV detection engine for EVM contracts")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("run", help="Poll configured chains and persist MEV alerts")

    analyze = sub.add_parser("analyze", help="Analyze one block for one contract")
    analyze.add_argument("--chain", required=True, choices=SUPPORTED_CHAIN_NAMES)
    analyze.add_argument("--block", required=True, type=int)
    analyze.add_argument("--contract", required=True)
    analyze.add_argument("--persist", action="store_true", help="Store detected alerts")
    analyze.add_argument("--verbosity", choices=("compact", "detailed"), default="detailed")

    alerts = sub.add_parser("alerts", help="List stored alerts for a contract")
    alerts.add_argument("--contract", required=True)
    alerts.add_argument("--limit", type=int, default=50)
    alerts.add_argument(
        "--high-risk", action="store_true", help="Only show HIGH and CRITICAL alerts among the latest --limit"
    )

    stats = sub.add_parser("stats", help="Show MEV statistics for a contract")
    stats.add_argument("--contract", required=True)

    sub.add_parser("init-db", help="Create database tables (local SQLite setups)")
    return parser


async def _dispatch(settings: Settings, args: argparse.Namespace) -> int:
    if args.command == "run":
        return await _cmd_run(settings)
    if args.command == "analyze":
        return await _cmd_analyze(settings, args)
    if args.command == "alerts":
        return await _cmd_alerts(settings, args)
    if args.command == "stats":
        return await _cmd_stats(settings, args)
    return await _cmd_init_db(settings)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    _configure_logging(settings)
    logger.debug("Settings: %s", settings.redacted_summary())

    try:
        return asyncio.run(_dispatch(settings, args))
    except KeyboardInterrupt:
        return 130
    except (ValueError, AlertStoreError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""CLI adapter for the ledger mirror.

This module wires the ledger data facade to the concrete infrastructure and
exposes a few operational commands: connection status, cache loads, entity
syncs, trial-balance reconciliation and the posting gate state.
"""

import argparse
import asyncio
from collections.abc import Sequence

from src.application.use_cases.ledger_data import LedgerDataFacade
from src.application.use_cases.sync_ledger import LoadPath
from src.domain.services.reconciliation import (
    describe_imbalance,
    format_amount,
)
from src.infrastructure.container import build_gateway, build_ledger_facade
from src.infrastructure.logging.logger import get_app_logger
from src.infrastructure.settings import LedgerSettings


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ledger-mirror",
        description="Mirror and reconcile an external accounting ledger.",
    )
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("status", help="Show the ledger connection state.")
    load = commands.add_parser("load", help="Load the ledger cache.")
    load.add_argument(
        "--wait",
        action="store_true",
        help="Wait for background refreshes before exiting.",
    )
    commands.add_parser(
        "backfill",
        help="Backfill the mirror, then load the cache.",
    )
    sync = commands.add_parser("sync", help="Sync one entity type.")
    sync.add_argument("entity", help="Entity name, e.g. customers.")
    commands.add_parser("reconcile", help="Run a trial-balance check.")
    commands.add_parser("gate", help="Show the posting gate state.")
    return parser


def _print_counts(counts: dict[str, int]) -> None:
    for name, count in sorted(counts.items()):
        print(f"  {name}: {count}")


async def _status(facade: LedgerDataFacade) -> int:
    connected = await facade.check_connection()
    print(f"Ledger connection: {facade.connection_state.value}")
    return 0 if connected else 1


async def _load(facade: LedgerDataFacade, wait: bool) -> int:
    outcome = await facade.load_all()
    if wait:
        await facade.wait_background()
    if outcome.path is LoadPath.DISCONNECTED:
        print(
            "Ledger is disconnected and the mirror is empty; "
            "nothing loaded."
        )
        return 1
    print(f"Loaded ledger cache via {outcome.path.value} path.")
    _print_counts(facade.cache.counts())
    if outcome.failed_actions:
        print(f"Failed actions: {', '.join(outcome.failed_actions)}")
    return 0


async def _backfill(facade: LedgerDataFacade) -> int:
    outcome = await facade.full_sync()
    await facade.wait_background()
    print(f"Backfilled mirror and loaded via {outcome.path.value} path.")
    _print_counts(facade.cache.counts())
    return 0


async def _sync(facade: LedgerDataFacade, entity: str) -> int:
    result = await facade.sync_entity(entity)
    print(f"Synced {result.get('synced', 0)} {entity}.")
    return 0


async def _reconcile(facade: LedgerDataFacade) -> int:
    check = await facade.reconcile()
    if check.is_balanced:
        print(
            "Trial balance is balanced "
            f"(difference {format_amount(check.total_diff)})."
        )
        return 0
    print(describe_imbalance(check))
    return 1


async def _gate(facade: LedgerDataFacade) -> int:
    check = await facade.ensure_check_loaded()
    if check is None:
        print("Posting gate: open (no trial balance check recorded).")
        return 0
    if facade.posting_gate.is_open:
        print(
            "Posting gate: open "
            f"(checked {check.checked_at.isoformat()}, "
            f"difference {format_amount(check.total_diff)})."
        )
        return 0
    print("Posting gate: closed.")
    print(describe_imbalance(check))
    return 1


async def _run(args: argparse.Namespace) -> int:
    settings = LedgerSettings.from_env()
    async with build_gateway(settings) as gateway:
        facade = build_ledger_facade(gateway=gateway, settings=settings)
        try:
            if args.command == "status":
                return await _status(facade)
            if args.command == "load":
                return await _load(facade, args.wait)
            if args.command == "backfill":
                return await _backfill(facade)
            if args.command == "sync":
                return await _sync(facade, args.entity)
            if args.command == "reconcile":
                return await _reconcile(facade)
            return await _gate(facade)
        finally:
            await facade.aclose()


def main(argv: Sequence[str] | None = None) -> int:
    """Run one ledger mirror command.

    Args:
        argv: Command-line arguments; defaults to ``sys.argv[1:]``.

    Returns:
        int: Process exit code.
    """
    args = _build_parser().parse_args(argv)
    logger = get_app_logger()
    try:
        return asyncio.run(_run(args))
    except Exception as exc:
        logger.error(f"ledger-mirror {args.command} failed: {exc}")
        print(f"Error: {exc}")
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

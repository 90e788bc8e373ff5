"""
Main entrypoint.

Usage:
    python -m tos serve [--host H] [--port P]   # starts the API under uvicorn
    python -m tos seed                          # creates tables + sample records
    python -m tos sync                          # one flush of the offline queue
    python -m tos agent                         # offline client with periodic sync
"""
import argparse
import asyncio
import logging

from tos.config import get_settings

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


def _build_manager():
    from tos.client.api_client import TosApiClient
    from tos.offline.cache import OfflineCache
    from tos.offline.manager import OfflineTosManager

    settings = get_settings()
    client = TosApiClient(
        settings.api_url,
        timeout=settings.request_timeout_seconds,
        health_timeout=settings.health_timeout_seconds,
    )
    cache = OfflineCache.open(settings.cache_path)
    return OfflineTosManager(client=client, cache=cache)


def _run_serve(host: str, port: int) -> None:
    import uvicorn

    uvicorn.run("tos.api.main:create_app", factory=True, host=host, port=port)


def _run_seed() -> None:
    from tos.db.engine import build_engine
    from tos.scripts.seed import seed_database

    inserted = seed_database(build_engine(get_settings()))
    logger.info("Seed complete (%d records inserted)", inserted)


async def _run_sync() -> None:
    manager = _build_manager()
    result = await manager.sync()
    if result is None:
        logger.warning(
            "Server unreachable; %d edits remain queued", manager.pending_count()
        )


async def _run_agent() -> None:
    from tos.scheduler.jobs import build_scheduler

    settings = get_settings()
    manager = _build_manager()

    records = await manager.start()
    logger.info(
        "%s with %d records, %d edits pending",
        "Online" if manager.is_online else "Offline",
        len(records),
        manager.pending_count(),
    )

    scheduler = build_scheduler(manager)
    scheduler.start()
    logger.info("Scheduler started (sync every %ds)", settings.sync_interval_seconds)

    try:
        await asyncio.Event().wait()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Shutting down...")
    finally:
        scheduler.shutdown()


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(prog="tos", description="TOS pile status manager")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)
    sub.add_parser("seed", help="create tables and insert sample records")
    sub.add_parser("sync", help="flush pending offline edits once")
    sub.add_parser("agent", help="run the offline client with periodic sync")

    args = parser.parse_args(argv)
    _configure_logging()

    if args.command == "serve":
        _run_serve(args.host, args.port)
    elif args.command == "seed":
        _run_seed()
    elif args.command == "sync":
        asyncio.run(_run_sync())
    elif args.command == "agent":
        asyncio.run(_run_agent())


if __name__ == "__main__":
    main()

"""
LoveAlbum Backend — Maintenance Commands
=========================================

Usage (from backend/):
    python -m app.seed init-db
    python -m app.seed seed-admin --account admin --password 'a long password'
    python -m app.seed check-connection

init-db creates missing tables directly from the models (development;
production schemas are managed with `alembic upgrade head`).
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from app.config import settings
from app.database import async_session_factory, create_tables, dispose_engine, init_database
from app.services.auth_service import auth_service

logger = logging.getLogger("lovealbum.seed")


async def _init_db() -> None:
    await init_database()
    await create_tables()
    logger.info("Tables created")


async def _seed_admin(account: str, password: str) -> None:
    async with async_session_factory() as session:
        async with session.begin():
            created = await auth_service.ensure_admin(session, account, password)
    print(f"Admin '{account}' {'created' if created else 'already exists'}")


async def _check_connection() -> None:
    await init_database()
    print(f"Database reachable: {settings.database_url.split('@')[-1]}")


async def _run(coro) -> None:
    try:
        await coro
    finally:
        await dispose_engine()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m app.seed", description=__doc__.split("\n")[1])
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create database tables")

    seed_admin = sub.add_parser("seed-admin", help="Create an admin account if it does not exist")
    seed_admin.add_argument("--account", required=True)
    seed_admin.add_argument("--password", required=True)

    sub.add_parser("check-connection", help="Verify the database is reachable")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.command == "init-db":
        coro = _init_db()
    elif args.command == "seed-admin":
        if len(args.password) < 8:
            print("Password must be at least 8 characters", file=sys.stderr)
            return 2
        coro = _seed_admin(args.account, args.password)
    else:
        coro = _check_connection()

    try:
        asyncio.run(_run(coro))
    except Exception as e:
        logger.error("%s failed: %s", args.command, e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

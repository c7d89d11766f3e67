#!/usr/bin/env python3
"""CLI for Series Tracker API management tasks.

Usage:
    python -m cli <command>

Commands:
    migrate        Run database migrations (alembic upgrade)
    create-tables  Create missing tables straight from the models
"""

import argparse
import asyncio
import logging
from pathlib import Path

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

_API_DIR = Path(__file__).parent


def cmd_migrate(target: str) -> int:
    """Run database migrations."""
    from alembic import command
    from alembic.config import Config

    logger.info("Running database migrations to %s...", target)
    cfg = Config(str(_API_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(_API_DIR / "alembic"))
    command.upgrade(cfg, target)
    logger.info("Migrations complete")
    return 0


async def _create_tables() -> None:
    # Import models to ensure they're registered with Base.metadata
    import models  # noqa: F401
    from core.database import Base, create_engine, dispose_engine

    engine = create_engine()
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await dispose_engine(engine)


def cmd_create_tables() -> int:
    """Create missing tables. Does not alter existing ones; use migrate for that."""
    logger.info("Creating database tables...")
    asyncio.run(_create_tables())
    logger.info("Tables created successfully")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Series Tracker API CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    migrate = subparsers.add_parser("migrate", help="Run database migrations")
    migrate.add_argument(
        "target",
        nargs="?",
        default="head",
        help="Target revision (default: head)",
    )
    subparsers.add_parser(
        "create-tables",
        help="Create missing tables from the SQLAlchemy models",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "migrate":
        return cmd_migrate(args.target)
    elif args.command == "create-tables":
        return cmd_create_tables()
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

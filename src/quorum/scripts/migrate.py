# src/quorum/scripts/migrate.py
"""Apply the Alembic migrations shipped in ``migrations/``."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from alembic import command
from alembic.config import Config

from quorum.core.logging import configure_logging
from quorum.core.settings import settings

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parents[3] / "migrations"


def build_config(database_url: str | None = None) -> Config:
    """Build an Alembic config without an ini file."""
    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    cfg.set_main_option("sqlalchemy.url", database_url or settings.database_url_sync)
    return cfg


def run_upgrade(revision: str = "head", database_url: str | None = None) -> None:
    cfg = build_config(database_url)
    logger.info("Upgrading database to %s", revision)
    command.upgrade(cfg, revision)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Upgrade the Quorum database schema.")
    parser.add_argument("revision", nargs="?", default="head")
    parser.add_argument("--url", default=None, help="Database URL; defaults to DATABASE_URL")
    args = parser.parse_args(argv)

    configure_logging()
    run_upgrade(args.revision, args.url)


if __name__ == "__main__":
    main()

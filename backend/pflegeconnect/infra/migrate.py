"""Versioned SQL migrations recorded in ``schema_migrations``.

A file's version is the prefix before the first underscore
(``0001_discovery_engagement.sql`` -> ``0001``). Applied versions are skipped,
so a migration that rewrites data runs exactly once.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

import asyncpg

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"

_LEDGER_SQL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
	version TEXT PRIMARY KEY,
	applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
)
"""


def migration_version(path: Path) -> str:
	return path.name.split("_", 1)[0]


def migration_files(names: Optional[Iterable[str]] = None, directory: Path = MIGRATIONS_DIR) -> list[Path]:
	if names:
		return [directory / name for name in names]
	return sorted(directory.glob("*.sql"))


async def applied_versions(conn: asyncpg.Connection) -> set[str]:
	await conn.execute(_LEDGER_SQL)
	rows = await conn.fetch("SELECT version FROM schema_migrations")
	return {row["version"] for row in rows}


async def apply_migrations(conn: asyncpg.Connection, paths: Iterable[Path]) -> list[str]:
	"""Apply pending migrations in order, each with its ledger row in one transaction."""

	applied = await applied_versions(conn)
	newly_applied: list[str] = []
	for path in paths:
		version = migration_version(path)
		if version in applied:
			continue
		async with conn.transaction():
			await conn.execute(path.read_text(encoding="utf-8"))
			await conn.execute("INSERT INTO schema_migrations (version) VALUES ($1)", version)
		applied.add(version)
		newly_applied.append(path.name)
		logger.info("migration applied", extra={"migration": path.name})
	return newly_applied

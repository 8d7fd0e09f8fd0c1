"""Apply pending SQL migrations in filename order.

Usage: python backend/scripts/apply_migrations.py [migration_filename ...]

Connection settings come from the environment / .env via ``pflegeconnect.settings``.
Versions already listed in ``schema_migrations`` are skipped.
"""

import asyncio
import sys

from pflegeconnect import obs
from pflegeconnect.infra.migrate import apply_migrations, migration_files
from pflegeconnect.infra.postgres import close_pool, get_pool


async def main(names) -> int:
	files = migration_files(names)
	if not files:
		print("No migration files found.")
		return 1
	missing = [path for path in files if not path.exists()]
	if missing:
		print(f"Migration file not found: {missing[0]}")
		return 1

	pool = await get_pool()
	try:
		async with pool.acquire() as conn:
			applied = await apply_migrations(conn, files)
	finally:
		await close_pool()
	for name in applied:
		print(f"Applied {name}")
	if not applied:
		print("Schema is up to date.")
	return 0


if __name__ == "__main__":
	obs.init()
	if sys.platform == "win32":
		asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
	sys.exit(asyncio.run(main(sys.argv[1:])))

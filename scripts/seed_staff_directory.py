"""
Load names into the staff directory (the signup allow-list).

Usage:
    python -m scripts.seed_staff_directory "Ama Mensah" "Kofi Boateng"
    python -m scripts.seed_staff_directory --file staff.txt

Names already present (compared trimmed and case-insensitively) are skipped.
"""
import argparse
import asyncio
from pathlib import Path
from typing import Iterable, List

from sqlalchemy import select, func

from menu_planner.database import engine, Base, AsyncSessionLocal
from menu_planner.models import StaffDirectoryEntry


def read_names(path: Path) -> List[str]:
    lines = path.read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip() and not line.startswith("#")]


async def seed_staff_directory(names: Iterable[str]) -> int:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    added = 0
    async with AsyncSessionLocal() as session:
        result = await session.execute(
            select(func.lower(func.trim(StaffDirectoryEntry.full_name)))
        )
        existing = set(result.scalars().all())

        for name in names:
            key = name.strip().lower()
            if not key or key in existing:
                continue
            session.add(StaffDirectoryEntry(full_name=name.strip()))
            existing.add(key)
            added += 1

        await session.commit()
    return added


def main():
    parser = argparse.ArgumentParser(description="Seed the staff directory")
    parser.add_argument("names", nargs="*", help="Full names to add")
    parser.add_argument("--file", type=Path, help="File with one name per line")
    args = parser.parse_args()

    names = list(args.names)
    if args.file:
        names.extend(read_names(args.file))
    if not names:
        parser.error("no names given")

    added = asyncio.run(seed_staff_directory(names))
    print(f"Added {added} name(s) to the staff directory ({len(names) - added} skipped)")


if __name__ == "__main__":
    main()

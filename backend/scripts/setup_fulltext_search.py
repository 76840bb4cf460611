#!/usr/bin/env python3
"""
Set up PostgreSQL full-text search for BON-LOG.

Usage:
    python scripts/setup_fulltext_search.py               # uses SEARCH_MODE
    python scripts/setup_fulltext_search.py --mode trgm   # override the mode
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add the backend directory to the Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from bonlog.core.config import settings
from bonlog.core.database import dispose_engine
from bonlog.services.fulltext import (
    FulltextSearchService,
    SearchExtension,
    SearchMode,
    required_extension,
    resolve_mode,
)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Enable search extensions and create search indexes")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in SearchMode],
        help="Search mode to provision (default: SEARCH_MODE setting)",
    )
    return parser.parse_args(argv)


async def show_extension_status(service: FulltextSearchService) -> None:
    status = await service.get_search_status()
    print("📦 Extension status:")
    print(f"  - pg_trgm: {'✅ available' if status.trgm_available else '❌ not installed'}")
    print(f"  - pg_bigm: {'✅ available' if status.bigm_available else '❌ not installed'}\n")


async def ensure_extension(service: FulltextSearchService, extension: SearchExtension) -> bool:
    if await service.is_extension_available(extension):
        return True

    print(f"🔄 Enabling {extension.value}...")
    if await service.enable_extension(extension):
        print(f"✅ {extension.value} enabled")
        return True

    print(f"\n⚠️  Could not enable {extension.value}.")
    if extension == SearchExtension.PG_BIGM:
        print("   pg_bigm must be installed on the server first: https://pgbigm.osdn.jp/")
        print("\n   To use pg_trgm instead:")
        print("   python scripts/setup_fulltext_search.py --mode trgm")
    else:
        print("   Run the following SQL as a database administrator:")
        print(f"   CREATE EXTENSION IF NOT EXISTS {extension.value};")
    return False


async def show_current_indexes(service: FulltextSearchService) -> None:
    print("\n📋 Full-text indexes:")
    indexes = await service.list_search_indexes()
    if not indexes:
        print("  (none)")
    for info in indexes:
        print(f"  - {info.table}.{info.index}")


async def setup(mode: SearchMode) -> int:
    service = FulltextSearchService(
        mode=mode,
        similarity_threshold=settings.SEARCH_TRGM_SIMILARITY_THRESHOLD,
    )

    print("\n🔧 BON-LOG full-text search setup")
    print("=" * 50)
    print(f"   Search mode: {mode.value}")
    print(f"   SEARCH_MODE={settings.SEARCH_MODE or '(unset)'}\n")

    await show_extension_status(service)

    extension = required_extension(mode)
    if extension is None:
        print("ℹ️  LIKE search mode: no indexes required.")
    else:
        if not await ensure_extension(service, extension):
            return 1
        print(f"📊 Creating {extension.value} GIN indexes...")
        result = await service.create_search_indexes()
        if not result.success:
            print(f"❌ {result.message}")
            return 1
        print(f"✅ {result.message}")

    await show_current_indexes(service)

    print("\n✨ Setup complete!")
    print("\n📝 Add this to your .env:")
    print(f"   SEARCH_MODE={mode.value}")
    return 0


async def main(argv=None) -> int:
    args = parse_args(argv)
    mode = resolve_mode(args.mode) if args.mode else resolve_mode(settings.SEARCH_MODE)
    try:
        return await setup(mode)
    finally:
        await dispose_engine()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))

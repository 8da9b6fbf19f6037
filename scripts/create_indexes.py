#!/usr/bin/env python
"""Print or apply the recommended MongoDB indexes for chat_stats.

By default the script only prints the shell commands, so an operator can
review them and run them with mongosh. Pass ``--apply`` to create the
indexes through the configured connection instead.

Usage:
    python scripts/create_indexes.py
    python scripts/create_indexes.py --apply

Environment variables (via .env):
    MONGODB_URI=mongodb://localhost:27017/LibreChat
    MONGODB_DB_NAME=LibreChat
"""

import asyncio
import sys
from pathlib import Path

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from chat_stats.config import ChatStatsConfig
from chat_stats.infra.mongo import MongoClient, create_recommended_indexes
from chat_stats.infra.mongo.indexes import render_index_script
from chat_stats.logging import configure_from_settings


async def apply(config: ChatStatsConfig) -> None:
    """Create every recommended index on the configured database."""
    print("\n" + "=" * 60)
    print("Creating recommended indexes")
    print("=" * 60)

    client = MongoClient(config.mongo)
    print(f"\nConnecting to MongoDB: {client.database_name}...")
    await client.connect()
    print("  Connected successfully")

    try:
        created = await create_recommended_indexes(client)
        for collection, names in created.items():
            print(f"\n--- {collection} ---")
            for name in names:
                print(f"  {name}")
    finally:
        await client.disconnect()
        print("\nDisconnected from MongoDB")


def main() -> None:
    config = ChatStatsConfig()
    configure_from_settings(config.logging)

    if "--apply" in sys.argv[1:]:
        asyncio.run(apply(config))
    else:
        print(render_index_script())


if __name__ == "__main__":
    main()

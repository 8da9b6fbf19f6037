#!/usr/bin/env python
"""Print the overview statistics for a date range as JSON.

Usage:
    python scripts/stats_report.py 2024-01-01T00:00:00Z 2024-01-31T23:59:59Z

Environment variables (via .env):
    MONGODB_URI=mongodb://localhost:27017/LibreChat
    CHAT_STATS_REDIS_URL=redis://localhost:6379/0
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from chat_stats import ChatStats, ChatStatsConfig, ChatStatsError
from chat_stats.logging import configure_from_settings
from chat_stats.models.stats import ComparisonResult


def card(result: ComparisonResult) -> dict[str, Any]:
    """Comparison values plus their percentage trends."""
    return {**result.to_dict(), **result.trends()}


# Simple usage - config loaded from .env automatically
async def main(start: str, end: str) -> None:
    config = ChatStatsConfig()
    configure_from_settings(config.logging)
    params = {"startDate": start, "endDate": end}

    async with ChatStats(config) as stats:
        health = await stats.health()
        print(json.dumps(health.to_dict(), indent=2))

        report = {
            "activeUsers": card(await stats.get_active_users(params)),
            "conversations": card(await stats.get_conversations(params)),
            "tokens": card(await stats.get_token_counts(params)),
            "messages": card(await stats.get_message_stats(params)),
            "mcpToolCalls": card(await stats.get_mcp_tool_calls(params)),
            "filesProcessed": card(await stats.get_files_processed(params)),
            "models": [row.to_dict() for row in await stats.get_model_stats_table(params)],
        }
        print(json.dumps(report, indent=2))


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print(__doc__)
        sys.exit(1)
    try:
        asyncio.run(main(sys.argv[1], sys.argv[2]))
    except ChatStatsError as e:
        print(f"Error: {e}")
        sys.exit(1)

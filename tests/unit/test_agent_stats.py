"""Unit tests for AgentStatsRepository."""

import pytest

from chat_stats.infra.mongo.repositories.agent_stats import AgentStatsRepository
from chat_stats.models.period import DateRange, TimeGranularity
from tests.mocks.mock_mongo import MockCollectionProvider


class TestAgentStatsTable:
    """Tests for the per-agent table."""

    @pytest.mark.asyncio
    async def test_rows(self, provider: MockCollectionProvider, january: DateRange) -> None:
        provider["transactions"].queue(
            [
                {
                    "agentId": "agent_abc",
                    "agentName": "Researcher",
                    "model": "gpt-4o",
                    "endpoint": "openAI",
                    "totalInputToken": 50,
                    "totalOutputToken": 20,
                    "requests": 1,
                },
                {
                    "agentId": "agent_deleted",
                    "agentName": "agent_deleted",
                    "model": "gpt-4o-mini",
                    "endpoint": "agents",
                },
            ]
        )

        rows = await AgentStatsRepository(provider).get_agent_stats_table(january)

        assert rows[0].agent_name == "Researcher"
        assert rows[1].agent_name == rows[1].agent_id == "agent_deleted"
        assert rows[1].requests == 0

    @pytest.mark.asyncio
    async def test_only_agent_conversations_with_fallbacks(
        self, provider: MockCollectionProvider, january: DateRange
    ) -> None:
        await AgentStatsRepository(provider).get_agent_stats_table(january)

        pipeline = provider["transactions"].last_pipeline
        assert {"$match": {"conv.endpoint": "agents"}} in pipeline
        group_id = next(s for s in pipeline if "$group" in s)["$group"]["_id"]
        assert group_id == {
            "agentId": "$conv.agent_id",
            "agentName": {"$ifNull": ["$agent.name", "$conv.agent_id"]},
            "endpoint": {"$ifNull": ["$agent.provider", "agents"]},
            "model": {"$ifNull": ["$agent.model", "$model"]},
        }

    @pytest.mark.asyncio
    async def test_total_agents(self, provider: MockCollectionProvider) -> None:
        provider["agents"].document_count = 4

        result = await AgentStatsRepository(provider).get_total_agent_count()

        assert result.to_dict() == {"totalAgentsCount": 4}


class TestAgentTimeSeries:
    @pytest.mark.asyncio
    async def test_matches_name_or_id(
        self, provider: MockCollectionProvider, january: DateRange
    ) -> None:
        provider["transactions"].queue(
            [{"agentId": "a1", "agentName": "Researcher", "endpoint": "openAI", "month": "2024-01"}]
        )

        rows = await AgentStatsRepository(provider).get_agent_time_series(
            january, "Researcher", TimeGranularity.MONTH
        )

        pipeline = provider["transactions"].last_pipeline
        assert {
            "$match": {"$or": [{"agent.name": "Researcher"}, {"conv.agent_id": "Researcher"}]}
        } in pipeline
        assert rows[0].bucket == "2024-01"
        assert rows[0].to_dict()["month"] == "2024-01"
        assert "day" not in rows[0].to_dict()

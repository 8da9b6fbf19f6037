"""Unit tests for the MongoDB connection manager."""

import asyncio
from typing import Any

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from chat_stats.config import MongoSettings, extract_db_name_from_uri
from chat_stats.infra.mongo import client as client_module
from chat_stats.infra.mongo.client import Collections, MongoClient


class FakeDatabase:
    def __init__(self, name: str) -> None:
        self.name = name

    def __getitem__(self, name: str) -> str:
        return f"{self.name}.{name}"

    async def command(self, name: str) -> dict[str, Any]:
        return {"ok": 1}


class FakeAdmin:
    def __init__(self, failures: list[Exception]) -> None:
        self._failures = failures

    async def command(self, name: str) -> dict[str, Any]:
        await asyncio.sleep(0)
        if self._failures:
            raise self._failures.pop(0)
        return {"ok": 1}


class FakeMotorFactory:
    """Stands in for AsyncIOMotorClient and records every client built."""

    def __init__(self, failures: list[Exception] | None = None) -> None:
        self.clients: list[FakeMotorClient] = []
        self.failures = failures or []

    def __call__(self, uri: str, **options: Any) -> "FakeMotorClient":
        client = FakeMotorClient(uri, options, FakeAdmin(self.failures))
        self.clients.append(client)
        return client


class FakeMotorClient:
    def __init__(self, uri: str, options: dict[str, Any], admin: FakeAdmin) -> None:
        self.uri = uri
        self.options = options
        self.admin = admin
        self.closed = False

    def __getitem__(self, name: str) -> FakeDatabase:
        return FakeDatabase(name)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def settings() -> MongoSettings:
    return MongoSettings(uri="mongodb://db.example:27017/Chats", db_name=None)


def install(monkeypatch: pytest.MonkeyPatch, factory: FakeMotorFactory) -> None:
    monkeypatch.setattr(client_module, "get_async_motor", lambda: factory)


class TestMongoClient:
    """Tests for MongoClient."""

    @pytest.mark.asyncio
    async def test_concurrent_first_calls_share_one_client(
        self, monkeypatch: pytest.MonkeyPatch, settings: MongoSettings
    ) -> None:
        factory = FakeMotorFactory()
        install(monkeypatch, factory)
        client = MongoClient(settings)

        collections = await asyncio.gather(
            *(client.get_collection(Collections.MESSAGES) for _ in range(10))
        )

        assert len(factory.clients) == 1
        assert set(collections) == {"Chats.messages"}
        assert client.is_connected

    @pytest.mark.asyncio
    async def test_pool_options_passed(
        self, monkeypatch: pytest.MonkeyPatch, settings: MongoSettings
    ) -> None:
        factory = FakeMotorFactory()
        install(monkeypatch, factory)

        await MongoClient(settings).connect()

        options = factory.clients[0].options
        assert options["maxPoolSize"] == 10
        assert options["minPoolSize"] == 2
        assert options["retryWrites"] is False
        assert factory.clients[0].uri == "mongodb://db.example:27017/Chats"

    @pytest.mark.asyncio
    async def test_failed_connect_is_retried(
        self, monkeypatch: pytest.MonkeyPatch, settings: MongoSettings
    ) -> None:
        factory = FakeMotorFactory([ServerSelectionTimeoutError("no servers")])
        install(monkeypatch, factory)
        client = MongoClient(settings)

        with pytest.raises(ServerSelectionTimeoutError):
            await client.get_collection(Collections.USERS)

        assert factory.clients[0].closed
        assert not client.is_connected

        assert await client.get_collection(Collections.USERS) == "Chats.users"
        assert len(factory.clients) == 2

    @pytest.mark.asyncio
    async def test_disconnect(self, monkeypatch: pytest.MonkeyPatch, settings: MongoSettings) -> None:
        factory = FakeMotorFactory()
        install(monkeypatch, factory)

        async with MongoClient(settings) as client:
            assert client.is_connected

        assert factory.clients[0].closed
        with pytest.raises(RuntimeError):
            _ = client.db

    @pytest.mark.asyncio
    async def test_ping_reports_failure(
        self, monkeypatch: pytest.MonkeyPatch, settings: MongoSettings
    ) -> None:
        factory = FakeMotorFactory([ServerSelectionTimeoutError("no servers")])
        install(monkeypatch, factory)
        client = MongoClient(settings)

        assert await client.ping() is False
        assert await client.ping() is True


class TestDatabaseName:
    """Tests for database name resolution."""

    @pytest.mark.parametrize(
        ("uri", "expected"),
        [
            ("mongodb://localhost:27017/LibreChat", "LibreChat"),
            ("mongodb://user:pw@a:1,b:2/analytics?replicaSet=rs0", "analytics"),
            ("mongodb+srv://user:pw@cluster.example.net/prod?retryWrites=false", "prod"),
            ("mongodb://localhost:27017/", None),
            ("mongodb://localhost:27017", None),
        ],
    )
    def test_extract_from_uri(self, uri: str, expected: str | None) -> None:
        assert extract_db_name_from_uri(uri) == expected

    def test_override_wins(self) -> None:
        settings = MongoSettings(uri="mongodb://localhost/FromUri", db_name="Override")
        assert settings.resolve_database_name() == "Override"

    def test_uri_name_used(self) -> None:
        settings = MongoSettings(uri="mongodb://localhost/FromUri", db_name=None)
        assert settings.resolve_database_name() == "FromUri"

    def test_fallback(self) -> None:
        settings = MongoSettings(
            uri="mongodb://localhost:27017", db_name=None, fallback_db_name="Fallback"
        )
        assert settings.resolve_database_name() == "Fallback"

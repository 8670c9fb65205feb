"""Tests for card catalog sources."""

import logging

import httpx
import pytest
import respx
from sqlalchemy.exc import OperationalError

from memorymatch.catalog import (
    AppwriteCatalog,
    DatabaseCatalog,
    FallbackCatalog,
    LocalApiCatalog,
    default_catalog_source,
    definition_from_payload,
)
from memorymatch.config import Settings
from memorymatch.db import upsert_card
from memorymatch.models.card import CardDefinition
from memorymatch.models.failure import CatalogUnavailableError, FailureKind
from memorymatch.services.appwrite import AppwriteCard

API_URL = "http://cards.test"


class StaticCatalog:
    """Source that always answers with the same cards."""

    name = "static"

    def __init__(self, cards: list[CardDefinition]) -> None:
        self.cards = cards
        self.calls = 0

    async def fetch_catalog(self) -> list[CardDefinition]:
        self.calls += 1
        return self.cards


class DownCatalog:
    """Source that is always unavailable."""

    def __init__(self, name: str = "down") -> None:
        self.name = name

    async def fetch_catalog(self) -> list[CardDefinition]:
        raise CatalogUnavailableError(f"{self.name} is down")


class StubAppwriteClient:
    def __init__(self, cards=None, error: Exception | None = None) -> None:
        self.cards = cards or []
        self.error = error

    async def list_cards(self) -> list[AppwriteCard]:
        if self.error:
            raise self.error
        return self.cards


class TestDefinitionFromPayload:
    def test_full_record(self) -> None:
        payload = {"id": "Leão", "image_data": "leao.png", "points": 20, "author": "Ana"}

        assert definition_from_payload(payload) == CardDefinition("Leão", "leao.png", 20, "Ana")

    def test_defaults(self) -> None:
        definition = definition_from_payload({"id": "Gato", "image_data": "gato.png"})

        assert definition.point_value == 10
        assert definition.author_label == "Admin"

    def test_missing_id(self) -> None:
        with pytest.raises(KeyError):
            definition_from_payload({"image_data": "gato.png"})


class TestLocalApiCatalog:
    @respx.mock
    async def test_fetches_cards(self) -> None:
        respx.get(f"{API_URL}/api/cards").mock(
            return_value=httpx.Response(
                200,
                json=[
                    {"id": "Leão", "image_data": "leao.png", "points": 20, "author": "Ana"},
                    {"id": "Gato", "image_data": "gato.png", "points": 10, "author": "Admin"},
                ],
            )
        )

        catalog = await LocalApiCatalog(base_url=API_URL + "/").fetch_catalog()

        assert [d.identity for d in catalog] == ["Leão", "Gato"]
        assert catalog[0].point_value == 20

    @respx.mock
    async def test_http_error(self) -> None:
        respx.get(f"{API_URL}/api/cards").mock(return_value=httpx.Response(500))

        with pytest.raises(CatalogUnavailableError) as exc_info:
            await LocalApiCatalog(base_url=API_URL).fetch_catalog()

        assert exc_info.value.kind == FailureKind.CATALOG_UNAVAILABLE
        assert "HTTP 500" in exc_info.value.detail
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    @respx.mock
    async def test_unreachable(self) -> None:
        respx.get(f"{API_URL}/api/cards").mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(CatalogUnavailableError, match="could not be loaded"):
            await LocalApiCatalog(base_url=API_URL).fetch_catalog()

    @respx.mock
    async def test_malformed_response(self) -> None:
        respx.get(f"{API_URL}/api/cards").mock(
            return_value=httpx.Response(200, json=[{"name": "Leão"}])
        )

        with pytest.raises(CatalogUnavailableError) as exc_info:
            await LocalApiCatalog(base_url=API_URL).fetch_catalog()

        assert "Malformed" in exc_info.value.detail


class TestDatabaseCatalog:
    async def test_reads_cards(self, session_factory) -> None:
        async with session_factory() as session:
            await upsert_card(session, "Leão", "leao.png", 20, "Ana")
            await upsert_card(session, "Gato", "gato.png")
            await session.commit()

        catalog = await DatabaseCatalog(session_factory).fetch_catalog()

        assert {d.identity: d.point_value for d in catalog} == {"Leão": 20, "Gato": 10}

    async def test_database_error(self) -> None:
        def broken_factory():
            raise OperationalError("SELECT", {}, Exception("disk I/O error"))

        with pytest.raises(CatalogUnavailableError) as exc_info:
            await DatabaseCatalog(broken_factory).fetch_catalog()  # type: ignore[arg-type]

        assert "OperationalError" in exc_info.value.detail


class TestAppwriteCatalog:
    async def test_converts_cards(self) -> None:
        client = StubAppwriteClient(
            [AppwriteCard("Zebra", "f1", "https://x/f1/view", points=20, author="João")]
        )

        catalog = await AppwriteCatalog(client).fetch_catalog()  # type: ignore[arg-type]

        assert catalog == [CardDefinition("Zebra", "https://x/f1/view", 20, "João")]

    async def test_network_error(self) -> None:
        request = httpx.Request("GET", "https://appwrite.test")
        client = StubAppwriteClient(error=httpx.ConnectTimeout("timed out", request=request))

        with pytest.raises(CatalogUnavailableError) as exc_info:
            await AppwriteCatalog(client).fetch_catalog()  # type: ignore[arg-type]

        assert "unreachable" in exc_info.value.detail

    async def test_malformed_document(self) -> None:
        client = StubAppwriteClient(error=KeyError("fileId"))

        with pytest.raises(CatalogUnavailableError):
            await AppwriteCatalog(client).fetch_catalog()  # type: ignore[arg-type]


class TestFallbackCatalog:
    async def test_first_source_wins(self, catalog) -> None:
        first = StaticCatalog(catalog)
        second = StaticCatalog([])

        assert await FallbackCatalog([first, second]).fetch_catalog() == catalog
        assert second.calls == 0

    async def test_falls_back_and_logs(self, catalog, caplog: pytest.LogCaptureFixture) -> None:
        backup = StaticCatalog(catalog)

        with caplog.at_level(logging.WARNING, logger="memorymatch.catalog"):
            result = await FallbackCatalog([DownCatalog("appwrite"), backup]).fetch_catalog()

        assert result == catalog
        assert "appwrite" in caplog.text

    async def test_all_sources_down(self) -> None:
        source = FallbackCatalog([DownCatalog("a"), DownCatalog("b")])

        with pytest.raises(CatalogUnavailableError) as exc_info:
            await source.fetch_catalog()

        assert exc_info.value.detail == "b is down"

    def test_needs_a_source(self) -> None:
        with pytest.raises(ValueError):
            FallbackCatalog([])


class TestDefaultCatalogSource:
    def test_local_when_appwrite_unset(self) -> None:
        source = default_catalog_source(Settings(api_base_url=API_URL, appwrite_project_id=""))

        assert isinstance(source, LocalApiCatalog)
        assert source.base_url == API_URL

    def test_appwrite_with_local_fallback(self) -> None:
        config = Settings(
            api_base_url=API_URL,
            appwrite_project_id="proj",
            appwrite_database_id="db",
            appwrite_collection_id="cards",
            appwrite_bucket_id="images",
        )

        source = default_catalog_source(config)

        assert isinstance(source, FallbackCatalog)
        assert [s.name for s in source.sources] == ["appwrite", "local"]

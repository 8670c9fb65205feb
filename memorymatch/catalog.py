"""
Card catalog sources.

The game reads its cards through a CatalogSource and never sees which
backend answered. Every backend failure surfaces as CatalogUnavailableError
with the original exception chained.

Sources:
- LocalApiCatalog: the card API served by memorymatch.main
- DatabaseCatalog: the card database, read directly
- AppwriteCatalog: hosted Appwrite storage
- FallbackCatalog: tries several sources in order
"""

import logging
from collections.abc import Sequence
from typing import Any, Protocol

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from memorymatch.config import (
    DEFAULT_AUTHOR,
    STANDARD_POINTS,
    Settings,
    appwrite_configured,
    settings,
)
from memorymatch.db.operations import card_to_model, list_cards
from memorymatch.models.card import CardDefinition
from memorymatch.models.failure import CatalogUnavailableError
from memorymatch.services.appwrite import AppwriteClient

logger = logging.getLogger(__name__)


class CatalogSource(Protocol):
    """Anything that can list the available card definitions."""

    name: str

    async def fetch_catalog(self) -> list[CardDefinition]: ...


def definition_from_payload(payload: dict[str, Any]) -> CardDefinition:
    """
    Build a definition from a card API record.

    Raises:
        KeyError: If id or image_data is missing
    """
    return CardDefinition(
        identity=str(payload["id"]),
        image_reference=str(payload["image_data"]),
        point_value=int(payload.get("points") or STANDARD_POINTS),
        author_label=str(payload.get("author") or DEFAULT_AUTHOR),
    )


class LocalApiCatalog:
    """Catalog served by the card API (GET /api/cards)."""

    name = "local"

    def __init__(self, base_url: str | None = None, timeout: float = 10.0) -> None:
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout

    async def fetch_catalog(self) -> list[CardDefinition]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(f"{self.base_url}/api/cards")
                response.raise_for_status()
                records = response.json()
            return [definition_from_payload(record) for record in records]
        except httpx.HTTPStatusError as e:
            raise CatalogUnavailableError(
                f"Card API returned HTTP {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise CatalogUnavailableError(f"Card API unreachable: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogUnavailableError(f"Malformed card API response: {e}") from e


class DatabaseCatalog:
    """Catalog read straight from the card database."""

    name = "database"

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def fetch_catalog(self) -> list[CardDefinition]:
        try:
            async with self.session_factory() as session:
                cards = await list_cards(session)
                return [card_to_model(card) for card in cards]
        except SQLAlchemyError as e:
            raise CatalogUnavailableError(f"Card database error: {type(e).__name__}") from e


class AppwriteCatalog:
    """Catalog stored in Appwrite."""

    name = "appwrite"

    def __init__(self, client: AppwriteClient | None = None) -> None:
        self.client = client or AppwriteClient()

    async def fetch_catalog(self) -> list[CardDefinition]:
        try:
            cards = await self.client.list_cards()
        except httpx.HTTPStatusError as e:
            raise CatalogUnavailableError(
                f"Appwrite returned HTTP {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise CatalogUnavailableError(f"Appwrite unreachable: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogUnavailableError(f"Malformed Appwrite response: {e}") from e
        return [card.to_definition() for card in cards]


class FallbackCatalog:
    """Use the first source that answers."""

    name = "fallback"

    def __init__(self, sources: Sequence[CatalogSource]) -> None:
        if not sources:
            raise ValueError("FallbackCatalog needs at least one source")
        self.sources = list(sources)

    async def fetch_catalog(self) -> list[CardDefinition]:
        *fallbacks, last = self.sources
        for source in fallbacks:
            try:
                return await source.fetch_catalog()
            except CatalogUnavailableError as e:
                logger.warning("Catalog source %s failed: %s", source.name, e.detail)
        return await last.fetch_catalog()


def default_catalog_source(config: Settings | None = None) -> CatalogSource:
    """Appwrite with the local API as fallback when configured, else the local API."""
    config = config or settings
    local = LocalApiCatalog(base_url=config.api_base_url)
    if appwrite_configured(config):
        return FallbackCatalog([AppwriteCatalog(AppwriteClient(config)), local])
    return local

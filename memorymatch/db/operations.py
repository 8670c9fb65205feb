"""
Card catalog CRUD operations.

Saving uses last-write-wins on the card id; deleting is idempotent.
"""

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from memorymatch.config import DEFAULT_AUTHOR, STANDARD_POINTS
from memorymatch.models.card import CardDefinition
from memorymatch.models.db import CardDB


async def list_cards(session: AsyncSession) -> list[CardDB]:
    """All cards, newest first."""
    result = await session.execute(
        select(CardDB).order_by(CardDB.created_at.desc(), CardDB.id)
    )
    return list(result.scalars().all())


async def get_card(session: AsyncSession, card_id: str) -> CardDB | None:
    """Get a card by id. Returns None if it does not exist."""
    return await session.get(CardDB, card_id)


async def upsert_card(
    session: AsyncSession,
    card_id: str,
    image_data: str,
    points: int = STANDARD_POINTS,
    author: str = DEFAULT_AUTHOR,
) -> CardDB:
    """
    Insert a card or replace the one with the same id.

    A replaced card keeps its original created_at.
    """
    existing = await get_card(session, card_id)

    if existing:
        existing.image_data = image_data
        existing.points = points
        existing.author = author
        await session.flush()
        return existing

    card = CardDB(id=card_id, image_data=image_data, points=points, author=author)
    session.add(card)
    await session.flush()
    return card


async def delete_card(session: AsyncSession, card_id: str) -> bool:
    """
    Delete a card by id.

    Returns True if a card was removed, False if there was none.
    """
    result = await session.execute(delete(CardDB).where(CardDB.id == card_id))
    # rowcount is available on DELETE results; type stubs incomplete for async
    return bool(result.rowcount)  # type: ignore[attr-defined]


async def count_cards(session: AsyncSession) -> int:
    """Number of cards in the catalog."""
    result = await session.execute(select(func.count()).select_from(CardDB))
    return int(result.scalar_one())


def card_to_model(card: CardDB) -> CardDefinition:
    """Convert a database card to a domain model."""
    return CardDefinition(
        identity=card.id,
        image_reference=card.image_data,
        point_value=card.points or STANDARD_POINTS,
        author_label=card.author or DEFAULT_AUTHOR,
    )

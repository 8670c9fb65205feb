"""
Seed the card catalog from a JSON file.

Bootstraps a classroom catalog without clicking through the admin panel.
The file holds a list of cards:

    [
        {"id": "Leão", "image": "images/leao.png", "points": 20},
        {"id": "Gato", "image": "data:image/png;base64,...", "author": "Maria"}
    ]

"image" may be a data URI, a URL, or a path relative to the JSON file.
Cards go to the local database by default, or to Appwrite with
--backend appwrite.
"""

import argparse
import asyncio
import base64
import json
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from memorymatch.config import DEFAULT_AUTHOR, STANDARD_POINTS, VALID_POINT_VALUES
from memorymatch.db.database import async_session_factory, init_db
from memorymatch.db.operations import upsert_card
from memorymatch.services.appwrite import AppwriteClient

logger = logging.getLogger(__name__)

Backend = Literal["local", "appwrite"]


class SeedError(Exception):
    """Raised when the seed file is malformed."""

    pass


@dataclass(frozen=True)
class SeedCard:
    """One card to seed, with its image resolved to a data URI or URL."""

    card_id: str
    image_data: str
    points: int = STANDARD_POINTS
    author: str = DEFAULT_AUTHOR


def image_to_data_uri(path: Path) -> str:
    """Read an image file into a base64 data URI."""
    content_type = mimetypes.guess_type(path.name)[0] or "image/png"
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


def _resolve_image(image: str, base_dir: Path) -> str:
    if image.startswith(("data:", "http://", "https://")):
        return image
    path = base_dir / image
    if not path.is_file():
        raise SeedError(f"Image file not found: {path}")
    return image_to_data_uri(path)


def parse_seed_entries(entries: Any, base_dir: Path) -> list[SeedCard]:
    """
    Validate seed entries and resolve their images.

    Raises:
        SeedError: If an entry is missing fields or has invalid points
    """
    if not isinstance(entries, list):
        raise SeedError("Seed file must contain a JSON list")

    cards: list[SeedCard] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict) or not entry.get("id") or not entry.get("image"):
            raise SeedError(f"Entry {index} needs an 'id' and an 'image'")

        try:
            points = int(entry.get("points", STANDARD_POINTS))
        except (TypeError, ValueError) as e:
            raise SeedError(f"Entry {index} ({entry['id']}): points must be 10 or 20") from e
        if points not in VALID_POINT_VALUES:
            raise SeedError(f"Entry {index} ({entry['id']}): points must be 10 or 20")

        cards.append(
            SeedCard(
                card_id=str(entry["id"]).strip(),
                image_data=_resolve_image(str(entry["image"]), base_dir),
                points=points,
                author=str(entry.get("author") or DEFAULT_AUTHOR),
            )
        )
    return cards


def load_seed_file(path: Path) -> list[SeedCard]:
    """Load and validate a seed file."""
    with open(path, encoding="utf-8") as f:
        try:
            entries = json.load(f)
        except json.JSONDecodeError as e:
            raise SeedError(f"Invalid JSON in {path}: {e}") from e
    return parse_seed_entries(entries, path.parent)


async def seed_local(cards: list[SeedCard]) -> int:
    """Upsert cards into the local database. Returns the number saved."""
    await init_db()
    async with async_session_factory() as session:
        for card in cards:
            await upsert_card(session, card.card_id, card.image_data, card.points, card.author)
        await session.commit()
    return len(cards)


async def seed_appwrite(cards: list[SeedCard], client: AppwriteClient | None = None) -> int:
    """
    Upload cards to Appwrite, replacing existing cards with the same id.

    The new card is uploaded before the old one is deleted, so a failed
    upload leaves the previous card in place. When the seed list repeats an
    id, the last entry wins. Returns the number uploaded.
    """
    unique: dict[str, SeedCard] = {}
    for card in cards:
        if card.card_id in unique:
            logger.warning("Card %r listed more than once; using the last entry", card.card_id)
            del unique[card.card_id]
        unique[card.card_id] = card

    client = client or AppwriteClient()
    existing = await client.list_cards()

    for card in unique.values():
        await client.upload_card(card.card_id, card.image_data, card.points, card.author)
        for old in existing:
            if old.card_id == card.card_id and old.document_id:
                logger.info("Replacing Appwrite card %r", card.card_id)
                await client.delete_card(old.document_id, old.file_id)
    return len(unique)


async def run_seed(path: Path, backend: Backend = "local") -> int:
    """Seed cards from path into backend. Returns the number of cards seeded."""
    cards = load_seed_file(path)
    logger.info("Seeding %d cards into %s storage...", len(cards), backend)

    if backend == "appwrite":
        count = await seed_appwrite(cards)
    else:
        count = await seed_local(cards)

    logger.info("Seeded %d cards", count)
    return count


def main() -> None:
    """CLI entry point for seeding the catalog."""
    parser = argparse.ArgumentParser(description="Seed the memory game card catalog")
    parser.add_argument("path", type=Path, help="JSON file listing the cards")
    parser.add_argument(
        "--backend",
        choices=["local", "appwrite"],
        default="local",
        help="Where to store the cards (default: local)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_seed(args.path, args.backend))


if __name__ == "__main__":
    main()

"""
Deck building service.

Deals a game from the card catalog: picks a random subset of definitions,
turns each into an image piece and a text piece, and shuffles them.
"""

import logging
import random
from collections.abc import Sequence
from typing import TypeVar

from memorymatch.config import PAIRS_PER_GAME
from memorymatch.models.card import CardDefinition, PlayablePiece, VariantKind
from memorymatch.models.failure import InsufficientCatalogError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def fisher_yates_shuffle(items: Sequence[T], rng: random.Random) -> list[T]:
    """
    Return a uniformly shuffled copy of items.

    Explicit Fisher-Yates so the distribution does not depend on a sort
    routine fed a random comparator.
    """
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def unique_definitions(catalog: Sequence[CardDefinition]) -> list[CardDefinition]:
    """
    Drop repeated identities, keeping the first occurrence.

    The hosted backend does not enforce unique identities, and two
    definitions with the same identity would deal four matching pieces.
    """
    seen: set[str] = set()
    unique: list[CardDefinition] = []
    for definition in catalog:
        if definition.identity in seen:
            logger.debug("Skipping duplicate catalog identity %r", definition.identity)
            continue
        seen.add(definition.identity)
        unique.append(definition)
    return unique


def select_definitions(
    catalog: Sequence[CardDefinition],
    count: int,
    rng: random.Random,
) -> list[CardDefinition]:
    """Uniform sample of count definitions without replacement."""
    return fisher_yates_shuffle(catalog, rng)[:count]


def build_deck(
    catalog: Sequence[CardDefinition],
    rng: random.Random | None = None,
    pairs: int = PAIRS_PER_GAME,
) -> list[PlayablePiece]:
    """
    Deal a shuffled deck of 2 * pairs pieces.

    Strategy:
    1. Refuse catalogs with fewer than `pairs` distinct identities
    2. Sample `pairs` definitions uniformly
    3. Emit one IMAGE and one TEXT piece per definition
    4. Shuffle and number pieces by their final position

    Args:
        catalog: Available card definitions
        rng: Source of randomness. Defaults to a fresh random.Random()
        pairs: Number of pairs to deal

    Returns:
        Pieces in board order; pieces[i].instance_id == i

    Raises:
        InsufficientCatalogError: If the catalog is too small
    """
    rng = rng or random.Random()
    definitions = unique_definitions(catalog)

    if len(definitions) < pairs:
        raise InsufficientCatalogError(required=pairs, available=len(definitions))

    selected = select_definitions(definitions, pairs, rng)

    unnumbered: list[tuple[CardDefinition, VariantKind]] = [
        (definition, variant) for definition in selected for variant in VariantKind
    ]

    deck = [
        PlayablePiece(
            instance_id=position,
            identity=definition.identity,
            variant=variant,
            image_reference=definition.image_reference,
            point_value=definition.point_value,
        )
        for position, (definition, variant) in enumerate(fisher_yates_shuffle(unnumbered, rng))
    ]

    logger.debug("Dealt %d pieces from a catalog of %d", len(deck), len(definitions))
    return deck

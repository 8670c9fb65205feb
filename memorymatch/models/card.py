from dataclasses import dataclass
from enum import Enum

from memorymatch.config import DEFAULT_AUTHOR, STANDARD_POINTS


@dataclass(frozen=True, slots=True)
class CardDefinition:
    """
    A card in the catalog.

    Attributes:
        identity: Unique human-readable label (e.g., "Lion"), shared by both pieces
        image_reference: Image URL or data URI
        point_value: Points awarded for matching the pair (10 or 20)
        author_label: Who drew or uploaded the card
    """

    identity: str
    image_reference: str
    point_value: int = STANDARD_POINTS
    author_label: str = DEFAULT_AUTHOR


class VariantKind(str, Enum):
    """Which face of a definition a piece shows."""

    IMAGE = "image"
    TEXT = "text"


@dataclass(slots=True)
class PlayablePiece:
    """
    One flippable card on the board.

    Two pieces share an identity: one IMAGE and one TEXT variant.
    instance_id is the piece's position in the dealt deck and never changes
    during a session.
    """

    instance_id: int
    identity: str
    variant: VariantKind
    image_reference: str
    point_value: int
    is_face_up: bool = False
    is_resolved: bool = False
    is_highlighted: bool = False

    def matches(self, other: "PlayablePiece") -> bool:
        """True if both pieces belong to the same pair."""
        return self.identity == other.identity and self.instance_id != other.instance_id

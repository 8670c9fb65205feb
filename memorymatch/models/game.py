from dataclasses import dataclass, field
from enum import Enum

from memorymatch.models.card import PlayablePiece


class GameMode(str, Enum):
    """Who is playing."""

    SOLO = "solo"
    TWO_PLAYER = "two_player"


class GamePhase(str, Enum):
    """
    Phase of the game state machine.

    MENU: no session exists
    IDLE: no unresolved piece is face-up
    AWAITING_SECOND_FLIP: one piece is face-up and waiting for its partner
    RESOLVING: two pieces are face-up and being evaluated
    COMPLETE: every pair has been matched
    """

    MENU = "menu"
    IDLE = "idle"
    AWAITING_SECOND_FLIP = "awaiting_second_flip"
    RESOLVING = "resolving"
    COMPLETE = "complete"


@dataclass(frozen=True, slots=True)
class Scores:
    """Points for each player. Solo games only ever use player 1."""

    player1: int = 0
    player2: int = 0

    def for_player(self, player: int) -> int:
        return self.player1 if player == 1 else self.player2


@dataclass
class SessionState:
    """
    Mutable state of one play-through.

    Owned and mutated only by MemoryGame; discarded on restart or menu.
    """

    mode: GameMode
    active_player: int = 1
    scores: Scores = field(default_factory=Scores)
    matched_pair_count: int = 0
    move_count: int = 0
    is_complete: bool = False

    @property
    def score_player1(self) -> int:
        return self.scores.player1

    @property
    def score_player2(self) -> int:
        return self.scores.player2


@dataclass(frozen=True)
class GameSnapshot:
    """Read-only copy of a session handed to the presentation layer."""

    phase: GamePhase
    mode: GameMode | None = None
    active_player: int = 1
    score_player1: int = 0
    score_player2: int = 0
    matched_pair_count: int = 0
    move_count: int = 0
    is_complete: bool = False
    pieces: tuple[PlayablePiece, ...] = ()
    selection: tuple[int, ...] = ()

    def face_up_unresolved(self) -> list[PlayablePiece]:
        """Pieces currently showing but not yet matched."""
        return [p for p in self.pieces if p.is_face_up and not p.is_resolved]

    def piece(self, instance_id: int) -> PlayablePiece:
        return self.pieces[instance_id]

"""
Memory game state machine.

MemoryGame owns one session at a time: the dealt pieces, the selection of
face-up pieces awaiting resolution, and the SessionState. The presentation
layer sends actions (flip, start_game, restart, return_to_menu) and renders
the GameSnapshot returned by each action or pushed to subscribers after a
timed transition.

Phases:
    MENU -> IDLE -> AWAITING_SECOND_FLIP -> RESOLVING -> IDLE ... -> COMPLETE

Resolution of a full selection runs on the injected Scheduler:

    match:     +match_highlight_delay  highlight both pieces
               +match_settle_delay     resolve both, credit points
    mismatch:  +mismatch_delay         turn both face-down, maybe pass turn

Delays are measured from the moment the second piece is flipped. While a
resolution is pending, flips are rejected, not queued.

INVARIANT: a callback scheduled for one session never touches another.
Every start, restart and return to menu cancels pending callbacks and bumps
the session generation, and callbacks check the generation they were
scheduled under before doing anything.
"""

import logging
import random
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from enum import Enum

from memorymatch.config import PAIRS_PER_GAME, Settings, settings
from memorymatch.models.card import CardDefinition, PlayablePiece
from memorymatch.models.failure import InvalidActionError
from memorymatch.models.game import GameMode, GamePhase, GameSnapshot, SessionState
from memorymatch.services.deck_builder import build_deck
from memorymatch.services.scheduler import Scheduler, TimerHandle
from memorymatch.services.scoring import credit_score, next_player

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[GameSnapshot], None]


class ResolutionStep(str, Enum):
    """Timed steps applied to a full selection."""

    HIGHLIGHT = "highlight"
    RESOLVE_MATCH = "resolve_match"
    RESOLVE_MISMATCH = "resolve_mismatch"


@dataclass(frozen=True)
class GameTimings:
    """Delays, in seconds from the second flip, of each resolution step."""

    match_highlight_delay: float = 0.6
    match_settle_delay: float = 2.0
    mismatch_delay: float = 1.0

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "GameTimings":
        config = config or settings
        return cls(
            match_highlight_delay=config.match_highlight_delay,
            match_settle_delay=config.match_settle_delay,
            mismatch_delay=config.mismatch_delay,
        )

    def __post_init__(self) -> None:
        if self.match_highlight_delay > self.match_settle_delay:
            raise ValueError("match_highlight_delay must not exceed match_settle_delay")


def resolution_schedule(matched: bool, timings: GameTimings) -> list[tuple[float, ResolutionStep]]:
    """Timed transitions for a full selection, as (delay, step) pairs."""
    if matched:
        return [
            (timings.match_highlight_delay, ResolutionStep.HIGHLIGHT),
            (timings.match_settle_delay, ResolutionStep.RESOLVE_MATCH),
        ]
    return [(timings.mismatch_delay, ResolutionStep.RESOLVE_MISMATCH)]


class MemoryGame:
    """
    Game state machine for solo and two-player memory matching.

    Args:
        scheduler: Runs the timed resolution steps. Defaults to a real-time
            Scheduler; the owner must call scheduler.run_due().
        rng: Source of randomness for dealing.
        timings: Resolution delays. Defaults to the configured ones.
        pairs: Pairs dealt per game.
    """

    def __init__(
        self,
        scheduler: Scheduler | None = None,
        rng: random.Random | None = None,
        timings: GameTimings | None = None,
        pairs: int = PAIRS_PER_GAME,
    ) -> None:
        self.scheduler = scheduler or Scheduler()
        self.rng = rng or random.Random()
        self.timings = timings or GameTimings.from_settings()
        self.pairs = pairs

        self._state: SessionState | None = None
        self._pieces: list[PlayablePiece] = []
        self._selection: list[int] = []
        self._catalog: tuple[CardDefinition, ...] = ()
        self._generation = 0
        self._timers: list[TimerHandle] = []
        self._listeners: list[SnapshotListener] = []

    # --- Observation ---

    @property
    def phase(self) -> GamePhase:
        if self._state is None:
            return GamePhase.MENU
        if self._state.is_complete:
            return GamePhase.COMPLETE
        if len(self._selection) == 2:
            return GamePhase.RESOLVING
        if len(self._selection) == 1:
            return GamePhase.AWAITING_SECOND_FLIP
        return GamePhase.IDLE

    @property
    def has_pending_resolution(self) -> bool:
        return any(not timer.done for timer in self._timers)

    def snapshot(self) -> GameSnapshot:
        """Copy of the current session, safe to hand to the presentation layer."""
        if self._state is None:
            return GameSnapshot(phase=GamePhase.MENU)

        state = self._state
        return GameSnapshot(
            phase=self.phase,
            mode=state.mode,
            active_player=state.active_player,
            score_player1=state.score_player1,
            score_player2=state.score_player2,
            matched_pair_count=state.matched_pair_count,
            move_count=state.move_count,
            is_complete=state.is_complete,
            pieces=tuple(replace(piece) for piece in self._pieces),
            selection=tuple(self._selection),
        )

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """
        Call listener with a snapshot after every transition.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- Lifecycle actions ---

    def start_game(self, mode: GameMode, catalog: Sequence[CardDefinition]) -> GameSnapshot:
        """
        Deal a new game from catalog.

        Raises:
            InsufficientCatalogError: If the catalog is too small. The
                current session, if any, is left untouched.
        """
        pieces = build_deck(catalog, rng=self.rng, pairs=self.pairs)

        self._reset()
        self._catalog = tuple(catalog)
        self._pieces = pieces
        self._state = SessionState(mode=GameMode(mode))

        logger.info("Started %s game with %d pieces", self._state.mode.value, len(pieces))
        return self._publish()

    def restart(self) -> GameSnapshot:
        """Deal a fresh game in the same mode from the same catalog."""
        if self._state is None:
            logger.warning("Ignoring restart: no game in progress")
            return self.snapshot()
        return self.start_game(self._state.mode, self._catalog)

    def return_to_menu(self) -> GameSnapshot:
        """Abandon the current session."""
        self._reset()
        logger.info("Returned to menu")
        return self._publish()

    # --- Player actions ---

    def flip(self, instance_id: int) -> GameSnapshot:
        """
        Turn a piece face-up.

        Ignored when no game is running, the game is complete, two pieces
        are already awaiting resolution, or the piece is already face-up or
        resolved. Unknown ids are logged and ignored.
        """
        state = self._state
        if state is None:
            logger.debug("Ignoring flip %s: no game in progress", instance_id)
            return self.snapshot()

        try:
            piece = self._piece(instance_id)
        except InvalidActionError as e:
            logger.warning("Ignoring flip: %s", e.message)
            return self.snapshot()

        if state.is_complete or len(self._selection) >= 2:
            logger.debug("Ignoring flip %s in phase %s", instance_id, self.phase.value)
            return self.snapshot()
        if piece.is_face_up or piece.is_resolved:
            logger.debug("Ignoring flip %s: already showing", instance_id)
            return self.snapshot()

        piece.is_face_up = True
        self._selection.append(instance_id)

        if len(self._selection) == 2:
            self._begin_resolution(state)

        return self._publish()

    # --- Internals ---

    def _piece(self, instance_id: int) -> PlayablePiece:
        if isinstance(instance_id, bool) or not isinstance(instance_id, int):
            raise InvalidActionError(instance_id, detail="instance id must be an integer")
        if not 0 <= instance_id < len(self._pieces):
            raise InvalidActionError(instance_id)
        return self._pieces[instance_id]

    def _begin_resolution(self, state: SessionState) -> None:
        first_id, second_id = self._selection
        if first_id == second_id:
            raise RuntimeError(f"Selection holds piece {first_id} twice")

        first, second = self._pieces[first_id], self._pieces[second_id]
        state.move_count += 1
        matched = first.matches(second)

        logger.debug(
            "Move %d: %r vs %r (%s)",
            state.move_count,
            first.identity,
            second.identity,
            "match" if matched else "mismatch",
        )

        pair = (first_id, second_id)
        for delay, step in resolution_schedule(matched, self.timings):
            self._schedule(delay, step, pair)

    def _schedule(self, delay: float, step: ResolutionStep, pair: tuple[int, int]) -> None:
        generation = self._generation
        timer = self.scheduler.call_later(delay, lambda: self._run_step(generation, step, pair))
        self._timers.append(timer)

    def _run_step(self, generation: int, step: ResolutionStep, pair: tuple[int, int]) -> None:
        state = self._state
        if generation != self._generation or state is None:
            logger.debug("Dropping stale %s step from generation %d", step.value, generation)
            return

        first, second = (self._pieces[i] for i in pair)

        if step == ResolutionStep.HIGHLIGHT:
            first.is_highlighted = second.is_highlighted = True
        elif step == ResolutionStep.RESOLVE_MATCH:
            self._resolve_match(state, first, second)
        else:
            self._resolve_mismatch(state, first, second)

        self._timers = [timer for timer in self._timers if not timer.done]
        self._publish()

    def _resolve_match(
        self, state: SessionState, first: PlayablePiece, second: PlayablePiece
    ) -> None:
        for piece in (first, second):
            piece.is_resolved = True
            piece.is_highlighted = False

        state.scores = credit_score(
            state.mode, state.active_player, first.point_value, state.scores
        )
        state.matched_pair_count += 1
        state.active_player = next_player(state.mode, state.active_player, matched=True)
        self._selection.clear()

        if state.matched_pair_count == self.pairs:
            state.is_complete = True
            logger.info(
                "Game complete after %d moves (P1 %d, P2 %d)",
                state.move_count,
                state.score_player1,
                state.score_player2,
            )

    def _resolve_mismatch(
        self, state: SessionState, first: PlayablePiece, second: PlayablePiece
    ) -> None:
        first.is_face_up = second.is_face_up = False
        self._selection.clear()
        state.active_player = next_player(state.mode, state.active_player, matched=False)

    def _reset(self) -> None:
        for timer in self._timers:
            timer.cancel()
        self._timers.clear()
        self._generation += 1
        self._state = None
        self._pieces = []
        self._selection = []
        self._catalog = ()

    def _publish(self) -> GameSnapshot:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
        return snapshot

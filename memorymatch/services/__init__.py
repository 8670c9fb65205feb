"""
MemoryMatch services.

Game logic: dealing, scoring and the game state machine, plus the
hosted storage client.
"""

from memorymatch.services.deck_builder import build_deck, fisher_yates_shuffle
from memorymatch.services.game import GameTimings, MemoryGame, ResolutionStep
from memorymatch.services.scheduler import Scheduler, TimerHandle, VirtualScheduler
from memorymatch.services.scoring import credit_score, next_player, scoring_player

__all__ = [
    "GameTimings",
    "MemoryGame",
    "ResolutionStep",
    "Scheduler",
    "TimerHandle",
    "VirtualScheduler",
    "build_deck",
    "credit_score",
    "fisher_yates_shuffle",
    "next_player",
    "scoring_player",
]

"""
Scoring and turn policy.

Solo games credit player 1. Two-player games credit whoever is active.
The turn passes only after a two-player mismatch: a player who finds a pair
keeps playing.
"""

from dataclasses import replace

from memorymatch.models.game import GameMode, Scores

PLAYERS = (1, 2)


def _check_player(player: int) -> None:
    if player not in PLAYERS:
        raise ValueError(f"active player must be 1 or 2, got {player}")


def scoring_player(mode: GameMode, active_player: int) -> int:
    """Which player's bucket a matched pair is credited to."""
    _check_player(active_player)
    if mode == GameMode.SOLO:
        return 1
    return active_player


def credit_score(mode: GameMode, active_player: int, point_value: int, scores: Scores) -> Scores:
    """Return scores with point_value added to the right player."""
    if point_value < 0:
        raise ValueError(f"point value must be non-negative, got {point_value}")

    if scoring_player(mode, active_player) == 1:
        return replace(scores, player1=scores.player1 + point_value)
    return replace(scores, player2=scores.player2 + point_value)


def next_player(mode: GameMode, active_player: int, matched: bool) -> int:
    """Who plays after a resolved pair."""
    _check_player(active_player)
    if mode == GameMode.TWO_PLAYER and not matched:
        return 2 if active_player == 1 else 1
    return active_player

"""Terminal rendering of game snapshots."""

from memorymatch.models.card import PlayablePiece, VariantKind
from memorymatch.models.game import GameMode, GameSnapshot

COLUMNS = 4
CELL_WIDTH = 16


def format_piece(piece: PlayablePiece) -> str:
    """Label for one board cell, without its number."""
    if not piece.is_face_up and not piece.is_resolved:
        return "?" * 6

    label = piece.identity.upper() if piece.variant == VariantKind.TEXT else f"<{piece.identity}>"
    if piece.is_highlighted:
        return f"*{label}*"
    if piece.is_resolved:
        return f"({label})"
    return label


def _truncate(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 1] + "~"


class BoardRenderer:
    """Renders the scoreboard and board grid."""

    def __init__(self, columns: int = COLUMNS) -> None:
        self.columns = columns

    def render_header(self, snapshot: GameSnapshot) -> str:
        pairs = f"Pairs: {snapshot.matched_pair_count}/{len(snapshot.pieces) // 2}"
        moves = f"Moves: {snapshot.move_count}"

        if snapshot.mode == GameMode.TWO_PLAYER:
            scores = f"P1: {snapshot.score_player1}  P2: {snapshot.score_player2}"
            turn = f"Player {snapshot.active_player}'s turn"
            return f"{scores} | {turn} | {moves} | {pairs}"
        return f"Score: {snapshot.score_player1} | {moves} | {pairs}"

    def render_board(self, snapshot: GameSnapshot) -> str:
        rows: list[str] = []
        for start in range(0, len(snapshot.pieces), self.columns):
            cells = [
                f"[{piece.instance_id + 1:>2}] "
                + _truncate(format_piece(piece), CELL_WIDTH).ljust(CELL_WIDTH)
                for piece in snapshot.pieces[start : start + self.columns]
            ]
            rows.append(" ".join(cells).rstrip())
        return "\n".join(rows)

    def render(self, snapshot: GameSnapshot) -> str:
        return f"{self.render_header(snapshot)}\n\n{self.render_board(snapshot)}"

    def render_result(self, snapshot: GameSnapshot) -> str:
        """Closing message for a completed game."""
        if snapshot.mode == GameMode.TWO_PLAYER:
            p1, p2 = snapshot.score_player1, snapshot.score_player2
            if p1 == p2:
                return f"It's a tie! {p1} points each."
            winner = 1 if p1 > p2 else 2
            return f"Player {winner} wins! ({p1} x {p2})"
        return (
            f"Well done! You found every pair in {snapshot.move_count} moves "
            f"and scored {snapshot.score_player1} points."
        )

"""
Terminal memory game.

Usage:
    memorymatch-play [--api-url URL | --database URL] [--mode solo|two_player]

Reads the card catalog from the card API (or Appwrite when configured),
then plays on the terminal. Type a card number to flip it, "r" to restart,
"m" for the menu and "q" to quit.
"""

import argparse
import asyncio
import logging
import random
import time
from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from memorymatch.catalog import (
    CatalogSource,
    DatabaseCatalog,
    LocalApiCatalog,
    default_catalog_source,
)
from memorymatch.cli.display import BoardRenderer
from memorymatch.db.database import make_engine
from memorymatch.models.card import CardDefinition
from memorymatch.models.failure import CatalogUnavailableError, InsufficientCatalogError
from memorymatch.models.game import GameMode, GamePhase, GameSnapshot
from memorymatch.services.game import MemoryGame

logger = logging.getLogger(__name__)

MODE_CHOICES = {"1": GameMode.SOLO, "2": GameMode.TWO_PLAYER}


class TerminalSession:
    """
    Drives a MemoryGame from line-based input.

    Input, output and sleeping are injected so the loop can run against
    scripted input and a virtual clock.
    """

    def __init__(
        self,
        game: MemoryGame,
        source: CatalogSource,
        input_fn: Callable[[str], str] = input,
        output: Callable[[str], None] = print,
        sleep: Callable[[float], object] = time.sleep,
    ) -> None:
        self.game = game
        self.source = source
        self.input_fn = input_fn
        self.output = output
        self.sleep = sleep
        self.renderer = BoardRenderer()

    def fetch_catalog(self) -> list[CardDefinition]:
        return asyncio.run(self.source.fetch_catalog())

    def start(self, mode: GameMode) -> bool:
        """Load the catalog and deal. Returns False if the game could not start."""
        try:
            catalog = self.fetch_catalog()
            self.game.start_game(mode, catalog)
        except InsufficientCatalogError as e:
            self.output(f"{e.message} {e.suggestion}")
            return False
        except CatalogUnavailableError as e:
            logger.warning("Catalog unavailable: %s", e.detail)
            self.output(f"{e.message} {e.suggestion}")
            return False
        return True

    def restart(self) -> None:
        """Deal again with a freshly fetched catalog, keeping the mode."""
        snapshot = self.game.snapshot()
        if snapshot.mode is None:
            return
        if not self.start(snapshot.mode):
            self.game.restart()

    def wait_for_resolution(self) -> None:
        """Let pending timed transitions run, showing each intermediate board."""
        scheduler = self.game.scheduler
        while (deadline := scheduler.next_deadline()) is not None:
            self.sleep(max(0.0, deadline - scheduler.clock()))
            if scheduler.run_due():
                self.show(self.game.snapshot())

    def show(self, snapshot: GameSnapshot) -> None:
        self.output(self.renderer.render(snapshot))

    def menu(self) -> GameMode | None:
        """Ask for a mode. Returns None to quit."""
        while True:
            choice = self.input_fn("1) Solo  2) Two players  q) Quit > ").strip().lower()
            if choice == "q":
                return None
            if choice in MODE_CHOICES:
                return MODE_CHOICES[choice]
            self.output("Choose 1, 2 or q.")

    def play(self) -> str:
        """
        Play until the user leaves the game.

        Returns "menu" or "quit".
        """
        self.show(self.game.snapshot())
        while True:
            snapshot = self.game.snapshot()
            if snapshot.phase == GamePhase.COMPLETE:
                self.output(self.renderer.render_result(snapshot))
                prompt = "r) Play again  m) Menu  q) Quit > "
            else:
                prompt = f"Flip a card (1-{len(snapshot.pieces)}), r, m or q > "

            command = self.input_fn(prompt).strip().lower()
            if command == "q":
                return "quit"
            if command == "m":
                self.game.return_to_menu()
                return "menu"
            if command == "r":
                self.restart()
                self.show(self.game.snapshot())
                continue

            if not command.isdecimal():
                self.output("Type a card number.")
                continue

            before = self.game.snapshot()
            after = self.game.flip(int(command) - 1)
            if after == before:
                self.output("That card can't be flipped right now.")
                continue

            self.show(after)
            self.wait_for_resolution()

    def run(self, mode: GameMode | None = None) -> None:
        while True:
            chosen = mode or self.menu()
            mode = None
            if chosen is None:
                return
            if not self.start(chosen):
                continue
            if self.play() == "quit":
                self.game.return_to_menu()
                return


def _source_from_args(args: argparse.Namespace) -> CatalogSource:
    if args.database:
        factory = async_sessionmaker(
            make_engine(args.database), class_=AsyncSession, expire_on_commit=False
        )
        return DatabaseCatalog(factory)
    if args.api_url:
        return LocalApiCatalog(base_url=args.api_url)
    return default_catalog_source()


def main() -> None:
    """CLI entry point for the terminal game."""
    parser = argparse.ArgumentParser(description="Play the memory game in the terminal")
    source_group = parser.add_mutually_exclusive_group()
    source_group.add_argument("--api-url", help="Card API base URL (default: from settings)")
    source_group.add_argument("--database", help="Read cards straight from this database URL")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in GameMode],
        help="Skip the menu and start in this mode",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for dealing")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    game = MemoryGame(rng=random.Random(args.seed))
    session = TerminalSession(game, _source_from_args(args))
    try:
        session.run(GameMode(args.mode) if args.mode else None)
    except (KeyboardInterrupt, EOFError):
        game.return_to_menu()


if __name__ == "__main__":
    main()

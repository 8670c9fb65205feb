import random

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from memorymatch.models.card import CardDefinition
from memorymatch.models.db import Base
from memorymatch.services.game import GameTimings, MemoryGame
from memorymatch.services.scheduler import VirtualScheduler

ANIMALS = ["Leão", "Gato", "Cachorro", "Elefante", "Girafa", "Zebra", "Macaco", "Tigre"]


def _make_catalog(size: int = 8, valuable: str | None = None) -> list[CardDefinition]:
    """Catalog of distinct animals; `valuable` is worth 20 points."""
    names = ANIMALS[:size] if size <= len(ANIMALS) else [f"Card {i}" for i in range(size)]
    return [
        CardDefinition(
            identity=name,
            image_reference=f"https://img.example.com/{i}.png",
            point_value=20 if name == valuable else 10,
            author_label="Admin",
        )
        for i, name in enumerate(names)
    ]


@pytest.fixture
def make_catalog():
    """Factory for catalogs of a given size."""
    return _make_catalog


@pytest.fixture
def catalog() -> list[CardDefinition]:
    """Eight cards, all worth 10 except Leão (20)."""
    return _make_catalog(8, valuable="Leão")


@pytest.fixture
def scheduler() -> VirtualScheduler:
    return VirtualScheduler()


@pytest.fixture
def game(scheduler: VirtualScheduler) -> MemoryGame:
    """Game on virtual time with the standard delays."""
    return MemoryGame(scheduler=scheduler, rng=random.Random(1234), timings=GameTimings())


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncSession:
    """Provide a database session for tests."""
    async with session_factory() as session:
        yield session

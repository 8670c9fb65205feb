"""
SQLAlchemy ORM models for persistent storage.

Models mirror the CardDefinition dataclass but add database persistence.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from memorymatch.config import DEFAULT_AUTHOR, STANDARD_POINTS


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CardDB(Base):
    """
    A card in the local catalog.

    The id is the card's identity (e.g., "Leão"); saving a card with an
    existing id replaces it.
    """

    __tablename__ = "cards"
    # Fetch created_at on insert so it can be read without a lazy load
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    # Data URI or URL, can be large
    image_data: Mapped[str] = mapped_column(Text)
    points: Mapped[int] = mapped_column(Integer, default=STANDARD_POINTS)
    author: Mapped[str] = mapped_column(String(255), default=DEFAULT_AUTHOR)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )

    def __repr__(self) -> str:
        return f"<CardDB(id={self.id}, points={self.points})>"

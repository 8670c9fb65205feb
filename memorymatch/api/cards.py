"""
Card catalog API endpoints.

Create, list and delete the cards the game deals from. Saving a card whose
id already exists replaces it; deleting is idempotent.

Admin-only operations (valuable cards, deletes) require the admin password
in the X-Admin-Password header.
"""

import hmac
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from memorymatch.config import (
    DEFAULT_AUTHOR,
    PAIRS_PER_GAME,
    STANDARD_POINTS,
    VALID_POINT_VALUES,
    VALUABLE_POINTS,
    settings,
)
from memorymatch.db import count_cards, delete_card, get_card, list_cards, upsert_card
from memorymatch.db.database import get_session
from memorymatch.models.db import CardDB
from memorymatch.models.failure import FailureKind, KnownError, UnauthorizedError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["cards"])


class CardResponse(BaseModel):
    """A card in the catalog."""

    id: str
    image_data: str
    points: int = STANDARD_POINTS
    author: str = DEFAULT_AUTHOR


class CardCreateRequest(BaseModel):
    """Request model for saving a card."""

    id: str = Field(..., description="Card name, shown on the text piece", examples=["Leão"])
    image_data: str = Field(..., description="Image as a data URI or URL")
    points: int = Field(
        default=STANDARD_POINTS,
        description="Points for matching the pair: 10, or 20 for valuable cards (admin only)",
    )
    author: str = Field(default=DEFAULT_AUTHOR, description="Who drew the card")


class StudentCardRequest(BaseModel):
    """Request model for a student's drawing submission."""

    id: str = Field(..., description="Name of the drawing", examples=["Gato"])
    image_data: str = Field(..., description="Image as a data URI")
    author: str = Field(..., description="Student's name", examples=["Maria Silva"])


class SaveResponse(BaseModel):
    success: bool = True
    id: str


class DeleteResponse(BaseModel):
    success: bool = True
    deleted: bool


class CatalogStatsResponse(BaseModel):
    """How many cards exist and whether a game can be dealt."""

    total_cards: int
    required_cards: int = PAIRS_PER_GAME
    can_start_game: bool


class LoginRequest(BaseModel):
    password: str


class LoginResponse(BaseModel):
    authenticated: bool


def _password_matches(candidate: str | None) -> bool:
    expected = settings.admin_password
    if not expected or candidate is None:
        return False
    return hmac.compare_digest(candidate.encode(), expected.encode())


def is_admin(x_admin_password: Annotated[str | None, Header()] = None) -> bool:
    """Dependency: True when the request carries the admin password."""
    return _password_matches(x_admin_password)


def require_admin(admin: Annotated[bool, Depends(is_admin)]) -> None:
    """Dependency: reject requests without the admin password."""
    if not admin:
        raise UnauthorizedError()


def _to_response(card: CardDB) -> CardResponse:
    return CardResponse(
        id=card.id,
        image_data=card.image_data,
        points=card.points,
        author=card.author,
    )


def _normalize_id(card_id: str) -> str:
    return card_id.strip()


def _validate_card(card_id: str, image_data: str) -> str:
    card_id = _normalize_id(card_id)
    if not card_id or not image_data.strip():
        raise KnownError(
            kind=FailureKind.MISSING_REQUIRED,
            message="ID and image data are required",
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    return card_id


@router.get("/cards", response_model=list[CardResponse])
async def get_cards(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> list[CardResponse]:
    """List all cards, newest first."""
    return [_to_response(card) for card in await list_cards(session)]


@router.get("/cards/stats", response_model=CatalogStatsResponse)
async def get_catalog_stats(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CatalogStatsResponse:
    """Count cards and report whether there are enough to deal a game."""
    total = await count_cards(session)
    return CatalogStatsResponse(total_cards=total, can_start_game=total >= PAIRS_PER_GAME)


@router.post("/cards", response_model=SaveResponse)
async def save_card(
    request: CardCreateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    admin: Annotated[bool, Depends(is_admin)],
) -> SaveResponse:
    """
    Save a card, replacing any card with the same id.

    Only admins may save valuable (20 point) cards.
    """
    card_id = _validate_card(request.id, request.image_data)

    if request.points not in VALID_POINT_VALUES:
        raise KnownError(
            kind=FailureKind.INVALID_INPUT,
            message=f"Points must be one of {sorted(VALID_POINT_VALUES)}",
            detail=f"Got {request.points}",
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    if request.points == VALUABLE_POINTS and not admin:
        raise UnauthorizedError("Admin password required for valuable cards")

    author = request.author.strip() or DEFAULT_AUTHOR
    await upsert_card(session, card_id, request.image_data, request.points, author)
    logger.info("Saved card %r (%d pts, by %s)", card_id, request.points, author)
    return SaveResponse(id=card_id)


@router.post("/cards/student", response_model=SaveResponse)
async def submit_student_card(
    request: StudentCardRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SaveResponse:
    """
    Save a student's drawing.

    Student cards are always worth the standard points and must be signed.
    """
    card_id = _validate_card(request.id, request.image_data)
    author = request.author.strip()
    if not author:
        raise KnownError(
            kind=FailureKind.MISSING_REQUIRED,
            message="Author name is required",
            suggestion="Write your name before submitting the drawing.",
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    await upsert_card(session, card_id, request.image_data, STANDARD_POINTS, author)
    logger.info("Student %s submitted card %r", author, card_id)
    return SaveResponse(id=card_id)


@router.delete(
    "/cards/{card_id}",
    response_model=DeleteResponse,
    dependencies=[Depends(require_admin)],
)
async def remove_card(
    card_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DeleteResponse:
    """Delete a card. Succeeds whether or not the card existed."""
    deleted = await delete_card(session, _normalize_id(card_id))
    return DeleteResponse(deleted=deleted)


@router.post("/admin/login", response_model=LoginResponse)
async def admin_login(request: LoginRequest) -> LoginResponse:
    """Check the admin password."""
    if not _password_matches(request.password):
        raise UnauthorizedError("Incorrect password")
    return LoginResponse(authenticated=True)


@router.get("/cards/{card_id}", response_model=CardResponse)
async def get_card_by_id(
    card_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CardResponse:
    """Get a single card. Returns 404 if it does not exist."""
    card_id = _normalize_id(card_id)
    card = await get_card(session, card_id)
    if card is None:
        raise KnownError(
            kind=FailureKind.NOT_FOUND,
            message=f"Card '{card_id}' not found",
            status_code=status.HTTP_404_NOT_FOUND,
        )
    return _to_response(card)

from memorymatch.models.card import CardDefinition, PlayablePiece, VariantKind
from memorymatch.models.failure import (
    CatalogUnavailableError,
    FailureDetail,
    FailureKind,
    FailureResponse,
    InsufficientCatalogError,
    InvalidActionError,
    KnownError,
    OutcomeType,
    StorageNotConfiguredError,
    UnauthorizedError,
)
from memorymatch.models.game import GameMode, GamePhase, GameSnapshot, Scores, SessionState

__all__ = [
    "CardDefinition",
    "CatalogUnavailableError",
    "FailureDetail",
    "FailureKind",
    "FailureResponse",
    "GameMode",
    "GamePhase",
    "GameSnapshot",
    "InsufficientCatalogError",
    "InvalidActionError",
    "KnownError",
    "OutcomeType",
    "PlayablePiece",
    "Scores",
    "SessionState",
    "StorageNotConfiguredError",
    "UnauthorizedError",
    "VariantKind",
]

"""
Failure classification for the game and the card API.

Every failure the user can see is classified by a FailureKind and carries a
user-appropriate message. The HTTP layer renders KnownError subclasses as a
FailureResponse body; the terminal client prints the message and suggestion.

Failure taxonomy:
- InsufficientCatalogError: fewer cards than a game needs (user-correctable)
- CatalogUnavailableError: the storage backend could not be reached (retryable)
- InvalidActionError: an action referenced a piece that does not exist
  (logged and ignored by the game)
- UnauthorizedError: an admin-only request without the admin password

None of these is fatal; returning to the menu always recovers.
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Request validation failures
    INVALID_INPUT = "invalid_input"
    MISSING_REQUIRED = "missing_required"
    UNAUTHORIZED = "unauthorized"

    # Resource failures
    NOT_FOUND = "not_found"
    INSUFFICIENT_CATALOG = "insufficient_catalog"

    # Storage failures
    CATALOG_UNAVAILABLE = "catalog_unavailable"
    STORAGE_NOT_CONFIGURED = "storage_not_configured"

    # Game actions
    INVALID_ACTION = "invalid_action"

    # Anything the handlers did not anticipate
    UNKNOWN = "unknown"


class OutcomeType(str, Enum):
    """Whether the failure was anticipated."""

    KNOWN_FAILURE = "known_failure"
    UNKNOWN_FAILURE = "unknown_failure"


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(..., description="Classification of the failure")
    message: str = Field(..., description="User-appropriate explanation of what went wrong")
    detail: str | None = Field(default=None, description="Additional technical detail")
    suggestion: str | None = Field(default=None, description="Suggested action for the user")


class FailureResponse(BaseModel):
    """Body of every non-validation error response from the card API."""

    outcome: OutcomeType
    failure: FailureDetail

    @classmethod
    def known(
        cls,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
    ) -> "FailureResponse":
        return cls(
            outcome=OutcomeType.KNOWN_FAILURE,
            failure=FailureDetail(
                kind=kind, message=message, detail=detail, suggestion=suggestion
            ),
        )

    @classmethod
    def unknown(cls) -> "FailureResponse":
        """Catch-all body for unexpected exceptions. Never leaks the exception."""
        return cls(
            outcome=OutcomeType.UNKNOWN_FAILURE,
            failure=FailureDetail(
                kind=FailureKind.UNKNOWN,
                message="Something went wrong. Please try again.",
                suggestion="If this persists, please report the issue.",
            ),
        )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> FailureResponse:
        """Convert to a FailureResponse."""
        return FailureResponse.known(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class InsufficientCatalogError(KnownError):
    """
    Raised when the catalog holds too few cards to deal a game.

    The caller should send the user to catalog management instead of
    starting a game.
    """

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            kind=FailureKind.INSUFFICIENT_CATALOG,
            message=(
                f"At least {required} cards are needed to play. "
                f"Only {available} are registered."
            ),
            suggestion="Add more cards in the admin panel.",
            status_code=409,
        )


class CatalogUnavailableError(KnownError):
    """
    Raised when the card catalog cannot be fetched from its backend.

    Backend-specific errors are chained as __cause__; callers only ever see
    this type. The game never retries on its own.
    """

    def __init__(self, detail: str | None = None):
        super().__init__(
            kind=FailureKind.CATALOG_UNAVAILABLE,
            message="The card catalog could not be loaded.",
            detail=detail,
            suggestion="Check your connection and try again.",
            status_code=503,
        )


class StorageNotConfiguredError(KnownError):
    """Raised when writing to the hosted storage backend without configuration."""

    def __init__(self) -> None:
        super().__init__(
            kind=FailureKind.STORAGE_NOT_CONFIGURED,
            message="Hosted storage is not configured.",
            suggestion="Set the APPWRITE_* environment variables.",
            status_code=503,
        )


class InvalidActionError(KnownError):
    """Raised when a game action references an unknown piece."""

    def __init__(self, instance_id: int, detail: str | None = None):
        self.instance_id = instance_id
        super().__init__(
            kind=FailureKind.INVALID_ACTION,
            message=f"There is no card {instance_id} on the board.",
            detail=detail,
        )


class UnauthorizedError(KnownError):
    """Raised when an admin-only request lacks the admin password."""

    def __init__(self, message: str = "Admin password required"):
        super().__init__(
            kind=FailureKind.UNAUTHORIZED,
            message=message,
            suggestion="Log in to the admin panel.",
            status_code=401,
        )

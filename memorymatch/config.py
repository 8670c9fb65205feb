import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "MemoryMatch"
    debug: bool = False

    database_url: str = "sqlite+aiosqlite:///memory_game.db"

    # Base URL of the card API, used by the terminal client
    api_base_url: str = "http://localhost:3000"

    # Password for the admin panel (valuable cards, deletes)
    admin_password: str = ""

    # Hosted storage backend. Every id must be set for it to be used.
    appwrite_endpoint: str = "https://cloud.appwrite.io/v1"
    appwrite_project_id: str = ""
    appwrite_database_id: str = ""
    appwrite_collection_id: str = ""
    appwrite_bucket_id: str = ""
    appwrite_api_key: str = ""

    # Game timing, in seconds from the moment the second card is flipped
    match_highlight_delay: float = 0.6
    match_settle_delay: float = 2.0
    mismatch_delay: float = 1.0


settings = Settings()


# =============================================================================
# GAME RULES
# =============================================================================

# Pairs dealt per game; the catalog must hold at least this many cards
PAIRS_PER_GAME = 6

# Card point values
STANDARD_POINTS = 10
VALUABLE_POINTS = 20
VALID_POINT_VALUES = frozenset({STANDARD_POINTS, VALUABLE_POINTS})

DEFAULT_AUTHOR = "Admin"


def _is_set(value: str) -> bool:
    value = value.strip()
    return bool(value) and value not in ("undefined", "null")


def appwrite_configured(config: Settings | None = None) -> bool:
    """
    Check whether the hosted storage backend is fully configured.

    Logs a warning listing the missing ids when only some of them are set.
    """
    config = config or settings
    ids = {
        "project_id": config.appwrite_project_id,
        "database_id": config.appwrite_database_id,
        "collection_id": config.appwrite_collection_id,
        "bucket_id": config.appwrite_bucket_id,
    }
    present = {name: _is_set(value) for name, value in ids.items()}

    if all(present.values()):
        return True

    if any(value.strip() for value in ids.values()):
        missing = sorted(name for name, ok in present.items() if not ok)
        logger.warning("Appwrite is partially configured, missing: %s", ", ".join(missing))
    return False

from memorymatch.db.database import get_session, init_db
from memorymatch.db.operations import (
    card_to_model,
    count_cards,
    delete_card,
    get_card,
    list_cards,
    upsert_card,
)

__all__ = [
    "card_to_model",
    "count_cards",
    "delete_card",
    "get_card",
    "get_session",
    "init_db",
    "list_cards",
    "upsert_card",
]

"""Database session and repository utilities."""

from src.db.session import (
    dispose_engine,
    get_db_session,
    get_engine,
    get_sessionmaker,
    session_context,
)
from src.db.repositories import (
    add_activity,
    fetch_listing,
    fetch_recent_activity,
    fetch_review_ratings,
    insert_listing,
    update_listing_aggregate,
)

__all__ = [
    "dispose_engine",
    "get_db_session",
    "get_engine",
    "get_sessionmaker",
    "session_context",
    "add_activity",
    "fetch_listing",
    "fetch_recent_activity",
    "fetch_review_ratings",
    "insert_listing",
    "update_listing_aggregate",
]

"""SQLAlchemy ORM models."""

from src.models.activity_log import ActivityLog
from src.models.base import Base
from src.models.enums import ActivityKind, ListingStatus, UserRole
from src.models.inquiry import Inquiry
from src.models.listing import Listing
from src.models.review import Review
from src.models.user import User

__all__ = [
    "ActivityKind",
    "ActivityLog",
    "Base",
    "Inquiry",
    "Listing",
    "ListingStatus",
    "Review",
    "User",
    "UserRole",
]

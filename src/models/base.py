"""Declarative base shared by all ORM models."""

from datetime import UTC, datetime

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

NAMING_CONVENTION = {
    "ix": "idx_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for BoardingBee ORM models."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from drivers that drop tzinfo."""

    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)

"""SQLModel database table models."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


def _utc_now() -> datetime:
    """Return current UTC time as naive datetime for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


def _new_uuid() -> str:
    return str(uuid.uuid4())


class Admin(SQLModel, table=True):
    __tablename__ = "admins"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)


class Submission(SQLModel, table=True):
    __tablename__ = "submissions"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    company_name: str = Field(index=True)
    nip: str = Field(index=True)
    country: str | None = None
    postal_code: str | None = None
    city: str | None = None
    street: str | None = None
    building_number: str | None = None
    apartment_number: str | None = None
    delivery_address: str | None = None  # pre-structured-address records
    phone: str
    email: str
    notes: str | None = None
    collections: str = "[]"  # JSON list of {"collection", "cartelas"}
    locale: str | None = None
    created_at: datetime = Field(default_factory=_utc_now, index=True)

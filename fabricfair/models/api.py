"""Request and response schemas for the public and admin APIs."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

CollectionName = Literal["Sinope", "Premier Home", "Decency", "Magia"]

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class CamelModel(BaseModel):
    """Accepts and emits the camelCase keys the browser form uses."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class CollectionSelection(BaseModel):
    collection: CollectionName
    cartelas: list[int] = Field(min_length=1)


class SubmissionCreate(CamelModel):
    company_name: str = Field(min_length=1)
    nip: str = Field(pattern=r"^\d{10}$")
    country: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)
    city: str = Field(min_length=1)
    street: str = Field(min_length=1)
    building_number: str = Field(min_length=1)
    apartment_number: str | None = None
    phone: str = Field(min_length=1)
    email: str
    notes: str | None = None
    collections: list[CollectionSelection] = Field(min_length=1)
    captcha_code: str | None = None
    session_id: str | None = None

    @field_validator("email")
    @classmethod
    def _valid_email(cls, value: str) -> str:
        value = value.strip()
        if not _EMAIL_RE.match(value):
            raise ValueError("Invalid email address")
        return value


class SubmissionSummary(CamelModel):
    id: str
    company_name: str
    nip: str
    email: str
    phone: str
    created_at: datetime


class SubmissionDetail(SubmissionSummary):
    country: str | None = None
    postal_code: str | None = None
    city: str | None = None
    street: str | None = None
    building_number: str | None = None
    apartment_number: str | None = None
    delivery_address: str | None = None
    notes: str | None = None
    collections: str
    locale: str | None = None


class LoginRequest(BaseModel):
    # The admin form labels this field "username"; it holds the admin e-mail.
    email: str = ""
    username: str = ""
    password: str = ""
    session_id: str | None = Field(default=None, alias="sessionId")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def login(self) -> str:
        return (self.email or self.username).strip()


class CaptchaVerifyRequest(BaseModel):
    captcha_code: str | None = Field(default=None, alias="captchaCode")
    session_id: str | None = Field(default=None, alias="sessionId")
    mark_as_used: bool = Field(default=False, alias="markAsUsed")

    model_config = ConfigDict(populate_by_name=True)

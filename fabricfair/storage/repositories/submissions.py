"""Submission repository backed by the async SQL engine."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from fabricfair.exceptions import StorageError
from fabricfair.models.database import Submission

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from fabricfair.models.api import SubmissionCreate

logger = structlog.get_logger(__name__)


class SubmissionRepository:
    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def create(self, data: SubmissionCreate, locale: str | None = None) -> Submission:
        submission = Submission(
            company_name=data.company_name,
            nip=data.nip,
            country=data.country,
            postal_code=data.postal_code,
            city=data.city,
            street=data.street,
            building_number=data.building_number,
            apartment_number=data.apartment_number or None,
            phone=data.phone,
            email=data.email,
            notes=data.notes or None,
            collections=json.dumps([c.model_dump() for c in data.collections]),
            locale=locale,
        )
        try:
            async with AsyncSession(self._engine, expire_on_commit=False) as session:
                session.add(submission)
                await session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"Could not store submission: {exc}") from exc

        logger.info(
            "submission_created",
            submission_id=submission.id,
            collections=len(data.collections),
        )
        return submission

    async def get(self, submission_id: str) -> Submission | None:
        async with AsyncSession(self._engine) as session:
            return await session.get(Submission, submission_id)

    async def list_recent(self) -> list[Submission]:
        """All submissions, newest first."""
        async with AsyncSession(self._engine) as session:
            stmt = select(Submission).order_by(col(Submission.created_at).desc())
            result = await session.exec(stmt)
            return list(result.all())

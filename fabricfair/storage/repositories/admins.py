"""Admin account lookups and bootstrap upsert."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from fabricfair.models.database import Admin, _utc_now

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = structlog.get_logger(__name__)


class AdminRepository:
    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def get_by_email(self, email: str) -> Admin | None:
        async with AsyncSession(self._engine) as session:
            stmt = select(Admin).where(col(Admin.email) == email)
            result = await session.exec(stmt)
            return result.first()

    async def upsert(self, email: str, password_hash: str) -> Admin:
        """Create the admin or replace its password hash."""
        async with AsyncSession(self._engine, expire_on_commit=False) as session:
            result = await session.exec(select(Admin).where(col(Admin.email) == email))
            admin = result.first()
            if admin is None:
                admin = Admin(email=email, password_hash=password_hash)
                action = "created"
            else:
                admin.password_hash = password_hash
                admin.updated_at = _utc_now()
                action = "updated"
            session.add(admin)
            await session.commit()
        logger.info("admin_upserted", email=email, action=action)
        return admin

"""Profile reads and partial updates on the users table."""

from typing import Any

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from smartbrain.db.models import User
from smartbrain.errors import (
    BadRequest,
    DatabaseError,
    InternalError,
    NotFound,
    RequestTimeout,
)

logger = structlog.get_logger()

# Columns a client may change. id, email, entries and joined are not here.
UPDATABLE_FIELDS = ("name", "age", "pet", "avatar")


class ProfileService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_profile(self, user_id: int) -> User:
        try:
            user = await self.db.get(User, user_id)
        except (TimeoutError, PoolTimeoutError) as e:
            raise RequestTimeout("Database timed out") from e
        except SQLAlchemyError as e:
            logger.error("profile.get_failed", user_id=user_id, error=str(e))
            raise DatabaseError("Error getting user") from e
        if user is None:
            raise NotFound()
        return user

    async def update_profile(self, user_id: int, fields: dict[str, Any]) -> User:
        """Apply only the recognized fields present in `fields`.

        None values and blank strings count as absent, so a name cannot be
        emptied after registration. With nothing left to apply the row is not
        touched and BadRequest is raised.
        """
        changes = {}
        for key, value in fields.items():
            if key not in UPDATABLE_FIELDS or value is None:
                continue
            if isinstance(value, str):
                value = value.strip()
                if not value:
                    continue
            changes[key] = value
        if not changes:
            raise BadRequest("No data provided to update")

        logger.info("profile.update", user_id=user_id, fields=sorted(changes))
        try:
            result = await self.db.execute(
                update(User)
                .where(User.id == user_id)
                .values(**changes)
                .returning(User.id)
            )
            updated_id = result.scalar_one_or_none()
            if updated_id is None:
                await self.db.rollback()
                raise NotFound()
            await self.db.commit()

            result = await self.db.execute(
                select(User)
                .where(User.id == user_id)
                .execution_options(populate_existing=True)
            )
            return result.scalar_one()
        except (TimeoutError, PoolTimeoutError) as e:
            await self.db.rollback()
            raise RequestTimeout("Database timed out") from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("profile.update_failed", user_id=user_id, error=str(e))
            raise InternalError("Error updating user") from e

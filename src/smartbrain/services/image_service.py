"""Face detection proxy and per-user image entry counter."""

from typing import Any, Optional

import structlog
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from smartbrain.clients.clarifai import ClarifaiClient
from smartbrain.db.models import User
from smartbrain.errors import BadRequest, DatabaseError, NotFound, RequestTimeout

logger = structlog.get_logger()


class ImageService:
    def __init__(self, db: AsyncSession, clarifai: ClarifaiClient):
        self.db = db
        self.clarifai = clarifai

    async def detect_faces(self, image_url: Optional[str]) -> dict[str, Any]:
        if not image_url or not image_url.strip():
            raise BadRequest("Image URL is empty.")
        return await self.clarifai.detect_faces(image_url.strip())

    async def increment_entries(self, user_id: Optional[int]) -> int:
        """Add one to the user's entry count and return the new total."""
        if not user_id:
            raise BadRequest("User ID is required.")
        try:
            result = await self.db.execute(
                update(User)
                .where(User.id == user_id)
                .values(entries=User.entries + 1)
                .returning(User.entries)
                .execution_options(synchronize_session=False)
            )
            entries = result.scalar_one_or_none()
            if entries is None:
                await self.db.rollback()
                raise NotFound()
            await self.db.commit()
        except (TimeoutError, PoolTimeoutError) as e:
            await self.db.rollback()
            raise RequestTimeout("Database timed out") from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("image.increment_failed", user_id=user_id, error=str(e))
            raise DatabaseError("Unable to get entries") from e
        return entries

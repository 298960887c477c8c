"""Profile routes — read and partially update a user record."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from smartbrain.db.engine import get_db
from smartbrain.schemas.profile import ProfileUpdate, UserRead
from smartbrain.services.profile_service import ProfileService

router = APIRouter()


def _svc(db: AsyncSession = Depends(get_db)) -> ProfileService:
    return ProfileService(db)


@router.get("/profile/{user_id}", response_model=UserRead)
async def get_profile(user_id: int, svc: ProfileService = Depends(_svc)):
    return await svc.get_profile(user_id)


@router.put("/profile/{user_id}", response_model=UserRead)
async def update_profile(
    user_id: int,
    body: ProfileUpdate,
    svc: ProfileService = Depends(_svc),
):
    """Update any of name, age, pet, avatar. Omitted fields keep their value."""
    return await svc.update_profile(user_id, body.model_dump(exclude_none=True))

"""Image routes — face detection proxy and entry counter."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from smartbrain.clients.clarifai import ClarifaiClient, get_clarifai_client
from smartbrain.db.engine import get_db
from smartbrain.schemas.image import (
    ImageEntryRequest,
    ImageEntryResponse,
    ImageUrlRequest,
)
from smartbrain.services.image_service import ImageService

router = APIRouter()


def _svc(
    db: AsyncSession = Depends(get_db),
    clarifai: ClarifaiClient = Depends(get_clarifai_client),
) -> ImageService:
    return ImageService(db, clarifai)


@router.post("/imageurl")
async def image_url(body: ImageUrlRequest, svc: ImageService = Depends(_svc)):
    """Run face detection on an image URL; Clarifai's response is passed through."""
    return await svc.detect_faces(body.input)


@router.put("/image", response_model=ImageEntryResponse)
async def image_entry(body: ImageEntryRequest, svc: ImageService = Depends(_svc)):
    return ImageEntryResponse(entries=await svc.increment_entries(body.id))

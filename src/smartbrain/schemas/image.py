"""Pydantic schemas for the image endpoints."""

from typing import Optional

from pydantic import BaseModel


class ImageUrlRequest(BaseModel):
    input: Optional[str] = None


class ImageEntryRequest(BaseModel):
    id: Optional[int] = None


class ImageEntryResponse(BaseModel):
    entries: int

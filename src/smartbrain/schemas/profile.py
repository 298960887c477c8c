"""Pydantic schemas for user profiles."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class UserRead(BaseModel):
    id: int
    email: str
    name: str
    age: Optional[int] = None
    pet: Optional[str] = None
    avatar: Optional[str] = None
    entries: int
    joined: datetime

    model_config = {"from_attributes": True}


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    age: Optional[int] = Field(None, ge=0, le=200)
    pet: Optional[str] = Field(None, max_length=100)
    avatar: Optional[str] = None

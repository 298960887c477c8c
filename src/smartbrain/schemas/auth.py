"""Pydantic schemas for registration, sign-in and sign-out.

Learn: Request fields are optional here on purpose — an empty or missing
field is reported by the service as bad_request, the same way for
every endpoint.
"""

from typing import Optional

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = None
    password: Optional[str] = None


class SignInRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class SessionResponse(BaseModel):
    """Returned by /register and by /signin with credentials."""

    success: bool = True
    user_id: int = Field(alias="userId")
    token: str

    model_config = {"populate_by_name": True}


class WhoAmIResponse(BaseModel):
    """Returned by /signin when an Authorization header is sent."""

    id: str


class SignOutResponse(BaseModel):
    success: bool = True

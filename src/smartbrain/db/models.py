"""SQLAlchemy ORM models — the login (credentials) and users (profile) tables.

Learn: Credentials and profile data live in separate tables joined by
email. Both email columns are unique: that constraint, not the
pre-check in AuthService.register, is what stops two concurrent
registrations for the same address from both succeeding.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Login(Base):
    """Credential record: email + bcrypt hash. Used only for verification."""

    __tablename__ = "login"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    hash: Mapped[str] = mapped_column(String(100), nullable=False)


class User(Base):
    """Profile record. id and email never change after registration."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(
        String(255), ForeignKey("login.email"), unique=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    age: Mapped[Optional[int]] = mapped_column(Integer)
    pet: Mapped[Optional[str]] = mapped_column(String(100))
    # Base64 data URLs from the frontend, so no length cap
    avatar: Mapped[Optional[str]] = mapped_column(Text)
    entries: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    joined: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

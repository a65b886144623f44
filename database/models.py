"""
SQLAlchemy ORM models.
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Uuid
from sqlalchemy.orm import DeclarativeBase, validates

_EMAIL_SHAPE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    user_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(30), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    # Write-time checks; request-level validation lives in auth.schemas.
    @validates("name")
    def _validate_name(self, key, value):
        if not value or not 3 <= len(value) <= 30:
            raise ValueError("Name must be between 3 and 30 characters long")
        return value

    @validates("email")
    def _validate_email(self, key, value):
        if not value or not _EMAIL_SHAPE.fullmatch(value):
            raise ValueError("Email must be a valid email address")
        return value

    def __repr__(self) -> str:
        return f"<User {self.user_id} {self.email}>"

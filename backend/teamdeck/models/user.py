from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import Column, DateTime
from sqlmodel import Enum as SQLEnum, Field, SQLModel


class UserRole(str, Enum):
    owner = "owner"
    admin = "admin"
    member = "member"


class ExternalIdentity(SQLModel, table=True):
    """Profile record mirrored from the identity provider."""

    __tablename__ = "external_identities"

    id: Optional[int] = Field(default=None, primary_key=True)
    subject: str = Field(index=True, unique=True, nullable=False)
    email: Optional[str] = Field(default=None, index=True)
    first_name: Optional[str] = Field(default=None)
    last_name: Optional[str] = Field(default=None)
    image_url: Optional[str] = Field(default=None)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    @property
    def display_name(self) -> str:
        full_name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return full_name or self.email or "Unknown"


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    identity_id: int = Field(foreign_key="external_identities.id", unique=True, nullable=False)
    role: UserRole = Field(
        default=UserRole.member,
        sa_column=Column(SQLEnum(UserRole, name="user_role"), nullable=False, server_default=UserRole.member.value),
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

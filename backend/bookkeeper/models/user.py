"""
Book Keeper Backend - User Model
=================================

What:  ORM model for the `users` table (identity records).
Who:   UserService (registration, profile edits, password changes),
       the access policy (role lookups) and ticket relationships.

Table Design:
    - email is unique; the constraint backs the duplicate-registration check
    - password holds a bcrypt hash, never the plain text
    - role is 'user' or 'admin'; it only changes through an admin edit
    - users are never hard-deleted by the loan workflow itself
"""

from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from bookkeeper.database import Base
from bookkeeper.models.common import IdMixin, TimestampMixin

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)


class User(IdMixin, TimestampMixin, Base):
    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    gender: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    # Date of birth as entered by the client (free-form string)
    dob: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    contact: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    photo: Mapped[str] = mapped_column(String(1024), nullable=False, default="")

    email: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        index=True,
    )
    password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="bcrypt hash",
    )
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ROLE_USER,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"

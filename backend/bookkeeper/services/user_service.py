"""
Book Keeper Backend - User Service (Identity Store)
====================================================

What:  Registration, login, profile edits, password changes and deletion
       of user records.
Who:   /api/user routes and the `get_current_user` dependency.

Invariants:
    - email is unique: checked before insert, and the unique constraint is
      translated into DuplicateKeyError if two registrations race
    - the stored password is always a bcrypt hash
    - `update()` never touches the password; `role` only changes when the
      caller says the actor is an admin
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import desc, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bookkeeper.exceptions import (
    DatabaseError,
    DuplicateKeyError,
    InvalidCredentialError,
    NotFoundError,
    ValidationError,
)
from bookkeeper.models.user import ROLE_USER, User
from bookkeeper.schemas.user import UserRegister
from bookkeeper.services.security import (
    TokenService,
    hash_password,
    token_service,
    verify_password,
)

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 255

# Fields a profile edit may change; anything else in the payload is ignored
EDITABLE_FIELDS = ("name", "age", "gender", "dob", "email", "contact")


def validate_password_length(password: Optional[str]) -> None:
    if not password or not PASSWORD_MIN_LENGTH <= len(password) <= PASSWORD_MAX_LENGTH:
        raise ValidationError(
            message=(
                f"New password must be between {PASSWORD_MIN_LENGTH} "
                f"and {PASSWORD_MAX_LENGTH} characters"
            ),
            field="newPassword",
        )


class UserService:
    """
    Identity store operations.

    Stateless apart from the token service it signs login tokens with; every
    method receives the request's AsyncSession.
    """

    def __init__(self, tokens: TokenService):
        self.tokens = tokens

    # ── Queries ───────────────────────────────────────────────────────────

    async def find_by_id(self, db: AsyncSession, user_id: str) -> Optional[User]:
        try:
            return await db.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching user %s: %s", user_id, e, exc_info=True)
            raise DatabaseError(context={"user_id": user_id})

    async def find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        try:
            result = await db.execute(select(User).where(User.email == email))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error looking up user by email: %s", e, exc_info=True)
            raise DatabaseError()

    async def get(self, db: AsyncSession, user_id: str) -> User:
        user = await self.find_by_id(db, user_id)
        if user is None:
            raise NotFoundError(resource="User", resource_id=user_id)
        return user

    async def list_all(self, db: AsyncSession) -> List[User]:
        """All users, most recently created first."""
        try:
            result = await db.execute(select(User).order_by(desc(User.created_at)))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing users: %s", e, exc_info=True)
            raise DatabaseError(message="Could not retrieve users. Please try again.")

    # ── Commands ──────────────────────────────────────────────────────────

    async def create(self, db: AsyncSession, data: UserRegister) -> User:
        """
        Register a new user.

        Raises:
            DuplicateKeyError: a user with this email already exists (→ 400)
            ValidationError:   password length outside [6, 255] (→ 400)
        """
        validate_password_length(data.password)

        if await self.find_by_email(db, data.email) is not None:
            raise DuplicateKeyError(resource="user", field="email", value=data.email)

        user = User(
            name=data.name,
            age=data.age,
            gender=data.gender,
            dob=data.dob,
            contact=data.contact,
            photo=data.photo or "",
            email=data.email,
            password=hash_password(data.password),
            role=data.role or ROLE_USER,
        )
        db.add(user)
        await self._flush_unique(db, field="email", value=data.email)
        logger.info("User registered: %s (role=%s)", user.id, user.role)
        return user

    async def update(
        self,
        db: AsyncSession,
        user_id: str,
        fields: Dict[str, Any],
        allow_role: bool = False,
    ) -> User:
        """
        Apply a partial profile update.

        Only EDITABLE_FIELDS (plus `role` when `allow_role`) are applied.
        The password can never be set through this path.
        """
        user = await self.get(db, user_id)

        allowed = EDITABLE_FIELDS + (("role",) if allow_role else ())
        changes = {k: v for k, v in fields.items() if k in allowed and v is not None}

        new_email = changes.get("email")
        if new_email and new_email != user.email:
            other = await self.find_by_email(db, new_email)
            if other is not None and other.id != user.id:
                raise DuplicateKeyError(resource="user", field="email", value=new_email)

        for field, value in changes.items():
            setattr(user, field, value)

        await self._flush_unique(db, field="email", value=user.email)
        logger.info("User %s updated fields: %s", user_id, sorted(changes))
        return user

    async def change_password(
        self,
        db: AsyncSession,
        user_id: str,
        old_password: str,
        new_password: str,
    ) -> None:
        """
        Replace the stored password hash.

        Raises:
            ValidationError:        new password length outside [6, 255]
            NotFoundError:          no such user
            InvalidCredentialError: old password does not match
        """
        validate_password_length(new_password)
        user = await self.get(db, user_id)

        if not verify_password(old_password, user.password):
            logger.warning("Password change for %s rejected: old password mismatch", user_id)
            raise InvalidCredentialError("Old password is incorrect")

        user.password = hash_password(new_password)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error changing password for %s: %s", user_id, e, exc_info=True)
            raise DatabaseError(context={"user_id": user_id})
        logger.info("Password changed for user %s", user_id)

    async def delete(self, db: AsyncSession, user_id: str) -> None:
        user = await self.get(db, user_id)
        try:
            await db.delete(user)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting user %s: %s", user_id, e, exc_info=True)
            raise DatabaseError(context={"user_id": user_id})
        logger.info("User %s deleted", user_id)

    async def authenticate(
        self, db: AsyncSession, email: str, password: str
    ) -> Tuple[User, str]:
        """
        Check email + password and issue a bearer token.

        Unknown email and wrong password both raise InvalidCredentialError.
        """
        user = await self.find_by_email(db, email)
        if user is None:
            raise InvalidCredentialError("Invalid username or password")
        if not verify_password(password, user.password):
            raise InvalidCredentialError("Invalid password")

        token = self.tokens.create_access_token(user.id, user.email)
        logger.info("User %s logged in", user.id)
        return user, token

    @staticmethod
    def verify_password(plain: str, hashed: str) -> bool:
        return verify_password(plain, hashed)

    # ── Internals ─────────────────────────────────────────────────────────

    async def _flush_unique(self, db: AsyncSession, field: str, value: str) -> None:
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise DuplicateKeyError(resource="user", field=field, value=value)
        except SQLAlchemyError as e:
            logger.error("Database error saving user: %s", e, exc_info=True)
            raise DatabaseError(message="Could not save the user. Please try again.")


user_service = UserService(tokens=token_service)

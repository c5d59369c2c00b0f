"""
Book Keeper Backend - Route Dependencies
=========================================

What:  Resolves the bearer credential into the acting User and applies an
       AccessPolicy before a route body runs.

Usage:
    @router.get("/get/{id}")
    async def get_user(
        id: str,
        actor: User = Depends(require(self_or_admin, target_param="id")),
        db: AsyncSession = Depends(get_db_session),
    ): ...

    When the target id arrives in the JSON body instead of the path, the
    route calls `enforce(policy, ...)` as its first statement.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from bookkeeper.database import get_db_session
from bookkeeper.exceptions import InvalidCredentialError, UnauthenticatedError
from bookkeeper.models.user import User
from bookkeeper.services import security
from bookkeeper.services.access_policy import AccessPolicy
from bookkeeper.services.user_service import user_service

# auto_error=False: a missing header must surface as our UnauthenticatedError
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """
    Raises:
        UnauthenticatedError:   no `Authorization: Bearer ...` header
        InvalidCredentialError: bad/expired token, or its user no longer exists
    """
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError()

    claims = security.token_service.decode_access_token(credentials.credentials)
    user = await user_service.find_by_id(db, str(claims["sub"]))
    if user is None:
        raise InvalidCredentialError("Invalid token")
    return user


async def enforce(
    policy: AccessPolicy,
    db: AsyncSession,
    actor: User,
    target_id: Optional[str] = None,
    operation: Optional[str] = None,
) -> None:
    await policy.authorize(db, actor, target_id=target_id, operation=operation)


def require(
    policy: AccessPolicy,
    target_param: Optional[str] = None,
    operation: Optional[str] = None,
):
    """Dependency factory: authenticate, then authorize against a path param."""

    async def dependency(
        request: Request,
        actor: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_session),
    ) -> User:
        target_id = request.path_params.get(target_param) if target_param else None
        await enforce(policy, db, actor, target_id=target_id, operation=operation)
        return actor

    return dependency

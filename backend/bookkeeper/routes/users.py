"""
Book Keeper Backend - User Routes
==================================

What:  /api/user: registration, login, and self-or-admin profile management.

Endpoints:
    POST   /api/user/register               public
    POST   /api/user/login                  public
    GET    /api/user/getAll                 admin (SelfOrAdmin with no target)
    GET    /api/user/get/{id}               self or admin
    PUT    /api/user/edit/{id}              self or admin (existing target, see policy)
    PUT    /api/user/update/password/{id}   self or admin (existing target, see policy)
    DELETE /api/user/delete/{id}            self or admin
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bookkeeper.database import get_db_session
from bookkeeper.models.user import User
from bookkeeper.routes.deps import require
from bookkeeper.schemas.common import ErrorResponse, MessageResponse
from bookkeeper.schemas.user import (
    LoginResponse,
    PasswordChange,
    UserEnvelope,
    UserLogin,
    UserRegister,
    UserResponse,
    UserUpdate,
)
from bookkeeper.services.access_policy import self_or_admin
from bookkeeper.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["Users"])

_AUTH_ERRORS = {
    401: {"description": "Missing/invalid credential or access denied", "model": ErrorResponse},
}


@router.post(
    "/register",
    status_code=201,
    response_model=UserEnvelope,
    responses={400: {"description": "Duplicate email or invalid input", "model": ErrorResponse}},
    summary="Register a new user",
)
async def register(
    body: UserRegister,
    db: AsyncSession = Depends(get_db_session),
) -> UserEnvelope:
    user = await user_service.create(db, body)
    return UserEnvelope(
        message="User created Successfully",
        data=UserResponse.model_validate(user),
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"description": "Invalid email or password", "model": ErrorResponse}},
    summary="Exchange email and password for a bearer token",
)
async def login(
    body: UserLogin,
    db: AsyncSession = Depends(get_db_session),
) -> LoginResponse:
    user, token = await user_service.authenticate(db, body.email, body.password)
    return LoginResponse(
        message="Login successful",
        token=token,
        data=UserResponse.model_validate(user),
    )


@router.get(
    "/getAll",
    response_model=List[UserResponse],
    responses=_AUTH_ERRORS,
    summary="List all users (newest first)",
)
async def get_all_users(
    actor: User = Depends(require(self_or_admin)),
    db: AsyncSession = Depends(get_db_session),
) -> List[UserResponse]:
    users = await user_service.list_all(db)
    return [UserResponse.model_validate(u) for u in users]


@router.get(
    "/get/{id}",
    response_model=UserResponse,
    responses={**_AUTH_ERRORS, 404: {"description": "User not found", "model": ErrorResponse}},
    summary="Get one user",
)
async def get_user(
    id: str,
    actor: User = Depends(require(self_or_admin, target_param="id")),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return UserResponse.model_validate(await user_service.get(db, id))


@router.put(
    "/edit/{id}",
    response_model=UserEnvelope,
    responses={**_AUTH_ERRORS, 404: {"description": "User not found", "model": ErrorResponse}},
    summary="Update profile fields",
    description="Applies name, age, gender, dob, email and contact. Role changes require an admin.",
)
async def edit_user(
    id: str,
    body: UserUpdate,
    actor: User = Depends(require(self_or_admin, target_param="id", operation="edit")),
    db: AsyncSession = Depends(get_db_session),
) -> UserEnvelope:
    user = await user_service.update(
        db,
        id,
        body.model_dump(exclude_unset=True),
        allow_role=actor.is_admin,
    )
    return UserEnvelope(
        message="User data has been updated",
        data=UserResponse.model_validate(user),
    )


@router.put(
    "/update/password/{id}",
    response_model=MessageResponse,
    responses={
        **_AUTH_ERRORS,
        400: {"description": "New password length out of range", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Change password",
)
async def update_password(
    id: str,
    body: PasswordChange,
    actor: User = Depends(require(self_or_admin, target_param="id", operation="update")),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await user_service.change_password(db, id, body.old_password, body.new_password)
    return MessageResponse(message="Password has been updated")


@router.delete(
    "/delete/{id}",
    response_model=MessageResponse,
    responses={**_AUTH_ERRORS, 404: {"description": "User not found", "model": ErrorResponse}},
    summary="Delete a user",
)
async def delete_user(
    id: str,
    actor: User = Depends(require(self_or_admin, target_param="id")),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await user_service.delete(db, id)
    logger.info("User %s deleted by %s", id, actor.id)
    return MessageResponse(message="User has been deleted")

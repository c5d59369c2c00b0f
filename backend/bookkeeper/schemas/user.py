"""
Book Keeper Backend - User Schemas
===================================

Request and response contracts for /api/user. The password hash is never
part of a response model.
"""

from datetime import datetime
from typing import Literal, Optional, Union

from pydantic import EmailStr, Field, field_validator

from bookkeeper.schemas.common import CamelModel


def _stringify_contact(v: Union[int, str, None]) -> Optional[str]:
    # Older clients send phone numbers as JSON numbers
    if v is None:
        return None
    return str(v)


class UserRegister(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr = Field(max_length=50)
    password: str = Field(min_length=6, max_length=255)
    age: Optional[int] = Field(default=None, ge=0, le=150)
    gender: Optional[str] = None
    dob: Optional[str] = None
    contact: Optional[str] = None
    photo: str = ""
    role: Literal["user", "admin"] = "user"

    _contact = field_validator("contact", mode="before")(_stringify_contact)


class UserLogin(CamelModel):
    email: str
    password: str


class UserUpdate(CamelModel):
    """
    Partial profile update. Unknown keys are dropped by Pydantic; `password`
    is not a field here, so it can never be changed through this path.
    """
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    age: Optional[int] = Field(default=None, ge=0, le=150)
    gender: Optional[str] = None
    dob: Optional[str] = None
    email: Optional[EmailStr] = Field(default=None, max_length=50)
    contact: Optional[str] = None
    role: Optional[Literal["user", "admin"]] = None

    _contact = field_validator("contact", mode="before")(_stringify_contact)


class PasswordChange(CamelModel):
    # Length rules live in UserService.change_password so that every caller
    # gets the same ValidationError
    old_password: str
    new_password: str


class UserResponse(CamelModel):
    id: str
    name: str
    age: Optional[int] = None
    gender: Optional[str] = None
    dob: Optional[str] = None
    contact: Optional[str] = None
    photo: str = ""
    email: str
    role: str
    created_at: datetime
    updated_at: datetime


class UserEnvelope(CamelModel):
    message: str
    data: UserResponse


class LoginResponse(CamelModel):
    message: str = "Login successful"
    token: str = Field(description="Bearer credential for the Authorization header")
    data: UserResponse

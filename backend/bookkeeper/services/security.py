"""
Book Keeper Backend - Password Hashing & Bearer Tokens
=======================================================

What:  bcrypt password hashing and HS256 JWT access tokens.
Who:   UserService (register, login, password change) and the
       `get_current_user` dependency (token verification).

Token claims:
    sub / userId : user id (userId kept for older clients)
    email        : user email at login time
    iat / exp    : issued-at and expiry (settings.token_expiry_hours)
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt

from bookkeeper.config import settings
from bookkeeper.exceptions import InvalidCredentialError

logger = logging.getLogger(__name__)


def hash_password(plain: str, rounds: Optional[int] = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or settings.password_hash_rounds)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """
    Salted one-way comparison of `plain` against a stored bcrypt hash.

    Returns False (never raises) for a malformed or empty stored hash.
    """
    if not plain or not hashed:
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


class TokenService:
    """
    Issues and verifies bearer tokens.

    Configuration is passed in explicitly; the module-level `token_service`
    is built from `settings`, and tests build their own with a short expiry.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", expiry_hours: int = 24):
        self.secret = secret
        self.algorithm = algorithm
        self.expiry = timedelta(hours=expiry_hours)

    def create_access_token(self, user_id: str, email: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "userId": user_id,
            "email": email,
            "iat": now,
            "exp": now + self.expiry,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode_access_token(self, token: str) -> Dict[str, Any]:
        """
        Verifies signature and expiry and returns the claims.

        Raises:
            InvalidCredentialError: expired, malformed or wrongly-signed token,
                                    or a token with no subject
        """
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidCredentialError("Token has expired")
        except jwt.PyJWTError as e:
            logger.debug("Token rejected: %s", type(e).__name__)
            raise InvalidCredentialError("Invalid token")
        return claims


# Fixed development secret when JWT_SECRET is unset; the lifespan only allows it on SQLite
token_service = TokenService(
    secret=settings.jwt_secret or "bookkeeper-development-secret-do-not-deploy",
    algorithm=settings.jwt_algorithm,
    expiry_hours=settings.token_expiry_hours,
)

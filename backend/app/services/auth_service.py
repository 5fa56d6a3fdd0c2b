"""
LoveAlbum Backend — Admin Auth Service
=======================================

What:  Password hashing, admin login and session tokens.
How:   Passwords are bcrypt hashes (12 rounds). A successful login issues
       an HS256 JWT which the login route stores in the httpOnly
       `adminToken` cookie; every admin request decodes that cookie.
Who:   Admin routes, the require_admin dependency and the seed command.

Token claims:
    admin_id       UUID of the admin row (string)
    admin_account  login name
    iat / exp      issued-at / expiry (iat + JWT_EXPIRE_HOURS)

Tokens are not revoked on logout; clearing the cookie ends the session
in the browser and the token expires on its own.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import (
    AuthenticationError,
    DatabaseError,
    LoveAlbumError,
    ValidationError,
)
from app.models.admin import Admin
from app.models.types import utcnow

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 12


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """True if `password` matches the bcrypt hash. A malformed hash never matches."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError as e:
        logger.error("Password verification failed: %s", e)
        return False


@dataclass
class LoginResult:
    admin: Admin
    token: str


class AuthService:

    def create_token(self, admin: Admin) -> str:
        now = datetime.now(tz=timezone.utc)
        expires = now + timedelta(hours=settings.jwt_expire_hours)
        payload = {
            "admin_id": str(admin.id),
            "admin_account": admin.admin_account,
            "iat": int(now.timestamp()),
            "exp": int(expires.timestamp()),
        }
        token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
        logger.debug("Created admin token for %s, expires: %s", admin.admin_account, expires)
        return token

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Returns the token claims.

        Raises:
            AuthenticationError("Invalid token") when the signature, expiry or
            claims are not valid.
        """
        try:
            claims = jwt.decode(
                token,
                settings.jwt_secret,
                algorithms=[settings.jwt_algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired admin token")
            raise AuthenticationError(message="Invalid token", context={"reason": "expired"})
        except jwt.InvalidTokenError as e:
            logger.info("Rejected invalid admin token: %s", e)
            raise AuthenticationError(message="Invalid token")

        if not claims.get("admin_id") or not claims.get("admin_account"):
            raise AuthenticationError(message="Invalid token")
        return claims

    async def login(self, db: AsyncSession, admin_account: str, password: str) -> LoginResult:
        """
        Raises:
            ValidationError:     account or password missing (→ 400)
            AuthenticationError: unknown account or wrong password (→ 401)
        """
        if not admin_account or not password:
            raise ValidationError(message="Admin account and password are required")

        try:
            result = await db.execute(select(Admin).where(Admin.admin_account == admin_account))
            admin = result.scalar_one_or_none()

            # Same message for unknown account and wrong password
            if admin is None or not verify_password(password, admin.hash_password):
                logger.warning("Failed admin login for account '%s'", admin_account)
                raise AuthenticationError(message="Invalid credentials")

            admin.last_login = utcnow()
            await db.flush()

        except LoveAlbumError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", str(e), exc_info=True)
            raise DatabaseError()

        logger.info("Admin '%s' logged in", admin.admin_account)
        return LoginResult(admin=admin, token=self.create_token(admin))

    async def verify(self, db: AsyncSession, token: Optional[str]) -> Admin:
        """
        Resolves a session cookie to its admin.

        Raises:
            AuthenticationError("No token provided") when the cookie is absent,
            AuthenticationError("Invalid token") when it does not decode or the
            admin no longer exists.
        """
        if not token:
            raise AuthenticationError(message="No token provided")

        claims = self.decode_token(token)
        try:
            admin_id = uuid.UUID(str(claims["admin_id"]))
        except ValueError:
            raise AuthenticationError(message="Invalid token")

        try:
            result = await db.execute(select(Admin).where(Admin.id == admin_id))
            admin = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error verifying admin token: %s", str(e))
            raise DatabaseError()

        if admin is None:
            raise AuthenticationError(message="Invalid token", context={"reason": "admin not found"})
        return admin

    async def ensure_admin(self, db: AsyncSession, admin_account: str, password: str) -> bool:
        """Creates the admin if the account does not exist. Returns True when created."""
        result = await db.execute(select(Admin).where(Admin.admin_account == admin_account))
        if result.scalar_one_or_none() is not None:
            logger.info("Admin '%s' already exists", admin_account)
            return False

        now = utcnow()
        db.add(
            Admin(
                admin_account=admin_account,
                hash_password=hash_password(password),
                created_at=now,
                updated_at=now,
            )
        )
        await db.flush()
        logger.info("Admin '%s' created", admin_account)
        return True


auth_service = AuthService()

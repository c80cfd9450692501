"""Credential store and bearer token issuer."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt

from app.exceptions import (
    ExpiredTokenError,
    InvalidConfigurationError,
    InvalidCredentialsError,
    InvalidTokenError,
)
from app.models.schemas import AuthenticatedUser
from app.models.user import User
from app.types import SupportsUserRepository

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password
_BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class AuthService:
    """Registers users, checks passwords and issues/verifies signed tokens."""

    def __init__(
        self,
        repository: SupportsUserRepository,
        secret: str,
        expires_in: timedelta = timedelta(hours=24),
        algorithm: str = "HS256",
        bcrypt_rounds: int = 12
    ):
        """
        Initialize auth service.

        Args:
            repository: User storage
            secret: Token signing secret
            expires_in: Token lifetime
            algorithm: JWT signing algorithm
            bcrypt_rounds: Password hash work factor

        Raises:
            InvalidConfigurationError: If the signing secret is empty
        """
        if not secret:
            raise InvalidConfigurationError("JWT secret is not configured")

        self.repository = repository
        self._secret = secret
        self.expires_in = expires_in
        self.algorithm = algorithm
        self.bcrypt_rounds = bcrypt_rounds
        # Compared against when the email is unknown so both paths pay for a hash check
        self._dummy_hash = bcrypt.hashpw(b"not-a-real-password", bcrypt.gensalt(rounds=bcrypt_rounds))
        logger.info("AuthService initialized")

    async def register(self, email: str, password: str, name: str) -> tuple[str, User]:
        """
        Register a new user and issue a token.

        Args:
            email: Unique email (exact match)
            password: Plain-text password
            name: Display name

        Returns:
            (token, user)

        Raises:
            DuplicateUserError: If the email is already registered
        """
        password_hash = await asyncio.to_thread(self._hash_password, password)
        user = await self.repository.insert(
            User(email=email, password_hash=password_hash, name=name)
        )
        return self.issue_token(user), user

    async def login(self, email: str, password: str) -> tuple[str, User]:
        """
        Check credentials and issue a fresh token.

        Raises:
            InvalidCredentialsError: If the email is unknown or the password is wrong
        """
        user = await self.repository.get_by_email(email)
        stored_hash = user.password_hash.encode("utf-8") if user else self._dummy_hash

        matches = await asyncio.to_thread(
            bcrypt.checkpw, _password_bytes(password), stored_hash
        )
        if user is None or not matches:
            logger.warning(f"Failed login attempt for {email}")
            raise InvalidCredentialsError("Invalid email or password")

        logger.info(f"User {user.id} logged in")
        return self.issue_token(user), user

    def issue_token(self, user: User, now: Optional[datetime] = None) -> str:
        """Sign a token embedding user id, email, issue time and expiry."""
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": user.id,
            "email": user.email,
            "iat": issued_at,
            "exp": issued_at + self.expires_in,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> AuthenticatedUser:
        """
        Verify a bearer token statelessly.

        A token is valid iff its signature verifies and the current time is
        before its expiry.

        Raises:
            ExpiredTokenError: Signature is valid but the token has expired
            InvalidTokenError: Token is malformed or its signature is invalid
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat", "sub"]}
            )
        except jwt.ExpiredSignatureError as e:
            raise ExpiredTokenError("Token has expired", original_error=e)
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError("Invalid token", original_error=e)

        email = payload.get("email")
        if not isinstance(email, str):
            raise InvalidTokenError("Invalid token")

        return AuthenticatedUser(user_id=payload["sub"], email=email)

    def _hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.bcrypt_rounds)
        return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")

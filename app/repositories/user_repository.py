"""Repository for user records.

The in-memory implementation backs the single-process deployment. Route
and service code depend only on ``SupportsUserRepository`` so a durable
store can be substituted without touching them.
"""

import asyncio
import logging
from typing import Dict, Optional

from app.exceptions import DuplicateUserError
from app.models.user import User

logger = logging.getLogger(__name__)


class InMemoryUserRepository:
    """Stores users in a dict keyed by email, guarded by an asyncio lock."""

    def __init__(self):
        self._users: Dict[str, User] = {}
        self._lock = asyncio.Lock()

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Retrieve user by exact (case-sensitive) email.

        Args:
            email: User email

        Returns:
            User or None if not found
        """
        async with self._lock:
            user = self._users.get(email)

        if user is None:
            logger.debug(f"No user registered for {email}")
        return user

    async def insert(self, user: User) -> User:
        """
        Insert a user if the email is not already registered.

        The existence check and the insert happen under one lock, so two
        concurrent registrations with the same email cannot both succeed.

        Args:
            user: User to store

        Returns:
            The stored user

        Raises:
            DuplicateUserError: If the email is already registered
        """
        async with self._lock:
            if user.email in self._users:
                logger.warning(f"Rejected duplicate registration for {user.email}")
                raise DuplicateUserError("User with this email already exists")
            self._users[user.email] = user

        logger.info(f"Created user {user.id} ({user.email})")
        return user

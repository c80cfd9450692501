"""User record owned by the credential store."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone


def _new_user_id() -> str:
    return f"user_{uuid.uuid4().hex}"


@dataclass(frozen=True)
class User:
    """Registered user. Immutable once created."""

    email: str
    password_hash: str
    name: str
    id: str = field(default_factory=_new_user_id)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_public_dict(self) -> dict:
        """Public fields only; the password hash never leaves the store."""
        return {"id": self.id, "email": self.email, "name": self.name}

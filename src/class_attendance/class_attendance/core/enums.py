from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Principal roles used for authorization."""

    OWNER = "owner"
    STUDENT = "student"


class AttemptStatus(str, Enum):
    """Approval status stored on every attendance attempt."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not AttemptStatus.PENDING


class ChangeType(str, Enum):
    """Row-level change notifications delivered by the change feed."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

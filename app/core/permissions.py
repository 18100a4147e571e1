"""
Ownership Permissions
=====================

Single authorization rule for every owned resource (mood entries,
journal entries): the owner may do anything with it, and so may admins.
Everyone else is denied.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol
import uuid

from app.core.errors import ForbiddenError
from app.models.user import User, UserRole


class Action(str, Enum):
    """Operations a caller can attempt on a resource."""
    READ = "read"
    WRITE = "write"
    DELETE = "delete"


class OwnedResource(Protocol):
    """Anything with an owning ``user_id``."""

    user_id: uuid.UUID


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of an ownership check."""

    allowed: bool
    reason: Optional[str] = None


def check_access(user: User, resource: OwnedResource, action: Action) -> AccessDecision:
    """Decide whether ``user`` may perform ``action`` on ``resource``."""
    if resource.user_id == user.user_id:
        return AccessDecision(allowed=True)

    if user.role == UserRole.ADMIN:
        return AccessDecision(allowed=True, reason="admin override")

    return AccessDecision(
        allowed=False,
        reason=f"User {user.user_id} is not authorized to {action.value} this entry",
    )


def authorize(user: User, resource: OwnedResource, action: Action) -> None:
    """
    Enforce :func:`check_access`.

    Raises:
        ForbiddenError: when the decision is a deny
    """
    decision = check_access(user, resource, action)
    if not decision.allowed:
        raise ForbiddenError(message=decision.reason or "Access denied")

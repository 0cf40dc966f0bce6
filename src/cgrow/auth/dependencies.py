"""Caller identity for leaderboard endpoints.

Authentication happens upstream; the gateway forwards the verified user id
and role as ``X-User-Id`` and ``X-User-Role``.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException

from cgrow.leaderboard.constants import PRIVILEGED_ROLES


@dataclass(frozen=True)
class Actor:
    user_id: int
    role: str

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES

    def can_view(self, user_id: int) -> bool:
        """Users may view their own data; admins and managers may view anyone's."""
        return self.user_id == user_id or self.is_privileged


async def get_current_actor(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Actor:
    """Build the Actor from gateway headers. Raises 401 if they are missing or malformed."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        user_id = int(x_user_id)
    except ValueError as e:
        raise HTTPException(status_code=401, detail="Invalid user id header") from e
    if user_id <= 0:
        raise HTTPException(status_code=401, detail="Invalid user id header")
    return Actor(user_id=user_id, role=(x_user_role or "employee").lower())


async def require_privileged(actor: Actor = Depends(get_current_actor)) -> Actor:  # noqa: B008
    """Only admins and managers pass."""
    if not actor.is_privileged:
        raise HTTPException(status_code=403, detail="Admin or manager role required")
    return actor

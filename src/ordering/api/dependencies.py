"""Caller identity for ordering routes.

Authentication happens upstream. The gateway forwards the authenticated
user's id and role as ``X-User-ID`` and ``X-User-Role`` headers.
"""

from dataclasses import dataclass

from fastapi import Depends, Header

from ordering.errors import AuthenticationError, AuthorizationError
from ordering.utils.logging import add_context

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class Requester:
    user_id: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


async def current_requester(
    x_user_id: str | None = Header(default=None),
    x_user_role: str = Header(default="user"),
) -> Requester:
    if not x_user_id:
        raise AuthenticationError()
    requester = Requester(user_id=x_user_id, role=x_user_role.lower())
    add_context(user_id=requester.user_id, role=requester.role)
    return requester


async def admin_requester(requester: Requester = Depends(current_requester)) -> Requester:
    if not requester.is_admin:
        raise AuthorizationError("Admin access required")
    return requester

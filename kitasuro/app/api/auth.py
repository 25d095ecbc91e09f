"""Minimal auth dependency.

Stub implementation that extracts org_id/user_id/role from a bearer token or
uses development defaults. Session validation lives with the identity
provider in front of this API.
"""

import uuid
from typing import Annotated

from fastapi import Header, HTTPException, status

from kitasuro.app.db.context import RequestContext
from kitasuro.app.models.common import MemberRole

DEV_ORG_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
DEV_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_context(
    authorization: Annotated[str | None, Header()] = None,
) -> RequestContext:
    """Extract request context from authorization header.

    Accepts "Bearer <org_id>:<user_id>[:<role>]". With no header the
    development organization's admin is used.

    Raises:
        HTTPException: If authorization is invalid
    """
    if not authorization:
        return RequestContext(org_id=DEV_ORG_ID, user_id=DEV_USER_ID, role=MemberRole.admin)

    if not authorization.startswith("Bearer "):
        raise _unauthorized("Invalid authorization header format")

    token = authorization[7:]  # Strip "Bearer "

    parts = token.split(":")
    if len(parts) not in (2, 3):
        raise _unauthorized("Invalid token format (expected org_id:user_id[:role])")

    try:
        return RequestContext(
            org_id=uuid.UUID(parts[0]),
            user_id=uuid.UUID(parts[1]),
            role=MemberRole(parts[2]) if len(parts) == 3 else MemberRole.member,
        )
    except ValueError as e:
        raise _unauthorized("Invalid token format (expected org_id:user_id[:role])") from e

"""Request context for tenancy enforcement."""

from dataclasses import dataclass
from uuid import UUID

from kitasuro.app.models.common import MemberRole


@dataclass(frozen=True)
class RequestContext:
    """Request context containing org and user identity.

    Used to enforce tenancy boundaries in all database operations.
    """

    org_id: UUID
    user_id: UUID
    role: MemberRole = MemberRole.member

    @property
    def is_admin(self) -> bool:
        """Whether the caller administers the organization."""
        return self.role == MemberRole.admin

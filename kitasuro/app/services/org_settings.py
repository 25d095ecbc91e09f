"""Organization settings - admin-only profile and notification settings."""

from kitasuro.app.db.context import RequestContext
from kitasuro.app.db.repositories import OrganizationRepository
from kitasuro.app.errors import FormValidationError, NotFoundError, UnauthorizedError
from kitasuro.app.models.organization import Organization, OrganizationSettingsUpdate
from kitasuro.app.utils.logging import event_logger


class OrganizationSettingsService:
    """Read and update the caller's organization."""

    def __init__(self, organizations: OrganizationRepository) -> None:
        self._organizations = organizations

    async def get_settings(self, ctx: RequestContext) -> Organization:
        """Raises UnauthorizedError for non-admins."""
        self._require_admin(ctx)
        return await self._load(ctx)

    async def update_settings(
        self, ctx: RequestContext, update: OrganizationSettingsUpdate
    ) -> Organization:
        """Apply the fields present in update; omitted fields are kept.

        Raises:
            UnauthorizedError: If the caller is not an admin
            NotFoundError: If the organization does not exist
        """
        self._require_admin(ctx)
        organization = await self._load(ctx)

        changes = update.model_dump(exclude_unset=True)
        if "name" in changes:
            name = (changes["name"] or "").strip()
            if not name:
                raise FormValidationError({"name": ["Organization name is required"]})
            changes["name"] = name
        if "notification_email" in changes and changes["notification_email"] is not None:
            changes["notification_email"] = str(changes["notification_email"])

        updated = organization.model_copy(update=changes)
        await self._organizations.save_organization(updated)

        event_logger.log_event(
            "organization_settings_updated", "success", ctx=ctx, fields=sorted(changes)
        )
        return updated

    def _require_admin(self, ctx: RequestContext) -> None:
        if not ctx.is_admin:
            event_logger.log_event(
                "organization_settings", "rejected", ctx=ctx, error_reason="not_admin"
            )
            raise UnauthorizedError("Admin access required")

    async def _load(self, ctx: RequestContext) -> Organization:
        organization = await self._organizations.get_organization(ctx.org_id)
        if organization is None:
            raise NotFoundError(f"Organization {ctx.org_id} not found")
        return organization

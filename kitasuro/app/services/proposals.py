"""Proposal service - save, share, confirm and assign proposals.

Status moves one way: draft -> shared -> confirmed. Every write bumps the
version and is checked against the version the caller last saw.
"""

import logging
import uuid
from datetime import datetime, timezone
from uuid import UUID

from kitasuro.app.db.context import RequestContext
from kitasuro.app.db.repositories import OrganizationRepository, ProposalRepository
from kitasuro.app.errors import (
    FeatureNotAvailableError,
    FormValidationError,
    InvalidTransitionError,
    NotFoundError,
    UnauthorizedError,
    VersionConflictError,
)
from kitasuro.app.models.common import DashboardFilter, ProposalStatus
from kitasuro.app.models.organization import Organization
from kitasuro.app.models.plans import proposal_quota, resolve_theme
from kitasuro.app.models.proposal import (
    Proposal,
    ProposalInput,
    ProposalSummary,
    renumber_days,
)
from kitasuro.app.services.notifications import (
    ConfirmationNotification,
    Notifier,
    ShareNotification,
    notify_safely,
    proposal_url,
)
from kitasuro.app.utils.logging import event_logger
from kitasuro.app.utils.metrics import metrics

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[ProposalStatus, set[ProposalStatus]] = {
    ProposalStatus.draft: {ProposalStatus.shared},
    ProposalStatus.shared: {ProposalStatus.confirmed},
    ProposalStatus.confirmed: set(),
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ProposalService:
    """Staff and client operations on proposal aggregates."""

    def __init__(
        self,
        proposals: ProposalRepository,
        organizations: OrganizationRepository,
        notifier: Notifier,
        *,
        app_url: str,
    ) -> None:
        self._proposals = proposals
        self._organizations = organizations
        self._notifier = notifier
        self._app_url = app_url

    async def get_proposal(self, proposal_id: str, ctx: RequestContext) -> Proposal:
        """Load a proposal of the caller's organization.

        Raises:
            NotFoundError: If missing or owned by another organization
        """
        proposal = await self._proposals.get_proposal(proposal_id, ctx)
        if proposal is None:
            raise NotFoundError(f"Proposal {proposal_id} not found")
        return proposal

    async def get_client_view(self, proposal_id: str) -> tuple[Proposal, Organization]:
        """Load a proposal and its agency for the public client page.

        Raises:
            NotFoundError: If the proposal does not exist
        """
        proposal = await self._proposals.get_public_proposal(proposal_id)
        if proposal is None:
            raise NotFoundError(f"Proposal {proposal_id} not found")
        organization = await self._require_organization(proposal.org_id)
        return proposal, organization

    async def save_proposal(
        self, proposal_id: str | None, data: ProposalInput, ctx: RequestContext
    ) -> Proposal:
        """Create a proposal when proposal_id is None, otherwise replace it.

        Days are renumbered 1..N and the theme is checked against the plan.
        The creator is assigned to a new proposal.

        Raises:
            NotFoundError: If proposal_id names no proposal
            UnauthorizedError: If the proposal belongs to another organization
            FeatureNotAvailableError: If the plan's proposal quota is used up
            InvalidTransitionError: If the proposal is confirmed
            FormValidationError: If an update omits expected_version
            VersionConflictError: If the proposal changed since it was loaded
        """
        organization = await self._require_organization(ctx.org_id)
        theme = resolve_theme(data.theme, organization.plan_tier)
        if data.theme and theme != data.theme:
            logger.info(
                "[save_proposal] theme_fallback requested=%s tier=%s",
                data.theme,
                organization.plan_tier.value,
            )

        existing = None
        if proposal_id:
            existing = await self._proposals.get_public_proposal(proposal_id)
            if existing is None:
                raise NotFoundError(f"Proposal {proposal_id} not found")
            if existing.org_id != ctx.org_id:
                raise UnauthorizedError("Proposal belongs to another organization")

        fields = {
            "name": data.name,
            "tour_id": data.tour_id,
            "client_id": data.client_id,
            "tour_title": data.tour_title,
            "theme": theme,
            "start_date": data.start_date,
            "start_city": data.start_city,
            "end_city": data.end_city,
            "days": renumber_days(data.days),
            "pricing_rows": data.pricing_rows,
            "extras": data.extras,
            "traveler_groups": data.traveler_groups,
            "inclusions": data.inclusions,
            "exclusions": data.exclusions,
        }

        if existing is None:
            return await self._create(fields, organization, ctx)

        if existing.status == ProposalStatus.confirmed:
            raise InvalidTransitionError("Confirmed proposals are read-only")

        if data.expected_version is None:
            raise FormValidationError(
                {"expected_version": ["Required when updating an existing proposal"]}
            )

        updated = existing.model_copy(
            update={**fields, "version": existing.version + 1, "updated_at": _now()}
        )
        await self._write(updated, data.expected_version, ctx)

        metrics.inc_proposal_save("updated")
        event_logger.log_event(
            "proposal_saved",
            "success",
            proposal_id=updated.proposal_id,
            ctx=ctx,
            version=updated.version,
        )
        return updated

    async def _create(
        self,
        fields: dict,
        organization: Organization,
        ctx: RequestContext,
    ) -> Proposal:
        quota = proposal_quota(organization.plan_tier)
        if quota != -1 and await self._proposals.count_proposals(ctx.org_id) >= quota:
            event_logger.log_event(
                "proposal_saved", "rejected", ctx=ctx, error_reason="quota_exceeded"
            )
            raise FeatureNotAvailableError(
                f"Your plan allows {quota} proposals. Upgrade to create more."
            )

        now = _now()
        proposal = Proposal(
            proposal_id=str(uuid.uuid4()),
            org_id=ctx.org_id,
            status=ProposalStatus.draft,
            version=1,
            created_at=now,
            updated_at=now,
            **fields,
        )
        await self._proposals.save_proposal(proposal)
        await self._proposals.assign(proposal.proposal_id, ctx.user_id, ctx.user_id)

        metrics.inc_proposal_save("created")
        event_logger.log_event(
            "proposal_saved", "success", proposal_id=proposal.proposal_id, ctx=ctx, version=1
        )
        return proposal

    async def share_proposal(
        self, proposal_id: str, ctx: RequestContext, expected_version: int | None = None
    ) -> Proposal:
        """Move a draft to shared. Sharing a shared proposal is a no-op.

        Raises:
            NotFoundError: If the proposal is not in the caller's organization
            InvalidTransitionError: If the proposal is confirmed
            VersionConflictError: If expected_version is stale
        """
        proposal = await self.get_proposal(proposal_id, ctx)
        if proposal.status == ProposalStatus.shared:
            return proposal

        shared = await self._transition(
            proposal, ProposalStatus.shared, expected_version or proposal.version, ctx=ctx
        )

        organization = await self._require_organization(ctx.org_id)
        await notify_safely(
            self._notifier.proposal_shared(
                ShareNotification(
                    proposal_id=shared.proposal_id,
                    proposal_title=shared.display_title,
                    agency_name=organization.name,
                    proposal_url=self.share_url(shared.proposal_id),
                )
            ),
            event="proposal_shared",
        )
        return shared

    async def confirm_proposal(self, proposal_id: str, client_name: str) -> Proposal:
        """Client accepts a shared proposal.

        Records who confirmed and when, then notifies the agency.

        Raises:
            NotFoundError: If the proposal does not exist
            InvalidTransitionError: If the proposal is not shared
        """
        proposal = await self._proposals.get_public_proposal(proposal_id)
        if proposal is None:
            raise NotFoundError(f"Proposal {proposal_id} not found")

        name = client_name.strip() or "Guest"
        confirmed = await self._transition(
            proposal,
            ProposalStatus.confirmed,
            proposal.version,
            confirmed_at=_now(),
            confirmed_by=name,
        )

        organization = await self._require_organization(confirmed.org_id)
        if not organization.notification_email:
            logger.info(
                "[confirm_proposal] no_notification_email org_id=%s proposal_id=%s",
                organization.org_id,
                proposal_id,
            )
            return confirmed

        await notify_safely(
            self._notifier.proposal_confirmed(
                ConfirmationNotification(
                    proposal_id=confirmed.proposal_id,
                    proposal_title=confirmed.display_title,
                    agency_name=organization.name,
                    recipient_email=organization.notification_email,
                    client_name=name,
                    confirmed_at=confirmed.confirmed_at or _now(),
                    proposal_url=self.share_url(confirmed.proposal_id),
                    total_price=confirmed.total_price,
                    duration_days=len(confirmed.days),
                )
            ),
            event="proposal_confirmed",
        )
        return confirmed

    async def _transition(
        self,
        proposal: Proposal,
        target: ProposalStatus,
        expected_version: int,
        *,
        ctx: RequestContext | None = None,
        **changes: object,
    ) -> Proposal:
        if target not in ALLOWED_TRANSITIONS[proposal.status]:
            event_logger.log_event(
                "proposal_transition",
                "rejected",
                proposal_id=proposal.proposal_id,
                ctx=ctx,
                error_reason=f"{proposal.status.value}->{target.value}",
            )
            raise InvalidTransitionError(
                f"Cannot move proposal from {proposal.status.value} to {target.value}"
            )

        updated = proposal.model_copy(
            update={
                **changes,
                "status": target,
                "version": proposal.version + 1,
                "updated_at": _now(),
            }
        )
        await self._write(updated, expected_version, ctx)

        metrics.inc_transition(proposal.status.value, target.value)
        event_logger.log_event(
            "proposal_transition",
            "success",
            proposal_id=proposal.proposal_id,
            ctx=ctx,
            from_status=proposal.status.value,
            to_status=target.value,
        )
        return updated

    async def _write(
        self, proposal: Proposal, expected_version: int, ctx: RequestContext | None
    ) -> None:
        try:
            await self._proposals.save_proposal(proposal, expected_version=expected_version)
        except VersionConflictError as e:
            metrics.inc_proposal_save("conflict")
            event_logger.log_event(
                "proposal_saved",
                "conflict",
                proposal_id=proposal.proposal_id,
                ctx=ctx,
                error_reason=str(e),
            )
            raise

    async def list_for_dashboard(
        self, ctx: RequestContext, view: DashboardFilter = DashboardFilter.all
    ) -> list[ProposalSummary]:
        """Proposals of the organization, most recently updated first."""
        assigned_to = ctx.user_id if view == DashboardFilter.mine else None
        return await self._proposals.list_proposals(ctx, assigned_to=assigned_to)

    async def assign(self, proposal_id: str, user_id: UUID, ctx: RequestContext) -> bool:
        """Assign a member of the organization to a proposal (admin only).

        Returns:
            False if the user was already assigned

        Raises:
            UnauthorizedError: If the caller is not an admin
            NotFoundError: If the proposal is not in the caller's organization
            ValueError: If the user is not a member of the organization
        """
        self._require_admin(ctx)
        await self.get_proposal(proposal_id, ctx)

        member = await self._organizations.get_member(ctx.org_id, user_id)
        if member is None:
            raise ValueError("User is not a member of this organization")

        return await self._proposals.assign(proposal_id, user_id, ctx.user_id)

    async def unassign(self, proposal_id: str, user_id: UUID, ctx: RequestContext) -> bool:
        """Remove an assignment (admin only).

        Raises:
            UnauthorizedError: If the caller is not an admin
            NotFoundError: If the proposal is not in the caller's organization
        """
        self._require_admin(ctx)
        await self.get_proposal(proposal_id, ctx)
        return await self._proposals.unassign(proposal_id, user_id)

    def share_url(self, proposal_id: str) -> str:
        return proposal_url(self._app_url, proposal_id)

    def _require_admin(self, ctx: RequestContext) -> None:
        if not ctx.is_admin:
            raise UnauthorizedError("Admin access required")

    async def _require_organization(self, org_id: UUID) -> Organization:
        organization = await self._organizations.get_organization(org_id)
        if organization is None:
            raise NotFoundError(f"Organization {org_id} not found")
        return organization

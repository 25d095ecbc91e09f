"""Prometheus metrics for comments and proposals."""

from prometheus_client import Counter

comments_created_total = Counter(
    "comments_created_total",
    "Total comments created",
    ["region"],
)

replies_created_total = Counter(
    "replies_created_total",
    "Total comment replies created",
)

comments_resolved_total = Counter(
    "comments_resolved_total",
    "Total comments resolved (repeat resolves excluded)",
)

proposals_saved_total = Counter(
    "proposals_saved_total",
    "Total proposal saves",
    ["outcome"],
)

proposal_transitions_total = Counter(
    "proposal_transitions_total",
    "Total proposal status transitions",
    ["from_status", "to_status"],
)


class PrometheusDomainMetrics:
    """Prometheus-based domain metrics implementation."""

    def inc_comment(self, region: bool) -> None:
        """Increment comment counter, split by point/region anchors."""
        comments_created_total.labels(region=str(region).lower()).inc()

    def inc_reply(self) -> None:
        """Increment reply counter."""
        replies_created_total.inc()

    def inc_resolved(self) -> None:
        """Increment resolved counter."""
        comments_resolved_total.inc()

    def inc_proposal_save(self, outcome: str) -> None:
        """Increment proposal save counter (created, updated, conflict)."""
        proposals_saved_total.labels(outcome=outcome).inc()

    def inc_transition(self, from_status: str, to_status: str) -> None:
        """Increment status transition counter."""
        proposal_transitions_total.labels(from_status=from_status, to_status=to_status).inc()


metrics = PrometheusDomainMetrics()

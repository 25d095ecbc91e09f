"""Structured logging for domain events."""

import logging
from typing import Any

from kitasuro.app.db.context import RequestContext

logger = logging.getLogger(__name__)


class StructuredEventLogger:
    """Structured logger for proposal and comment events."""

    def log_event(
        self,
        event: str,
        outcome: str,
        *,
        proposal_id: str | None = None,
        ctx: RequestContext | None = None,
        error_reason: str | None = None,
        **fields: Any,
    ) -> None:
        """Log a domain event with structured data.

        Successful outcomes log at info, anything else at warning.
        """
        log_data: dict[str, Any] = {
            "event": event,
            "outcome": outcome,
            "proposal_id": proposal_id,
        }

        if ctx is not None:
            log_data["org_id"] = str(ctx.org_id)
            log_data["user_id"] = str(ctx.user_id)

        if error_reason:
            log_data["error_reason"] = error_reason

        log_data.update(fields)

        log_msg = f"Domain event: {event} - {outcome}"

        if outcome == "success":
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})


event_logger = StructuredEventLogger()

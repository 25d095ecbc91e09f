"""Prometheus metrics endpoint."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint.

    Exposes the registered domain counters:
    - comments_created_total{region}
    - replies_created_total, comments_resolved_total
    - proposals_saved_total{outcome}
    - proposal_transitions_total{from_status, to_status}
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

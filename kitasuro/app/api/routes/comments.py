"""Comment endpoints - public threads pinned to a shared proposal."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from kitasuro.app.api.deps import (
    enforce_comment_rate_limit,
    get_comment_rate_limiter,
    get_comment_service,
)
from kitasuro.app.api.errors import to_http_exception
from kitasuro.app.db.repositories import RateLimiter
from kitasuro.app.errors import DomainError
from kitasuro.app.models.comments import (
    Comment,
    CreateCommentRequest,
    CreateReplyRequest,
    Reply,
)
from kitasuro.app.models.common import CommentStatus
from kitasuro.app.services.comments import CommentService

router = APIRouter(tags=["comments"])

Service = Annotated[CommentService, Depends(get_comment_service)]
Limiter = Annotated[RateLimiter, Depends(get_comment_rate_limiter)]


@router.get("/proposals/{proposal_id}/comments", response_model=list[Comment])
async def list_comments(
    proposal_id: str,
    service: Service,
    comment_status: Annotated[CommentStatus | None, Query(alias="status")] = None,
) -> list[Comment]:
    """List a proposal's comments with their replies, oldest first."""
    try:
        return await service.list_comments(proposal_id, comment_status)
    except DomainError as e:
        raise to_http_exception(e) from e


@router.post(
    "/proposals/{proposal_id}/comments",
    response_model=Comment,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    proposal_id: str,
    request: CreateCommentRequest,
    service: Service,
    limiter: Limiter,
) -> Comment:
    """Pin a new comment to the proposal page.

    Returns the stored comment including its id.
    """
    enforce_comment_rate_limit(limiter, proposal_id, request.author_name)
    try:
        return await service.create_comment(
            proposal_id, request.author_name, request.content, request.anchor
        )
    except (DomainError, ValueError) as e:
        raise to_http_exception(e) from e


@router.post(
    "/comments/{comment_id}/replies",
    response_model=Reply,
    status_code=status.HTTP_201_CREATED,
)
async def add_reply(
    comment_id: UUID,
    request: CreateReplyRequest,
    service: Service,
    limiter: Limiter,
) -> Reply:
    """Reply to an open comment thread."""
    enforce_comment_rate_limit(limiter, str(comment_id), request.author_name)
    try:
        return await service.add_reply(comment_id, request.author_name, request.content)
    except (DomainError, ValueError) as e:
        raise to_http_exception(e) from e


@router.post("/comments/{comment_id}/resolve", response_model=Comment)
async def resolve_comment(comment_id: UUID, service: Service) -> Comment:
    """Mark a thread resolved. Resolving twice is a no-op."""
    try:
        return await service.resolve_comment(comment_id)
    except DomainError as e:
        raise to_http_exception(e) from e

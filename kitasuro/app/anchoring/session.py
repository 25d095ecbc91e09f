"""Comments session - per-view state for the commenting overlay.

One session is built for each rendered proposal and handed explicitly to
the overlay and pins. Operations never raise: failures come back as an
unsuccessful OperationResult, leave local state untouched and queue a
notice for the viewer.
"""

import logging
from dataclasses import dataclass
from typing import Generic, TypeVar
from uuid import UUID

from kitasuro.app.anchoring.overlay import PinPlacement, resolve_pin
from kitasuro.app.anchoring.position import Layout, Point, capture_anchor
from kitasuro.app.config import get_settings
from kitasuro.app.models.comments import Anchor, Comment, Reply
from kitasuro.app.services.comments import CommentService

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class OperationResult(Generic[T]):
    """Outcome of a session operation."""

    success: bool
    value: T | None = None
    error: str | None = None


class CommentsSession:
    """Comment list, selection and thread state for one proposal view."""

    def __init__(
        self,
        proposal_id: str,
        service: CommentService,
        *,
        drag_threshold: float | None = None,
    ) -> None:
        self.proposal_id = proposal_id
        self.comments: list[Comment] = []
        self.active_comment_id: UUID | None = None
        self.is_commenting = False
        self.draft_anchor: Anchor | None = None
        self._service = service
        self._drag_threshold = (
            drag_threshold if drag_threshold is not None else get_settings().drag_threshold_pct
        )
        self._selection_start: Point | None = None
        self._notices: list[str] = []

    def visible_comments(self) -> list[Comment]:
        """Open comments; resolved ones are kept for history but not pinned."""
        return [comment for comment in self.comments if comment.is_open]

    def placements(self, layout: Layout) -> dict[UUID, PinPlacement]:
        """Current pin placement of every visible comment."""
        return {
            comment.comment_id: resolve_pin(comment.anchor, layout, layout.container)
            for comment in self.visible_comments()
        }

    def set_commenting(self, enabled: bool) -> None:
        """Enter or leave commenting mode, dropping any pending selection."""
        self.is_commenting = enabled
        self._selection_start = None
        if not enabled:
            self.draft_anchor = None

    def open_thread(self, comment_id: UUID | None) -> None:
        self.active_comment_id = comment_id

    def take_notices(self) -> list[str]:
        """Return and clear queued notices."""
        notices, self._notices = self._notices, []
        return notices

    def begin_selection(self, point: Point) -> bool:
        """Pointer down in viewport pixels.

        A click while a thread is open only closes the thread.

        Returns:
            True if a selection was started
        """
        if not self.is_commenting:
            return False
        if self.active_comment_id is not None:
            self.active_comment_id = None
            return False

        self._selection_start = point
        return True

    def finish_selection(self, layout: Layout, point: Point) -> Anchor | None:
        """Pointer up in viewport pixels; stores and returns the draft anchor."""
        if self._selection_start is None:
            return None

        start, self._selection_start = self._selection_start, None
        try:
            self.draft_anchor = capture_anchor(
                layout, layout.container, start, point, self._drag_threshold
            )
        except ValueError as e:
            self._fail("Could not place the comment here", e)
            return None
        return self.draft_anchor

    def cancel_draft(self) -> None:
        self.draft_anchor = None
        self._selection_start = None

    async def load(self) -> OperationResult[list[Comment]]:
        """Fetch every comment of the proposal."""
        try:
            comments = await self._service.list_comments(self.proposal_id)
        except Exception as e:
            return self._fail("Failed to load comments", e)

        self.comments = comments
        return OperationResult(success=True, value=comments)

    async def submit(
        self, author_name: str, content: str, anchor: Anchor | None = None
    ) -> OperationResult[Comment]:
        """Create a comment at anchor (defaults to the draft anchor)."""
        anchor = anchor or self.draft_anchor
        if anchor is None:
            return self._fail("Select a spot on the proposal first")

        try:
            comment = await self._service.create_comment(
                self.proposal_id, author_name, content, anchor
            )
        except Exception as e:
            return self._fail("Failed to add comment", e)

        self.comments.append(comment)
        self.draft_anchor = None
        self.is_commenting = False
        self.active_comment_id = comment.comment_id
        return OperationResult(success=True, value=comment)

    async def reply(
        self, comment_id: UUID, author_name: str, content: str
    ) -> OperationResult[Reply]:
        """Reply in a thread and append the stored reply locally."""
        try:
            reply = await self._service.add_reply(comment_id, author_name, content)
        except Exception as e:
            return self._fail("Failed to add reply", e)

        for comment in self.comments:
            if comment.comment_id == comment_id:
                comment.replies.append(reply)
                break
        return OperationResult(success=True, value=reply)

    async def resolve(self, comment_id: UUID) -> OperationResult[Comment]:
        """Resolve a thread and replace the local copy with the stored one."""
        try:
            resolved = await self._service.resolve_comment(comment_id)
        except Exception as e:
            return self._fail("Failed to resolve comment", e)

        self.comments = [
            resolved if comment.comment_id == comment_id else comment
            for comment in self.comments
        ]
        if self.active_comment_id == comment_id:
            self.active_comment_id = None
        return OperationResult(success=True, value=resolved)

    def _fail(self, notice: str, error: Exception | None = None) -> OperationResult:
        if error is not None:
            logger.warning(
                "[comments_session] %s proposal_id=%s error=%s",
                notice,
                self.proposal_id,
                error,
            )
        self._notices.append(notice)
        return OperationResult(success=False, error=str(error) if error else notice)

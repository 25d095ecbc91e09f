"""Comment models - anchored client feedback on a proposal."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from kitasuro.app.models.common import CommentStatus


class StickyAnchor(BaseModel):
    """Coordinates relative to a sticky-positioned element.

    anchor_id is the stable logical key of the element the pin tracks
    while the element sticks during scroll.
    """

    anchor_id: str = Field(..., min_length=1, max_length=500)
    pos_x: float = Field(..., ge=0, le=100)
    pos_y: float = Field(..., ge=0, le=100)


class Anchor(BaseModel):
    """Where a comment attaches to the proposal document.

    pos_x/pos_y are percentages of the document container. A region anchor
    also carries width/height percentages; a point anchor carries neither.
    """

    pos_x: float = Field(..., ge=0, le=100)
    pos_y: float = Field(..., ge=0, le=100)
    width: float | None = Field(None, ge=0, le=100)
    height: float | None = Field(None, ge=0, le=100)
    sticky: StickyAnchor | None = None

    @model_validator(mode="after")
    def validate_region_dimensions(self) -> "Anchor":
        """Ensure width and height are given together."""
        if (self.width is None) != (self.height is None):
            raise ValueError("width and height must be provided together")
        return self

    @property
    def is_region(self) -> bool:
        """Whether this anchor highlights a region rather than a point."""
        return self.width is not None and self.height is not None


class Reply(BaseModel):
    """Reply in a comment thread. Has no lifecycle of its own."""

    reply_id: UUID
    comment_id: UUID
    author_name: str
    content: str
    created_at: datetime


class Comment(BaseModel):
    """Comment pinned to a proposal, with its replies in submission order."""

    comment_id: UUID
    proposal_id: str
    author_name: str
    content: str
    anchor: Anchor
    status: CommentStatus = CommentStatus.open
    created_at: datetime
    resolved_at: datetime | None = None
    replies: list[Reply] = Field(default_factory=list)

    @property
    def is_open(self) -> bool:
        """Whether the thread still accepts replies and renders a pin."""
        return self.status == CommentStatus.open


def _require_text(v: str) -> str:
    stripped = v.strip()
    if not stripped:
        raise ValueError("must not be blank")
    return stripped


class CreateCommentRequest(BaseModel):
    """Request body for POST /proposals/{proposal_id}/comments."""

    author_name: str = Field(..., max_length=200)
    content: str = Field(..., max_length=5000)
    anchor: Anchor

    @field_validator("author_name", "content")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Trim and reject whitespace-only text."""
        return _require_text(v)


class CreateReplyRequest(BaseModel):
    """Request body for POST /comments/{comment_id}/replies."""

    author_name: str = Field(..., max_length=200)
    content: str = Field(..., max_length=5000)

    @field_validator("author_name", "content")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Trim and reject whitespace-only text."""
        return _require_text(v)

"""SQLAlchemy ORM models for organizations, tours, proposals and comments."""

import uuid
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JsonType = JSON().with_variant(JSONB(), "postgresql")

# Percentages with two decimals, returned as float
Percentage = Numeric(5, 2, asdecimal=False)


def utcnow() -> datetime:
    """Timestamp default with sub-second precision for stable ordering."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class Org(Base):
    """Organization table - top-level tenancy boundary."""

    __tablename__ = "org"

    org_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    logo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    primary_color: Mapped[str | None] = mapped_column(Text, nullable=True, default="#15803d")
    notification_email: Mapped[str | None] = mapped_column(Text, nullable=True)
    plan_tier: Mapped[str] = mapped_column(Text, nullable=False, default="free")
    onboarding_completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    # Relationships
    users: Mapped[list["User"]] = relationship("User", back_populates="org")
    proposals: Mapped[list["Proposal"]] = relationship("Proposal", back_populates="org")
    tours: Mapped[list["Tour"]] = relationship("Tour", back_populates="org")


class User(Base):
    """User table - org-scoped staff accounts."""

    __tablename__ = "user"
    __table_args__ = (
        UniqueConstraint("org_id", "email", name="uq_user_org_email"),
        Index("idx_user_org", "org_id"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("org.org_id"), nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    role: Mapped[str] = mapped_column(Text, nullable=False, default="member")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    # Relationships
    org: Mapped["Org"] = relationship("Org", back_populates="users")


class Client(Base):
    """Client table - travelers a proposal is addressed to."""

    __tablename__ = "client"
    __table_args__ = (Index("idx_client_org", "org_id"),)

    client_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("org.org_id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )


class Destination(Base):
    """Destination table - parks and locations a day can visit."""

    __tablename__ = "destination"

    dest_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    country: Mapped[str] = mapped_column(Text, nullable=False)


class Accommodation(Base):
    """Accommodation table - lodges and camps."""

    __tablename__ = "accommodation"

    accommodation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    overview: Mapped[str | None] = mapped_column(Text, nullable=True)


class Tour(Base):
    """Tour table - org tours and shared templates (org_id NULL)."""

    __tablename__ = "tour"
    __table_args__ = (Index("idx_tour_org", "org_id"),)

    tour_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("org.org_id"), nullable=True
    )
    tour_name: Mapped[str] = mapped_column(Text, nullable=False)
    overview: Mapped[str] = mapped_column(Text, nullable=False)
    pricing: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    country: Mapped[str] = mapped_column(Text, nullable=False)
    tags: Mapped[list[str]] = mapped_column(JsonType, nullable=False, default=list)
    number_of_days: Mapped[int] = mapped_column(Integer, nullable=False)
    cloned_from_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    # Relationships
    org: Mapped["Org | None"] = relationship("Org", back_populates="tours")
    days: Mapped[list["TourDay"]] = relationship(
        "TourDay",
        back_populates="tour",
        cascade="all, delete-orphan",
        order_by="TourDay.day_number",
    )


class TourDay(Base):
    """Tour day table - one row per template day."""

    __tablename__ = "tour_day"
    __table_args__ = (UniqueConstraint("tour_id", "day_number", name="uq_tour_day_number"),)

    tour_day_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tour_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tour.tour_id", ondelete="CASCADE"), nullable=False
    )
    day_number: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    overview: Mapped[str | None] = mapped_column(Text, nullable=True)
    destination_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("destination.dest_id", ondelete="SET NULL"), nullable=True
    )
    accommodation_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("accommodation.accommodation_id", ondelete="SET NULL"), nullable=True
    )

    # Relationships
    tour: Mapped["Tour"] = relationship("Tour", back_populates="days")


class Proposal(Base):
    """Proposal table - client-facing priced itinerary."""

    __tablename__ = "proposal"
    __table_args__ = (Index("idx_proposal_org_updated", "org_id", "updated_at"),)

    proposal_id: Mapped[str] = mapped_column(Text, primary_key=True)
    org_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("org.org_id"), nullable=False)
    tour_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("tour.tour_id", ondelete="SET NULL"), nullable=True
    )
    client_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("client.client_id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    tour_title: Mapped[str | None] = mapped_column(Text, nullable=True)
    theme: Mapped[str] = mapped_column(Text, nullable=False, default="minimalistic")
    status: Mapped[str] = mapped_column(Text, nullable=False, default="draft")
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    start_city: Mapped[str | None] = mapped_column(Text, nullable=True)
    end_city: Mapped[str | None] = mapped_column(Text, nullable=True)
    pricing_rows: Mapped[list[dict[str, Any]]] = mapped_column(JsonType, nullable=False)
    extras: Mapped[list[dict[str, Any]]] = mapped_column(JsonType, nullable=False)
    traveler_groups: Mapped[list[dict[str, Any]]] = mapped_column(JsonType, nullable=False)
    inclusions: Mapped[list[str]] = mapped_column(JsonType, nullable=False)
    exclusions: Mapped[list[str]] = mapped_column(JsonType, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    confirmed_by: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    # Relationships
    org: Mapped["Org"] = relationship("Org", back_populates="proposals")
    days: Mapped[list["ProposalDay"]] = relationship(
        "ProposalDay",
        back_populates="proposal",
        cascade="all, delete-orphan",
        order_by="ProposalDay.day_number",
    )
    assignments: Mapped[list["ProposalAssignment"]] = relationship(
        "ProposalAssignment", back_populates="proposal", cascade="all, delete-orphan"
    )
    comments: Mapped[list["Comment"]] = relationship(
        "Comment", back_populates="proposal", cascade="all, delete-orphan"
    )


class ProposalDay(Base):
    """Proposal day table - day_number unique and dense per proposal."""

    __tablename__ = "proposal_day"
    __table_args__ = (
        UniqueConstraint("proposal_id", "day_number", name="uq_proposal_day_number"),
    )

    day_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    proposal_id: Mapped[str] = mapped_column(
        Text, ForeignKey("proposal.proposal_id", ondelete="CASCADE"), nullable=False
    )
    day_number: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    destination_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("destination.dest_id", ondelete="SET NULL"), nullable=True
    )

    # Relationships
    proposal: Mapped["Proposal"] = relationship("Proposal", back_populates="days")
    accommodations: Mapped[list["ProposalDayAccommodation"]] = relationship(
        "ProposalDayAccommodation", cascade="all, delete-orphan"
    )
    activities: Mapped[list["ProposalActivity"]] = relationship(
        "ProposalActivity", cascade="all, delete-orphan", order_by="ProposalActivity.position"
    )
    meals: Mapped["ProposalMeals | None"] = relationship(
        "ProposalMeals", cascade="all, delete-orphan", uselist=False
    )


class ProposalDayAccommodation(Base):
    """Join table - accommodations booked on a proposal day."""

    __tablename__ = "proposal_day_accommodation"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    day_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("proposal_day.day_id", ondelete="CASCADE"), nullable=False
    )
    accommodation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("accommodation.accommodation_id", ondelete="CASCADE"), nullable=False
    )


class ProposalActivity(Base):
    """Proposal activity table - activities of a day in display order."""

    __tablename__ = "proposal_activity"

    activity_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    day_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("proposal_day.day_id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    moment: Mapped[str] = mapped_column(Text, nullable=False, default="Full Day")
    is_optional: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class ProposalMeals(Base):
    """Proposal meals table - at most one row per day."""

    __tablename__ = "proposal_meals"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    day_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("proposal_day.day_id", ondelete="CASCADE"), nullable=False, unique=True
    )
    breakfast: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    lunch: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    dinner: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class ProposalAssignment(Base):
    """Proposal assignment table - staff responsible for a proposal."""

    __tablename__ = "proposal_assignment"
    __table_args__ = (
        UniqueConstraint("proposal_id", "user_id", name="uq_assignment_proposal_user"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    proposal_id: Mapped[str] = mapped_column(
        Text, ForeignKey("proposal.proposal_id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("user.user_id", ondelete="CASCADE"), nullable=False
    )
    assigned_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    # Relationships
    proposal: Mapped["Proposal"] = relationship("Proposal", back_populates="assignments")


class Comment(Base):
    """Comment table - anchored feedback; never hard-deleted."""

    __tablename__ = "comment"
    __table_args__ = (Index("idx_comment_proposal_created", "proposal_id", "created_at"),)

    comment_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    proposal_id: Mapped[str] = mapped_column(
        Text, ForeignKey("proposal.proposal_id", ondelete="CASCADE"), nullable=False
    )
    author_name: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    pos_x: Mapped[float] = mapped_column(Percentage, nullable=False)
    pos_y: Mapped[float] = mapped_column(Percentage, nullable=False)
    width: Mapped[float | None] = mapped_column(Percentage, nullable=True)
    height: Mapped[float | None] = mapped_column(Percentage, nullable=True)
    sticky_anchor_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    sticky_pos_x: Mapped[float | None] = mapped_column(Percentage, nullable=True)
    sticky_pos_y: Mapped[float | None] = mapped_column(Percentage, nullable=True)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="open")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    proposal: Mapped["Proposal"] = relationship("Proposal", back_populates="comments")
    replies: Mapped[list["CommentReply"]] = relationship(
        "CommentReply",
        back_populates="comment",
        cascade="all, delete-orphan",
        order_by="CommentReply.created_at",
    )


class CommentReply(Base):
    """Comment reply table - cascades with its parent comment."""

    __tablename__ = "comment_reply"
    __table_args__ = (Index("idx_reply_comment_created", "comment_id", "created_at"),)

    reply_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    comment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("comment.comment_id", ondelete="CASCADE"), nullable=False
    )
    author_name: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    # Relationships
    comment: Mapped["Comment"] = relationship("Comment", back_populates="replies")

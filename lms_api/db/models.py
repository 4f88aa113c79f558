"""Database models for the LMS delivery backend."""
from __future__ import annotations

import enum
import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    Time,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


class ScheduleStatus(str, enum.Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    SENT = "sent"
    FAILED = "failed"
    CANCELLED = "cancelled"


class SimulationStatus(str, enum.Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class LaunchStatus(str, enum.Enum):
    DELIVER_IMMEDIATELY = "Deliver Immediately"
    SCHEDULE_LATER = "Schedule Later"
    LAUNCHED = "Launched"
    LAUNCH_FAILED = "Launch Failed"


class CourseStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"


PENDING_LAUNCH_STATUSES = (LaunchStatus.DELIVER_IMMEDIATELY.value, LaunchStatus.SCHEDULE_LATER.value)
DUE_SCHEDULE_STATUSES = (
    ScheduleStatus.DRAFT.value,
    ScheduleStatus.SCHEDULED.value,
    ScheduleStatus.FAILED.value,
)


bundle_courses = Table(
    "bundle_courses",
    Base.metadata,
    Column("bundle_id", String(36), ForeignKey("bundles.id", ondelete="CASCADE"), primary_key=True),
    Column("course_id", String(36), ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(String(320), unique=True, nullable=False, index=True)
    first_name = Column(String(120), nullable=True)
    last_name = Column(String(120), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Group(Base):
    __tablename__ = "groups"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False)
    gophish_id = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    memberships = relationship("GroupUser", back_populates="group", cascade="all, delete-orphan")


class GroupUser(Base):
    __tablename__ = "group_users"
    __table_args__ = (UniqueConstraint("group_id", "user_id", name="uq_group_users_group_user"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    group_id = Column(String(36), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    group = relationship("Group", back_populates="memberships")
    user = relationship("User")


class AttackSimulation(Base):
    """GoPhish resource names used when a campaign is launched."""

    __tablename__ = "attack_simulations"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False)
    template = Column(String(255), nullable=False)
    url = Column(String(500), nullable=False)
    page = Column(String(255), nullable=False)
    smtp = Column(String(255), nullable=False)


class Course(Base):
    __tablename__ = "courses"

    id = Column(String(36), primary_key=True, default=_uuid)
    title = Column(String(255), nullable=False)
    attack_simulation_id = Column(String(36), ForeignKey("attack_simulations.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    attack_simulation = relationship("AttackSimulation")


class Bundle(Base):
    __tablename__ = "bundles"

    id = Column(String(36), primary_key=True, default=_uuid)
    title = Column(String(255), nullable=False)
    bundle_type = Column(String(100), nullable=False)
    seat_price = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    courses = relationship("Course", secondary=bundle_courses, order_by="Course.created_at")


class EmailTemplate(Base):
    __tablename__ = "email_templates"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), unique=True, nullable=False, index=True)
    type = Column(String(100), nullable=False)
    subject = Column(String(500), nullable=False)
    body = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class ScheduledEmail(Base):
    __tablename__ = "scheduled_emails"

    id = Column(String(36), primary_key=True, default=_uuid)
    template_id = Column(String(36), ForeignKey("email_templates.id", ondelete="CASCADE"), nullable=False, index=True)
    custom_subject = Column(String(500), nullable=True)
    status = Column(String(20), nullable=False, default=ScheduleStatus.DRAFT.value, index=True)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    scheduled_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    template = relationship("EmailTemplate")
    created_by_user = relationship("User", foreign_keys=[created_by])
    recipients = relationship(
        "ScheduledEmailRecipient",
        back_populates="scheduled_email",
        cascade="all, delete-orphan",
    )

    @property
    def recipient_ids(self) -> list[str]:
        return [recipient.user_id for recipient in self.recipients]


class ScheduledEmailRecipient(Base):
    __tablename__ = "scheduled_email_recipients"
    __table_args__ = (
        UniqueConstraint("scheduled_email_id", "user_id", name="uq_scheduled_email_recipients_pair"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    scheduled_email_id = Column(
        String(36), ForeignKey("scheduled_emails.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    scheduled_email = relationship("ScheduledEmail", back_populates="recipients")
    user = relationship("User")


class ScheduleAttackSimulation(Base):
    __tablename__ = "schedule_attack_simulations"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False)
    bundle_id = Column(String(36), ForeignKey("bundles.id", ondelete="CASCADE"), nullable=False, index=True)
    campaign_type = Column(String(100), nullable=False)
    launch_date = Column(Date, nullable=False)
    launch_time = Column(Time, nullable=False)
    timezone = Column(String(64), nullable=False, default="UTC")
    launch_at = Column(DateTime(timezone=True), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=SimulationStatus.DRAFT.value)
    launch_status = Column(String(32), nullable=False, default=LaunchStatus.SCHEDULE_LATER.value)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    bundle = relationship("Bundle")
    target_groups = relationship(
        "ScheduleAttackSimulationGroup",
        back_populates="schedule",
        cascade="all, delete-orphan",
    )

    @property
    def group_ids(self) -> list[str]:
        return [target.group_id for target in self.target_groups]

    @property
    def has_launched(self) -> bool:
        return self.launch_status not in PENDING_LAUNCH_STATUSES


class ScheduleAttackSimulationGroup(Base):
    __tablename__ = "schedule_attack_simulation_groups"
    __table_args__ = (UniqueConstraint("schedule_id", "group_id", name="uq_schedule_attack_simulation_groups_pair"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    schedule_id = Column(
        String(36), ForeignKey("schedule_attack_simulations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    group_id = Column(String(36), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)

    schedule = relationship("ScheduleAttackSimulation", back_populates="target_groups")
    group = relationship("Group")


class UserCourse(Base):
    """A user's enrolment in one course of a simulation programme, visible only while active."""

    __tablename__ = "user_courses"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = Column(String(36), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    schedule_attack_simulation_id = Column(
        String(36), ForeignKey("schedule_attack_simulations.id", ondelete="CASCADE"), nullable=True, index=True
    )
    launch_date = Column(DateTime(timezone=True), nullable=True, index=True)
    expiry_date = Column(DateTime(timezone=True), nullable=True, index=True)
    status = Column(String(20), nullable=False, default=CourseStatus.PENDING.value, index=True)
    visibility = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User")
    course = relationship("Course")
    schedule = relationship("ScheduleAttackSimulation")


class Discount(Base):
    __tablename__ = "discounts"

    id = Column(String(36), primary_key=True, default=_uuid)
    bundle_id = Column(String(36), nullable=True, index=True)
    percentage = Column(Float, nullable=True)
    seats_percentage = Column(Float, nullable=True)
    seats_threshold = Column(Integer, nullable=True)
    expiry_date = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def has_seats_rule(self) -> bool:
        return self.seats_threshold is not None and self.seats_percentage is not None


class BundlePurchase(Base):
    __tablename__ = "bundle_purchases"

    id = Column(String(36), primary_key=True, default=_uuid)
    bundle_id = Column(String(36), ForeignKey("bundles.id", ondelete="RESTRICT"), nullable=False, index=True)
    discount_id = Column(String(36), ForeignKey("discounts.id", ondelete="SET NULL"), nullable=True, index=True)
    seats_purchased = Column(Integer, nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    purchased_by = Column(String(36), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    bundle = relationship("Bundle")
    discount = relationship("Discount")


class Token(Base):
    __tablename__ = "tokens"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(512), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

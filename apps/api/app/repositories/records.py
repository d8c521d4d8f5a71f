"""Relational table definitions."""

from sqlalchemy import Boolean, Column, Enum, Float, ForeignKey, Integer, String, Text

from app.repositories.database import Base, UtcDateTime
from app.schemas.account import SubscriptionTier
from app.schemas.job import JobState
from app.schemas.notification import NotificationKind


def _enum_column(enum_cls, length: int) -> Enum:
    return Enum(
        enum_cls,
        values_callable=lambda members: [member.value for member in members],
        native_enum=False,
        length=length,
    )


class AccountRecord(Base):
    """Usage counter consumed by quota checks; owned by the account CRUD layer."""

    __tablename__ = "accounts"

    id = Column(String(128), primary_key=True)
    subscription_tier = Column(_enum_column(SubscriptionTier, 16), nullable=False, default=SubscriptionTier.FREE)
    jobs_used = Column(Integer, nullable=False, default=0)
    created_at = Column(UtcDateTime, nullable=False)


class JobRecord(Base):
    __tablename__ = "jobs"

    id = Column(String(36), primary_key=True)
    owner_id = Column(String(128), ForeignKey("accounts.id"), nullable=True, index=True)
    source_url = Column(Text, nullable=False)
    title = Column(String(512), nullable=True)
    state = Column(_enum_column(JobState, 16), nullable=False, index=True)
    transcript_text = Column(Text, nullable=True)
    duration_seconds = Column(Float, nullable=True)
    word_count = Column(Integer, nullable=True)
    accuracy_percent = Column(Float, nullable=True)
    processing_time_seconds = Column(Float, nullable=True)
    failure_reason = Column(Text, nullable=True)
    created_at = Column(UtcDateTime, nullable=False)
    updated_at = Column(UtcDateTime, nullable=False)

    def __repr__(self) -> str:
        return f"<JobRecord(id='{self.id}', state='{self.state}')>"


class NotificationRecord(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(String(128), nullable=False, index=True)
    kind = Column(_enum_column(NotificationKind, 16), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    job_id = Column(String(36), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(UtcDateTime, nullable=False)

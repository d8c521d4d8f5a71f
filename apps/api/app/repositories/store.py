"""Relational stores for jobs, account usage and notifications."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import func, select, update
from sqlalchemy.orm import sessionmaker

from app.domain.job_fsm import ensure_transition
from app.repositories.records import AccountRecord, JobRecord, NotificationRecord
from app.schemas.account import SubscriptionTier
from app.schemas.job import JobState
from app.schemas.notification import NotificationKind


@dataclass(slots=True)
class TransitionOutcome:
    record: JobRecord
    previous_state: JobState
    applied: bool


class JobStore:
    """Sole writer of job rows.

    State changes go through ``transition``, a compare-and-set on ``state`` so that two
    writers racing on the same job cannot both win, whichever process they run in.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def insert_pending(self, *, owner_id: str | None, source_url: str, title: str | None) -> JobRecord:
        now = datetime.now(UTC)
        record = JobRecord(
            id=str(uuid4()),
            owner_id=owner_id,
            source_url=source_url,
            title=title,
            state=JobState.PENDING,
            created_at=now,
            updated_at=now,
        )
        with self._session_factory.begin() as session:
            session.add(record)
        return record

    def get(self, job_id: str) -> JobRecord | None:
        with self._session_factory() as session:
            return session.get(JobRecord, job_id)

    def list_for_owner(self, owner_id: str, *, limit: int, offset: int) -> tuple[list[JobRecord], int]:
        with self._session_factory() as session:
            records = session.scalars(
                select(JobRecord)
                .where(JobRecord.owner_id == owner_id)
                .order_by(JobRecord.created_at.desc(), JobRecord.id)
                .limit(limit)
                .offset(offset)
            ).all()
            total = session.scalar(select(func.count()).select_from(JobRecord).where(JobRecord.owner_id == owner_id))
        return list(records), int(total or 0)

    def list_stale_processing(self, *, cutoff: datetime) -> list[str]:
        with self._session_factory() as session:
            return list(
                session.scalars(
                    select(JobRecord.id)
                    .where(JobRecord.state == JobState.PROCESSING, JobRecord.updated_at < cutoff)
                    .order_by(JobRecord.updated_at)
                ).all()
            )

    def transition(
        self,
        *,
        job_id: str,
        from_states: Iterable[JobState],
        to_state: JobState,
        values: dict[str, Any] | None = None,
        count_usage: bool = False,
    ) -> TransitionOutcome | None:
        """Move a job from any of ``from_states`` to ``to_state``.

        Returns ``None`` for an unknown job. ``applied`` is false when the job was no longer
        in one of ``from_states``; the returned record then reflects the stored row untouched.
        With ``count_usage`` the owner's ``jobs_used`` is incremented in the same transaction,
        and only when the transition applied.
        """
        origins = list(from_states)
        for origin in origins:
            ensure_transition(origin, to_state)

        now = datetime.now(UTC)
        with self._session_factory.begin() as session:
            record = session.get(JobRecord, job_id)
            if record is None:
                return None
            previous_state = record.state

            result = session.execute(
                update(JobRecord)
                .where(JobRecord.id == job_id, JobRecord.state.in_(origins))
                .values(state=to_state, updated_at=now, **(values or {}))
                .execution_options(synchronize_session=False)
            )
            applied = result.rowcount == 1
            if applied and count_usage and record.owner_id is not None:
                session.execute(
                    update(AccountRecord)
                    .where(AccountRecord.id == record.owner_id)
                    .values(jobs_used=AccountRecord.jobs_used + 1)
                    .execution_options(synchronize_session=False)
                )
            session.refresh(record)

        return TransitionOutcome(record=record, previous_state=previous_state, applied=applied)


class AccountStore:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def create(
        self,
        account_id: str,
        *,
        tier: SubscriptionTier = SubscriptionTier.FREE,
        jobs_used: int = 0,
    ) -> AccountRecord:
        record = AccountRecord(
            id=account_id,
            subscription_tier=tier,
            jobs_used=jobs_used,
            created_at=datetime.now(UTC),
        )
        with self._session_factory.begin() as session:
            session.add(record)
        return record

    def get(self, account_id: str) -> AccountRecord | None:
        with self._session_factory() as session:
            return session.get(AccountRecord, account_id)


class NotificationStore:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def add(
        self,
        *,
        account_id: str,
        kind: NotificationKind,
        title: str,
        message: str,
        job_id: str | None,
    ) -> NotificationRecord:
        record = NotificationRecord(
            account_id=account_id,
            kind=kind,
            title=title,
            message=message,
            job_id=job_id,
            is_read=False,
            created_at=datetime.now(UTC),
        )
        with self._session_factory.begin() as session:
            session.add(record)
        return record

    def list_recent(self, account_id: str, *, limit: int) -> list[NotificationRecord]:
        with self._session_factory() as session:
            return list(
                session.scalars(
                    select(NotificationRecord)
                    .where(NotificationRecord.account_id == account_id)
                    .order_by(NotificationRecord.id.desc())
                    .limit(limit)
                ).all()
            )

    def count_unread(self, account_id: str) -> int:
        with self._session_factory() as session:
            total = session.scalar(
                select(func.count())
                .select_from(NotificationRecord)
                .where(NotificationRecord.account_id == account_id, NotificationRecord.is_read.is_(False))
            )
        return int(total or 0)

    def mark_read(self, *, account_id: str, notification_id: int) -> bool:
        with self._session_factory.begin() as session:
            result = session.execute(
                update(NotificationRecord)
                .where(NotificationRecord.id == notification_id, NotificationRecord.account_id == account_id)
                .values(is_read=True)
                .execution_options(synchronize_session=False)
            )
        return result.rowcount == 1

    def mark_all_read(self, account_id: str) -> int:
        with self._session_factory.begin() as session:
            result = session.execute(
                update(NotificationRecord)
                .where(NotificationRecord.account_id == account_id, NotificationRecord.is_read.is_(False))
                .values(is_read=True)
                .execution_options(synchronize_session=False)
            )
        return result.rowcount


@dataclass(slots=True)
class Stores:
    jobs: JobStore
    accounts: AccountStore
    notifications: NotificationStore


def build_stores(session_factory: sessionmaker) -> Stores:
    return Stores(
        jobs=JobStore(session_factory),
        accounts=AccountStore(session_factory),
        notifications=NotificationStore(session_factory),
    )

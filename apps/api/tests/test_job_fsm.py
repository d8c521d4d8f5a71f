"""Job state machine and store transition invariants."""

from __future__ import annotations

import unittest

from app.domain.job_fsm import allowed_next_states, ensure_transition, is_terminal
from app.errors import InvalidState
from app.repositories.database import build_engine, build_session_factory, create_schema
from app.repositories.store import build_stores
from app.schemas.account import SubscriptionTier
from app.schemas.job import JobState


def _stores():
    engine = build_engine("sqlite://")
    create_schema(engine)
    return build_stores(build_session_factory(engine))


class JobFsmUnitTests(unittest.TestCase):
    def test_allowed_transition_examples_across_lifecycle(self) -> None:
        allowed_pairs = [
            (JobState.PENDING, JobState.PROCESSING),
            (JobState.PENDING, JobState.COMPLETED),
            (JobState.PENDING, JobState.FAILED),
            (JobState.PROCESSING, JobState.COMPLETED),
            (JobState.PROCESSING, JobState.FAILED),
        ]
        for old_state, new_state in allowed_pairs:
            with self.subTest(old_state=old_state, new_state=new_state):
                ensure_transition(old_state, new_state)

    def test_forbidden_transitions_return_contract_shape(self) -> None:
        invalid_pairs = [
            (JobState.PROCESSING, JobState.PENDING),
            (JobState.PROCESSING, JobState.PROCESSING),
            (JobState.PENDING, JobState.PENDING),
        ]
        for old_state, new_state in invalid_pairs:
            with self.subTest(old_state=old_state, new_state=new_state):
                with self.assertRaises(InvalidState) as context:
                    ensure_transition(old_state, new_state)
                self.assertEqual(context.exception.status_code, 409)
                self.assertEqual(context.exception.payload.code, "INVALID_STATE")
                details = context.exception.payload.details
                self.assertEqual(details["current_state"], old_state.value)
                self.assertEqual(details["attempted_state"], new_state.value)
                self.assertIn("allowed_next_states", details)

    def test_terminal_states_accept_no_successor(self) -> None:
        for terminal_state in (JobState.COMPLETED, JobState.FAILED):
            with self.subTest(terminal_state=terminal_state):
                self.assertTrue(is_terminal(terminal_state))
                self.assertEqual(allowed_next_states(terminal_state), [])
                for target in JobState:
                    with self.assertRaises(InvalidState):
                        ensure_transition(terminal_state, target)

    def test_no_transition_ever_returns_to_pending(self) -> None:
        for state in JobState:
            with self.subTest(state=state):
                self.assertNotIn(JobState.PENDING, allowed_next_states(state))

    def test_allowed_next_states_are_deterministically_ordered(self) -> None:
        self.assertEqual(
            allowed_next_states(JobState.PENDING),
            [JobState.COMPLETED, JobState.FAILED, JobState.PROCESSING],
        )


class JobStoreTransitionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.stores = _stores()

    def test_insert_pending_sets_timestamps_and_no_transcript(self) -> None:
        record = self.stores.jobs.insert_pending(owner_id=None, source_url="https://video.example/a", title="A")

        stored = self.stores.jobs.get(record.id)
        assert stored is not None
        self.assertEqual(stored.state, JobState.PENDING)
        self.assertIsNone(stored.transcript_text)
        self.assertEqual(stored.created_at, stored.updated_at)
        self.assertIsNotNone(stored.created_at.tzinfo)

    def test_transition_applies_and_bumps_updated_at(self) -> None:
        record = self.stores.jobs.insert_pending(owner_id=None, source_url="https://video.example/a", title=None)

        outcome = self.stores.jobs.transition(
            job_id=record.id,
            from_states={JobState.PENDING},
            to_state=JobState.PROCESSING,
        )

        assert outcome is not None
        self.assertTrue(outcome.applied)
        self.assertEqual(outcome.previous_state, JobState.PENDING)
        self.assertEqual(outcome.record.state, JobState.PROCESSING)
        self.assertGreaterEqual(outcome.record.updated_at, record.updated_at)
        self.assertEqual(outcome.record.created_at, record.created_at)

    def test_transition_is_a_no_op_when_state_already_moved(self) -> None:
        record = self.stores.jobs.insert_pending(owner_id=None, source_url="https://video.example/a", title=None)
        self.stores.jobs.transition(job_id=record.id, from_states={JobState.PENDING}, to_state=JobState.FAILED)

        outcome = self.stores.jobs.transition(
            job_id=record.id,
            from_states={JobState.PENDING, JobState.PROCESSING},
            to_state=JobState.COMPLETED,
            values={"transcript_text": "late"},
        )

        assert outcome is not None
        self.assertFalse(outcome.applied)
        self.assertEqual(outcome.record.state, JobState.FAILED)
        self.assertIsNone(outcome.record.transcript_text)

    def test_transition_rejects_illegal_edges_before_touching_the_row(self) -> None:
        record = self.stores.jobs.insert_pending(owner_id=None, source_url="https://video.example/a", title=None)

        with self.assertRaises(InvalidState):
            self.stores.jobs.transition(
                job_id=record.id,
                from_states={JobState.COMPLETED},
                to_state=JobState.FAILED,
            )

        stored = self.stores.jobs.get(record.id)
        assert stored is not None
        self.assertEqual(stored.state, JobState.PENDING)
        self.assertEqual(stored.updated_at, record.updated_at)

    def test_transition_unknown_job_returns_none(self) -> None:
        outcome = self.stores.jobs.transition(
            job_id="job-missing",
            from_states={JobState.PENDING},
            to_state=JobState.PROCESSING,
        )
        self.assertIsNone(outcome)

    def test_usage_counter_moves_only_with_an_applied_transition(self) -> None:
        self.stores.accounts.create("owner-1", tier=SubscriptionTier.FREE, jobs_used=1)
        record = self.stores.jobs.insert_pending(owner_id="owner-1", source_url="https://video.example/a", title=None)

        first = self.stores.jobs.transition(
            job_id=record.id,
            from_states={JobState.PENDING, JobState.PROCESSING},
            to_state=JobState.COMPLETED,
            count_usage=True,
        )
        second = self.stores.jobs.transition(
            job_id=record.id,
            from_states={JobState.PENDING, JobState.PROCESSING},
            to_state=JobState.COMPLETED,
            count_usage=True,
        )

        assert first is not None and second is not None
        self.assertTrue(first.applied)
        self.assertFalse(second.applied)
        account = self.stores.accounts.get("owner-1")
        assert account is not None
        self.assertEqual(account.jobs_used, 2)


if __name__ == "__main__":
    unittest.main()

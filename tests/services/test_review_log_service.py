"""
Tests for ReviewLogService and the append-only review log model.
"""

from uuid import uuid4

import pytest

from contract_kernel.domain.plan import (
    ActorRole,
    PlanStatus,
    ReviewAction,
    ReviewLogEntry,
    ReviewRole,
)
from contract_kernel.exceptions import ImmutabilityViolationError
from contract_kernel.models.review_log import ReviewLogModel
from contract_kernel.services.review_log_service import ReviewLogService
from tests.helpers import SALES_ID, UNIT_LEAD_ID


@pytest.fixture
def review_log(session) -> ReviewLogService:
    return ReviewLogService(session)


def _entry(plan_id, contract_id, clock, from_status, to_status, **overrides) -> ReviewLogEntry:
    values = dict(
        entry_id=uuid4(),
        plan_id=plan_id,
        contract_id=contract_id,
        reviewer_id=UNIT_LEAD_ID,
        role=ReviewRole.UNIT,
        actor_role=ActorRole.UNIT_LEAD,
        action=ReviewAction.APPROVE,
        from_status=from_status,
        to_status=to_status,
        comment="OK",
        created_at=clock.now(),
    )
    values.update(overrides)
    return ReviewLogEntry(**values)


class TestAppend:

    def test_sequence_per_plan(self, review_log, deterministic_clock):
        plan_id, other_plan, contract_id = uuid4(), uuid4(), uuid4()

        first = review_log.append(_entry(
            plan_id, contract_id, deterministic_clock,
            PlanStatus.DRAFT, PlanStatus.PENDING_UNIT,
            reviewer_id=SALES_ID, actor_role=ActorRole.SALES, action=ReviewAction.SUBMIT,
        ))
        other = review_log.append(_entry(
            other_plan, contract_id, deterministic_clock,
            PlanStatus.DRAFT, PlanStatus.PENDING_UNIT,
        ))
        second = review_log.append(_entry(
            plan_id, contract_id, deterministic_clock,
            PlanStatus.PENDING_UNIT, PlanStatus.PENDING_FINANCE,
        ))

        assert (first.sequence, second.sequence) == (1, 2)
        assert other.sequence == 1

    def test_list_by_plan_oldest_first(self, review_log, deterministic_clock):
        plan_id, contract_id = uuid4(), uuid4()
        path = [
            (PlanStatus.DRAFT, PlanStatus.PENDING_UNIT),
            (PlanStatus.PENDING_UNIT, PlanStatus.PENDING_FINANCE),
            (PlanStatus.PENDING_FINANCE, PlanStatus.PENDING_BOARD),
            (PlanStatus.PENDING_BOARD, PlanStatus.APPROVED),
        ]
        for from_status, to_status in path:
            deterministic_clock.tick()
            review_log.append(_entry(plan_id, contract_id, deterministic_clock, from_status, to_status))

        entries = review_log.list_by_plan(plan_id)

        assert [e.sequence for e in entries] == [1, 2, 3, 4]
        assert [(e.from_status, e.to_status) for e in entries] == path
        assert review_log.list_by_plan(plan_id) == entries

    def test_round_trip_fields(self, review_log, deterministic_clock, session):
        plan_id, contract_id = uuid4(), uuid4()
        stored = review_log.append(_entry(
            plan_id, contract_id, deterministic_clock,
            PlanStatus.PENDING_FINANCE, PlanStatus.APPROVED,
            role=ReviewRole.FINANCE,
            actor_role=ActorRole.ACCOUNTANT,
            comment="[AUTO] margin 35.00%",
            auto_approved=True,
        ))
        session.expire_all()

        [loaded] = review_log.list_by_plan(plan_id)

        assert loaded.entry_id == stored.entry_id
        assert loaded.role == ReviewRole.FINANCE
        assert loaded.actor_role == ActorRole.ACCOUNTANT
        assert loaded.action == ReviewAction.APPROVE
        assert loaded.comment == "[AUTO] margin 35.00%"
        assert loaded.auto_approved is True
        assert loaded.contract_id == contract_id

    def test_empty_history(self, review_log):
        assert review_log.list_by_plan(uuid4()) == []

    def test_append_is_logged(self, review_log, deterministic_clock, captured_logs):
        plan_id = uuid4()
        review_log.append(_entry(
            plan_id, uuid4(), deterministic_clock, PlanStatus.DRAFT, PlanStatus.PENDING_UNIT,
        ))

        [record] = [r for r in captured_logs() if r["message"] == "review_log_appended"]
        assert record["plan_id"] == str(plan_id)
        assert record["sequence"] == 1


class TestImmutability:
    """ORM listeners reject UPDATE and DELETE on review log rows."""

    def test_update_rejected(self, review_log, deterministic_clock, session):
        stored = review_log.append(_entry(
            uuid4(), uuid4(), deterministic_clock, PlanStatus.DRAFT, PlanStatus.PENDING_UNIT,
        ))
        model = session.get(ReviewLogModel, stored.entry_id)
        model.comment = "edited"

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()

        assert exc_info.value.entity_type == "ReviewLogEntry"
        assert exc_info.value.code == "IMMUTABILITY_VIOLATION"

    def test_delete_rejected(self, review_log, deterministic_clock, session):
        stored = review_log.append(_entry(
            uuid4(), uuid4(), deterministic_clock, PlanStatus.DRAFT, PlanStatus.PENDING_UNIT,
        ))
        model = session.get(ReviewLogModel, stored.entry_id)
        session.delete(model)

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

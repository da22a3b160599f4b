"""
BCP Wizard Backend
Tests — plan store primitives.

Covers:
    - insert / update / get / list plans
    - replace-on-submit for every child table
    - insertion order of child rows
    - rollback + StorageError on driver failure
"""

import time
from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select

from bcp.core.exceptions import StorageError
from bcp.models import db
from bcp.models.plan import CommunicationContact, ContinuityPlan, Process, RiskNote
from bcp.services import plan_store
from bcp.services.helpers.step_locks import active_locks


def _process(name, sites=None):
    return {
        "name": name,
        "sites": sites or [],
        "primary_owner": {"name": f"{name} owner", "email": "owner@example.com"},
        "backup_owner": {"name": None, "email": None},
    }


def _count(model, plan_id):
    stmt = select(func.count()).select_from(model).where(model.bcp_id == plan_id)
    return db.session.execute(stmt).scalar()


# ═════════════════════════════════════════════════════════════════════════════
# PLANS
# ═════════════════════════════════════════════════════════════════════════════

class TestPlans:
    def test_insert_assigns_uuid(self, plan):
        assert len(plan.id) == 36
        assert plan.created_at is not None
        assert plan_store.get_plan(plan.id).name == "Treasury BCP"

    def test_insert_with_explicit_id(self):
        p = plan_store.insert_plan({"name": "X", "service_name": "Y"}, plan_id="fixed-id")
        assert p.id == "fixed-id"

    def test_update_keeps_created_at(self, plan):
        created = plan.created_at
        updated = plan_store.update_plan(plan.id, {"name": "Renamed", "service_name": "Cash"})
        assert updated.name == "Renamed"
        assert updated.business_unit is None
        assert updated.created_at == created

    def test_update_unknown_returns_none(self):
        assert plan_store.update_plan("missing", {"name": "n", "service_name": "s"}) is None

    def test_get_unknown_returns_none(self):
        assert plan_store.get_plan("missing") is None

    def test_list_newest_first(self):
        ids = []
        for n in ("first", "second", "third"):
            ids.append(plan_store.insert_plan({"name": n, "service_name": "svc"}).id)
            time.sleep(0.01)
        assert [p.id for p in plan_store.list_plans()] == list(reversed(ids))

    def test_insert_with_processes(self):
        p = plan_store.insert_plan({"name": "X", "service_name": "Y"},
                                   processes=[_process("A"), _process("B")])
        assert [r["name"] for r in plan_store.get_children("processes", p.id)] == ["A", "B"]

    def test_list_ties_on_created_at_are_deterministic(self):
        stamp = datetime(2024, 5, 1, tzinfo=timezone.utc)
        for plan_id in ("b-plan", "a-plan", "c-plan"):
            db.session.add(ContinuityPlan(id=plan_id, name=plan_id, service_name="svc", created_at=stamp))
        db.session.commit()
        assert [p.id for p in plan_store.list_plans()] == ["c-plan", "b-plan", "a-plan"]


# ═════════════════════════════════════════════════════════════════════════════
# CHILD REPLACE
# ═════════════════════════════════════════════════════════════════════════════

class TestReplaceChildren:
    def test_processes_replace_not_append(self, plan):
        plan_store.replace_processes(plan.id, [_process("A"), _process("B")])
        plan_store.replace_processes(plan.id, [_process("C")])
        rows = plan_store.get_children("processes", plan.id)
        assert [r["name"] for r in rows] == ["C"]
        assert _count(Process, plan.id) == 1

    def test_processes_keep_submission_order(self, plan):
        names = ["Zeta", "Alpha", "Mu", "Beta"]
        plan_store.replace_processes(plan.id, [_process(n) for n in names])
        assert [r["name"] for r in plan_store.get_children("processes", plan.id)] == names

    def test_sites_stored_encoded(self, plan):
        plan_store.replace_processes(plan.id, [_process("A", ["Site A", "Site B"])])
        row = plan_store.get_children("processes", plan.id)[0]
        assert row["sites"] == '["Site A", "Site B"]'
        assert row["primary_owner_name"] == "A owner"
        assert row["backup_owner_email"] is None

    def test_fresh_ids_on_every_replace(self, plan):
        plan_store.replace_processes(plan.id, [_process("A")])
        first = plan_store.get_children("processes", plan.id)[0]["id"]
        plan_store.replace_processes(plan.id, [_process("A")])
        second = plan_store.get_children("processes", plan.id)[0]["id"]
        assert first != second

    def test_impact_record_single_row(self, plan):
        record = {
            "criticality_unit": "Days",
            "criticality_value": 2,
            "headcount_requirement": None,
            "dependencies": [{"type": "IT", "description": "ERP"}],
        }
        plan_store.replace_impact_record(plan.id, record)
        plan_store.replace_impact_record(plan.id, record)
        rows = plan_store.get_children("bia", plan.id)
        assert len(rows) == 1
        assert rows[0]["criticality_unit"] == "Days"
        assert rows[0]["headcount_requirement"] is None

    def test_communications_replace(self, plan):
        plan_store.replace_communications(plan.id, [
            {"name": "Ops", "email": "ops@example.com", "type": "group"},
        ])
        count = plan_store.replace_communications(plan.id, [])
        assert count == 0
        assert _count(CommunicationContact, plan.id) == 0

    @pytest.mark.parametrize("blank", ["", "   ", "\n\t", None])
    def test_blank_risk_clears(self, plan, blank):
        plan_store.replace_risk_notes(plan.id, "Flooding of the primary site")
        assert _count(RiskNote, plan.id) == 1
        assert plan_store.replace_risk_notes(plan.id, blank) == 0
        assert _count(RiskNote, plan.id) == 0

    def test_replace_is_scoped_to_plan(self, plan):
        other = plan_store.insert_plan({"name": "Other", "service_name": "svc"})
        plan_store.replace_processes(plan.id, [_process("Mine")])
        plan_store.replace_processes(other.id, [_process("Theirs")])
        plan_store.replace_processes(other.id, [])
        assert [r["name"] for r in plan_store.get_children("processes", plan.id)] == ["Mine"]

    def test_lock_released_after_replace(self, plan):
        plan_store.replace_processes(plan.id, [_process("A")])
        assert active_locks() == 0


# ═════════════════════════════════════════════════════════════════════════════
# FAILURES
# ═════════════════════════════════════════════════════════════════════════════

class TestStorageFailures:
    def test_failed_replace_rolls_back_and_keeps_previous_set(self, plan):
        plan_store.replace_processes(plan.id, [_process("Kept")])

        # NOT NULL violation on insert, after the delete already ran
        with pytest.raises(StorageError) as exc_info:
            plan_store.replace_processes(plan.id, [_process("New"), {"name": None}])

        assert exc_info.value.operation == "replace_processes"
        assert exc_info.value.plan_id == plan.id
        assert [r["name"] for r in plan_store.get_children("processes", plan.id)] == ["Kept"]
        assert active_locks() == 0

    def test_child_for_unknown_plan_violates_fk(self):
        with pytest.raises(StorageError):
            plan_store.replace_processes("missing", [_process("Orphan")])

    def test_plan_insert_rolled_back_with_failed_processes(self):
        with pytest.raises(StorageError) as exc_info:
            plan_store.insert_plan(
                {"name": "Orphan?", "service_name": "svc"},
                processes=[_process("Fine"), {"name": None}],
            )
        assert exc_info.value.operation == "insert_plan"
        assert plan_store.list_plans() == []
        assert active_locks() == 0

    def test_plan_update_rolled_back_with_failed_processes(self, plan):
        plan_store.replace_processes(plan.id, [_process("Kept")])
        with pytest.raises(StorageError):
            plan_store.update_plan(plan.id, {"name": "Renamed", "service_name": "svc"},
                                   processes=[{"name": None}])
        assert plan_store.get_plan(plan.id).name == "Treasury BCP"
        assert [r["name"] for r in plan_store.get_children("processes", plan.id)] == ["Kept"]

"""Plan store — persistence primitives for plans and their child record sets.

Transaction policy: every write primitive commits (or rolls back) itself.
A plan write that carries processes commits both in the same transaction.
Child replaces run delete-then-insert in ONE transaction inside the
(plan, step) critical section, so a reader sees either the previous set or
the new one.

Failure policy: SQLAlchemy faults are rolled back and re-raised as
StorageError(operation, plan_id). Nothing is retried here.

Primitives:
- insert_plan / update_plan / get_plan / list_plans
- replace_processes / replace_impact_record / replace_communications / replace_risk_notes
- get_children(table, plan_id)

Payloads reaching this module have already been validated by the wizard
service; the store does not re-validate.
"""
import logging
from contextlib import contextmanager, nullcontext

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from bcp.core.exceptions import StorageError
from bcp.models import db
from bcp.models.plan import (
    CHILD_TABLES,
    CommunicationContact,
    ContinuityPlan,
    ImpactRecord,
    Process,
    RiskNote,
)
from bcp.services.helpers.step_locks import step_lock
from bcp.utils.codec import encode
from bcp.utils.helpers import new_id

logger = logging.getLogger(__name__)

PLAN_FIELDS = ("name", "business_unit", "sub_business_unit", "service_name", "service_description")


@contextmanager
def _storage_op(operation, plan_id=None):
    """Commit on success; roll back and wrap driver errors on failure."""
    try:
        yield
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Storage failure op=%s bcp=%s: %s", operation, plan_id, exc)
        raise StorageError(operation, plan_id, cause=exc) from exc


# ── Plan ─────────────────────────────────────────────────────────────────


def _processes_lock(plan_id, processes):
    if processes is None:
        return nullcontext()
    return step_lock(plan_id, "processes")


def insert_plan(fields, plan_id=None, processes=None):
    """Insert a new plan row, optionally together with its processes.

    Plan and processes are written in ONE transaction: if the processes
    cannot be stored, no plan row is left behind.

    Args:
        fields: dict with PLAN_FIELDS keys (snake_case).
        plan_id: Identifier to use; a fresh one is generated when omitted.
        processes: Optional process list (see replace_processes).

    Returns:
        ContinuityPlan instance (committed).
    """
    plan = ContinuityPlan(id=plan_id or new_id(), **{f: fields.get(f) for f in PLAN_FIELDS})
    with _processes_lock(plan.id, processes):
        with _storage_op("insert_plan", plan.id):
            db.session.add(plan)
            if processes is not None:
                db.session.flush()
                _write_children(Process, plan.id, _process_rows(processes))
    return plan


def update_plan(plan_id, fields, processes=None):
    """Overwrite the scalar fields of an existing plan, optionally replacing its processes.

    created_at is never touched; updated_at is refreshed by the column's onupdate.
    Field update and process replace commit or roll back together.

    Returns:
        The updated ContinuityPlan, or None if the identifier has no row.
    """
    plan = get_plan(plan_id)
    if plan is None:
        return None
    with _processes_lock(plan_id, processes):
        with _storage_op("update_plan", plan_id):
            for f in PLAN_FIELDS:
                setattr(plan, f, fields.get(f))
            if processes is not None:
                _write_children(Process, plan_id, _process_rows(processes))
    return plan


def get_plan(plan_id):
    try:
        return db.session.get(ContinuityPlan, plan_id)
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StorageError("get_plan", plan_id, cause=exc) from exc


def list_plans():
    """All plans, most recently created first (id breaks created_at ties)."""
    try:
        stmt = select(ContinuityPlan).order_by(
            ContinuityPlan.created_at.desc(), ContinuityPlan.id.desc(),
        )
        return db.session.execute(stmt).scalars().all()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StorageError("list_plans", cause=exc) from exc


# ── Child replace-on-submit ──────────────────────────────────────────────


def _write_children(model, plan_id, rows):
    """Delete every ``model`` row of the plan, then add ``rows`` in order. No commit."""
    db.session.execute(delete(model).where(model.bcp_id == plan_id))
    for position, row in enumerate(rows):
        db.session.add(model(id=new_id(), bcp_id=plan_id, position=position, **row))


def _replace_children(operation, step, model, plan_id, rows):
    """Replace the plan's ``model`` rows in one transaction under the step lock.

    Returns:
        Number of rows inserted.
    """
    with step_lock(plan_id, step):
        with _storage_op(operation, plan_id):
            _write_children(model, plan_id, rows)
    logger.debug("%s bcp=%s rows=%d", operation, plan_id, len(rows))
    return len(rows)


def _process_rows(processes):
    rows = []
    for p in processes:
        primary = p.get("primary_owner") or {}
        backup = p.get("backup_owner") or {}
        rows.append({
            "name": p["name"],
            "sites": encode(p.get("sites")),
            "primary_owner_name": primary.get("name"),
            "primary_owner_email": primary.get("email"),
            "backup_owner_name": backup.get("name"),
            "backup_owner_email": backup.get("email"),
        })
    return rows


def replace_processes(plan_id, processes):
    """Replace the plan's processes.

    Args:
        processes: list of dicts with name, sites (list), primary_owner /
                   backup_owner ({name, email}).
    """
    return _replace_children("replace_processes", "processes", Process, plan_id, _process_rows(processes))


def replace_impact_record(plan_id, record):
    """Replace the plan's business impact analysis with a single record."""
    row = {
        "criticality_unit": record.get("criticality_unit"),
        "criticality_value": record.get("criticality_value"),
        "headcount_requirement": record.get("headcount_requirement"),
        "dependencies": encode(record.get("dependencies")),
    }
    return _replace_children("replace_impact_record", "bia", ImpactRecord, plan_id, [row])


def replace_communications(plan_id, contacts):
    rows = [
        {"name": c["name"], "email": c["email"], "type": c.get("type")}
        for c in contacts
    ]
    return _replace_children("replace_communications", "communications", CommunicationContact, plan_id, rows)


def replace_risk_notes(plan_id, description):
    """Replace the plan's risk notes. A blank description clears them."""
    rows = []
    if description and description.strip():
        rows.append({"description": description})
    return _replace_children("replace_risk_notes", "risks", RiskNote, plan_id, rows)


# ── Reads ────────────────────────────────────────────────────────────────


def get_children(table, plan_id):
    """Rows of one child table for a plan, in insertion order.

    Args:
        table: "processes" | "bia" | "communications" | "risks"

    Returns:
        list of row dicts with structured fields still encoded.
    """
    model = CHILD_TABLES[table]
    # Impact rows from older submissions may survive in legacy databases;
    # created_at keeps them in submission order ahead of position.
    order = (model.created_at, model.position) if model is ImpactRecord else (model.position,)
    try:
        stmt = select(model).where(model.bcp_id == plan_id).order_by(*order)
        return [r.to_dict() for r in db.session.execute(stmt).scalars().all()]
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StorageError(f"get_children:{table}", plan_id, cause=exc) from exc

"""
BCP Report Service — fan-out / fan-in report assembly.

A report joins the plan row with its four child sets. The five reads are
independent (disjoint tables, same plan key), so they are issued
concurrently on a small thread pool, each inside its own application
context and therefore its own database session. The join waits for all
five; the first failure is re-raised and nothing partial is returned.

Structured fields (process sites, impact dependencies) are decoded only
after every read has completed. A corrupted value decodes to an empty list.

Report shape:
    {
        "bcp":            [plan],
        "processes":      [...],
        "bia":            [impact] or [],
        "communications": [...],
        "risks":          [...],
    }
"""

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait

from flask import current_app

from bcp.core.exceptions import NotFoundError
from bcp.services import plan_store
from bcp.utils.codec import decode

logger = logging.getLogger(__name__)

REPORT_SECTIONS = ("bcp", "processes", "bia", "communications", "risks")

DEFAULT_FANOUT_WORKERS = len(REPORT_SECTIONS)


def list_plans():
    """Plan summaries, newest first."""
    return [p.to_dict() for p in plan_store.list_plans()]


def _read_section(app, section, plan_id):
    """Run one report query in a worker thread."""
    with app.app_context():
        if section == "bcp":
            plan = plan_store.get_plan(plan_id)
            return [plan.to_dict()] if plan is not None else []
        return plan_store.get_children(section, plan_id)


def _gather(app, plan_id):
    """Fan out the five reads and fan the results back in.

    Returns:
        dict section → list of row dicts.

    Raises:
        The first exception raised by any read (typically StorageError).
    """
    workers = app.config.get("REPORT_FANOUT_WORKERS") or DEFAULT_FANOUT_WORKERS
    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="bcp-report")
    try:
        futures = {
            executor.submit(_read_section, app, section, plan_id): section
            for section in REPORT_SECTIONS
        }
        done, _pending = wait(futures, return_when=FIRST_EXCEPTION)
        for future in done:
            exc = future.exception()
            if exc is not None:
                logger.error("Report read failed bcp=%s section=%s: %s",
                             plan_id, futures[future], exc)
                raise exc
        return {section: future.result() for future, section in futures.items()}
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def build_report(plan_id):
    """Assemble the composite report for one plan.

    Raises:
        NotFoundError: the plan identifier has no row.
        StorageError: any of the five reads failed.
    """
    app = current_app._get_current_object()
    sections = _gather(app, plan_id)

    if not sections["bcp"]:
        raise NotFoundError(resource="BCP", resource_id=plan_id)

    for process in sections["processes"]:
        process["sites"] = decode(process.get("sites"), field="processes.sites", row_id=process["id"])

    # Only the most recent impact record is meaningful.
    bia = sections["bia"][-1:]
    for record in bia:
        record["dependencies"] = decode(
            record.get("dependencies"), field="bia_data.dependencies", row_id=record["id"],
        )

    for risk in sections["risks"]:
        risk["description"] = risk.get("description") or ""

    logger.debug(
        "Report built bcp=%s processes=%d bia=%d communications=%d risks=%d",
        plan_id, len(sections["processes"]), len(bia),
        len(sections["communications"]), len(sections["risks"]),
        extra={"plan_id": plan_id},
    )
    return {
        "bcp": sections["bcp"],
        "processes": sections["processes"],
        "bia": bia,
        "communications": sections["communications"],
        "risks": sections["risks"],
    }

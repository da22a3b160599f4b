"""
BCP Wizard Service — staged write protocol.

Translates one wizard step's submission into plan-store calls. Each step
owns one child record set of the plan and replaces it wholesale, so
resubmitting a step is idempotent: the stored state is exactly the last
submission, never a union or a duplicate.

Steps:
    - save_plan:            Step 1 — create (or update by id) the plan, optionally with its processes
    - save_processes:       Step 1 — replace the plan's processes
    - save_impact_analysis: Step 2 — replace the business impact analysis
    - save_communications:  Step 3 — replace the communication contacts
    - save_risks:           Step 4 — replace the risk note (blank clears)

Payloads use the wizard's camelCase keys. Required fields are checked here,
before storage is touched; a failure raises ValidationError. Child steps for
an unknown plan raise NotFoundError.
"""

import logging

from bcp.core.exceptions import NotFoundError, ValidationError
from bcp.models.plan import ContactType, CriticalityUnit, DependencyType
from bcp.services import plan_store

logger = logging.getLogger(__name__)

_CRITICALITY_UNITS = {u.value for u in CriticalityUnit}
_DEPENDENCY_TYPES = {d.value for d in DependencyType}
_CONTACT_TYPES = {c.value for c in ContactType}


# ── Validation helpers ───────────────────────────────────────────────────


def _text(value):
    """Stripped string, or "" for None / non-strings."""
    return value.strip() if isinstance(value, str) else ""


def _optional_text(value):
    text = _text(value)
    return text or None


def _require_text(data, key, path=None):
    text = _text(data.get(key))
    if not text:
        path = path or key
        raise ValidationError(f"{path} is required", details={path: "required"})
    return text


def _require_list(data, key):
    value = data.get(key)
    if not isinstance(value, list):
        raise ValidationError(f"{key} must be a list", details={key: "must be a list"})
    return value


def _require_object(item, path):
    if not isinstance(item, dict):
        raise ValidationError(f"{path} must be an object", details={path: "must be an object"})
    return item


def _optional_int(value, path):
    """Accept int / numeric string / null. Anything else is a caller error."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{path} must be an integer", details={path: "must be an integer"})
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ValidationError(f"{path} must be an integer", details={path: "must be an integer"})


def _one_of(value, allowed, path, default):
    if value is None or value == "":
        return default
    if not isinstance(value, str) or value not in allowed:
        raise ValidationError(
            f"{path} must be one of: {', '.join(sorted(allowed))}",
            details={path: "invalid option"},
        )
    return value


def _owner(value, path):
    if value is None:
        return {"name": None, "email": None}
    _require_object(value, path)
    return {"name": _optional_text(value.get("name")), "email": _optional_text(value.get("email"))}


def _ensure_plan(plan_id):
    if not plan_id or plan_store.get_plan(plan_id) is None:
        raise NotFoundError(resource="BCP", resource_id=plan_id)


# ── Payload normalisation ────────────────────────────────────────────────


def _parse_plan_fields(data):
    return {
        "name": _require_text(data, "name"),
        "service_name": _require_text(data, "serviceName"),
        "business_unit": _optional_text(data.get("businessUnit")),
        "sub_business_unit": _optional_text(data.get("subBusinessUnit")),
        "service_description": _optional_text(data.get("serviceDescription")),
    }


def _parse_processes(data):
    processes = []
    for i, item in enumerate(_require_list(data, "processes")):
        path = f"processes[{i}]"
        _require_object(item, path)
        sites = item.get("sites")
        if sites is None:
            sites = []
        if not isinstance(sites, list) or not all(isinstance(s, str) for s in sites):
            raise ValidationError(f"{path}.sites must be a list of strings",
                                  details={f"{path}.sites": "must be a list of strings"})
        processes.append({
            "name": _require_text(item, "name", f"{path}.name"),
            "sites": list(sites),
            "primary_owner": _owner(item.get("primaryOwner"), f"{path}.primaryOwner"),
            "backup_owner": _owner(item.get("backupOwner"), f"{path}.backupOwner"),
        })
    return processes


def _parse_impact(data):
    dependencies = data.get("dependencies")
    if dependencies is None:
        dependencies = []
    if not isinstance(dependencies, list):
        raise ValidationError("dependencies must be a list", details={"dependencies": "must be a list"})
    parsed = []
    for i, dep in enumerate(dependencies):
        path = f"dependencies[{i}]"
        _require_object(dep, path)
        if not dep.get("type"):
            raise ValidationError(f"{path}.type is required", details={f"{path}.type": "required"})
        parsed.append({
            "type": _one_of(dep.get("type"), _DEPENDENCY_TYPES, f"{path}.type", None),
            "description": _require_text(dep, "description", f"{path}.description"),
        })
    return {
        "criticality_unit": _one_of(data.get("criticalityUnit"), _CRITICALITY_UNITS,
                                    "criticalityUnit", CriticalityUnit.HOURS.value),
        "criticality_value": _optional_int(data.get("criticalityValue"), "criticalityValue"),
        "headcount_requirement": _optional_int(data.get("headcountRequirement"), "headcountRequirement"),
        "dependencies": parsed,
    }


def _parse_communications(data):
    contacts = []
    for i, item in enumerate(_require_list(data, "communications")):
        path = f"communications[{i}]"
        _require_object(item, path)
        contacts.append({
            "name": _require_text(item, "name", f"{path}.name"),
            "email": _require_text(item, "email", f"{path}.email"),
            "type": _one_of(item.get("type"), _CONTACT_TYPES, f"{path}.type", ContactType.INDIVIDUAL.value),
        })
    return contacts


# ── Steps ────────────────────────────────────────────────────────────────


def save_plan(data, plan_id=None):
    """Step 1: create a plan, or update an existing one by identifier.

    If ``processes`` is present in the payload the plan's processes are
    replaced in the same transaction as the plan write; process identity
    belongs to the plan.

    Args:
        data: {name, serviceName, businessUnit?, subBusinessUnit?,
               serviceDescription?, processes?}
        plan_id: Existing plan to update; None creates a new plan.

    Returns:
        (ContinuityPlan, created) tuple.

    Raises:
        ValidationError: name / serviceName missing, or a malformed process.
        NotFoundError: plan_id given but unknown.
    """
    fields = _parse_plan_fields(data)
    processes = _parse_processes(data) if "processes" in data else None

    if plan_id is None:
        plan = plan_store.insert_plan(fields, processes=processes)
        created = True
    else:
        plan = plan_store.update_plan(plan_id, fields, processes=processes)
        if plan is None:
            raise NotFoundError(resource="BCP", resource_id=plan_id)
        created = False

    logger.info(
        "BCP %s", "created" if created else "updated",
        extra={"plan_id": plan.id, "event_type": "bcp_saved"},
    )
    return plan, created


def save_processes(plan_id, data):
    """Step 1 (processes half): replace the plan's processes. Returns row count."""
    processes = _parse_processes(data)
    _ensure_plan(plan_id)
    count = plan_store.replace_processes(plan_id, processes)
    logger.info("Processes saved bcp=%s count=%d", plan_id, count, extra={"plan_id": plan_id})
    return count


def save_impact_analysis(plan_id, data):
    """Step 2: replace the business impact analysis record."""
    record = _parse_impact(data)
    _ensure_plan(plan_id)
    plan_store.replace_impact_record(plan_id, record)
    logger.info(
        "BIA saved bcp=%s dependencies=%d", plan_id, len(record["dependencies"]),
        extra={"plan_id": plan_id},
    )
    return record


def save_communications(plan_id, data):
    """Step 3: replace the communication contacts. Returns row count."""
    contacts = _parse_communications(data)
    _ensure_plan(plan_id)
    count = plan_store.replace_communications(plan_id, contacts)
    logger.info("Communications saved bcp=%s count=%d", plan_id, count, extra={"plan_id": plan_id})
    return count


def save_risks(plan_id, data):
    """Step 4: replace the risk note. A blank description clears it.

    The ``description`` key must be present; an absent key is a malformed
    submission, not a request to clear.

    Returns:
        Number of risk rows now stored (0 or 1).
    """
    if "description" not in data:
        raise ValidationError("description is required", details={"description": "required"})
    description = data.get("description")
    if description is not None and not isinstance(description, str):
        raise ValidationError("description must be a string", details={"description": "must be a string"})
    _ensure_plan(plan_id)
    count = plan_store.replace_risk_notes(plan_id, description or "")
    logger.info("Risks saved bcp=%s count=%d", plan_id, count, extra={"plan_id": plan_id})
    return count


# ── Demo data ────────────────────────────────────────────────────────────

_DEMO_PLAN = {
    "name": "Payments Platform BCP",
    "businessUnit": "Operations",
    "subBusinessUnit": "Card Services",
    "serviceName": "Card Payments",
    "serviceDescription": "Authorisation and settlement of card transactions.",
    "processes": [
        {
            "name": "Authorisation",
            "sites": ["London DC", "Dublin DC"],
            "primaryOwner": {"name": "Alex Morgan", "email": "alex.morgan@example.com"},
            "backupOwner": {"name": "Sam Patel", "email": "sam.patel@example.com"},
        },
        {
            "name": "Settlement",
            "sites": ["London DC"],
            "primaryOwner": {"name": "Jordan Lee", "email": "jordan.lee@example.com"},
            "backupOwner": {"name": "Chris Kim", "email": "chris.kim@example.com"},
        },
    ],
}


def seed_demo_plan():
    """Run all four wizard steps for a demo plan. Returns the plan id."""
    plan, _ = save_plan(_DEMO_PLAN)
    save_impact_analysis(plan.id, {
        "criticalityUnit": CriticalityUnit.HOURS.value,
        "criticalityValue": 4,
        "headcountRequirement": 12,
        "dependencies": [
            {"type": DependencyType.IT.value, "description": "Card switch"},
            {"type": DependencyType.EXTERNAL.value, "description": "Card scheme network"},
        ],
    })
    save_communications(plan.id, {"communications": [
        {"name": "Incident Desk", "email": "incident@example.com", "type": ContactType.GROUP.value},
        {"name": "Payments Leads", "email": "payments-leads@example.com",
         "type": ContactType.DISTRIBUTION_LIST.value},
    ]})
    save_risks(plan.id, {"description": "Single card switch vendor; no warm standby in Dublin."})
    return plan.id

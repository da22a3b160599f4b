"""
BCP Wizard Backend
BCP blueprint — wizard step endpoints + report endpoints.

Endpoints summary:
    WIZARD   /api/bcp                          POST   (step 1: create / update plan)
             /api/bcp/<id>/processes           POST   (step 1: processes)
             /api/bcp/<id>/bia                 POST   (step 2: business impact analysis)
             /api/bcp/<id>/communications      POST   (step 3: communication contacts)
             /api/bcp/<id>/risks               POST   (step 4: risk assessment)

    REPORTS  /api/bcps                         GET    (newest first)
             /api/bcp/<id>/report              GET    (plan + all child sets)

Service layer owns validation, storage and commits; routes only unpack the
request and shape the response.
"""

import logging

from flask import Blueprint, jsonify, request
from werkzeug.exceptions import HTTPException

from bcp.core.exceptions import NotFoundError, StorageError, ValidationError
from bcp.services import report_service, wizard_service
from bcp.utils.errors import E, api_error

logger = logging.getLogger(__name__)

bcp_bp = Blueprint("bcp", __name__, url_prefix="/api")


# ── Error handlers ───────────────────────────────────────────────────────────


@bcp_bp.errorhandler(ValidationError)
def _handle_validation(error: ValidationError):
    code = E.VALIDATION_REQUIRED if "required" in error.details.values() else E.VALIDATION_INVALID
    return api_error(code, str(error), details=error.details)


@bcp_bp.errorhandler(NotFoundError)
def _handle_not_found(error: NotFoundError):
    return api_error(E.NOT_FOUND, f"{error.resource} not found")


@bcp_bp.errorhandler(StorageError)
def _handle_storage(error: StorageError):
    logger.error("Storage failure endpoint=%s op=%s bcp=%s",
                 request.endpoint, error.operation, error.plan_id)
    return api_error(E.DATABASE, "Database error")


@bcp_bp.errorhandler(Exception)
def _handle_unexpected(error: Exception):
    if isinstance(error, HTTPException):
        return error
    logger.exception("Unexpected error in bcp_bp endpoint=%s", request.endpoint)
    return api_error(E.INTERNAL, "Internal server error")


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        if request.content_length:
            raise ValidationError("Request body must be valid JSON", details={"body": "invalid JSON"})
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


# ═════════════════════════════════════════════════════════════════════════
#  WIZARD STEPS
# ═════════════════════════════════════════════════════════════════════════


@bcp_bp.route("/bcp", methods=["POST"])
def create_bcp():
    """Step 1: create a plan (or update one when ``id`` is supplied).

    Body: {name, serviceName, businessUnit?, subBusinessUnit?,
           serviceDescription?, id?, processes?}
    Returns: {id, message} — 201 on create, 200 on update.
    """
    data = _json_body()
    plan, created = wizard_service.save_plan(data, plan_id=data.get("id") or None)
    if created:
        return jsonify({"id": plan.id, "message": "BCP created successfully"}), 201
    return jsonify({"id": plan.id, "message": "BCP updated successfully"}), 200


@bcp_bp.route("/bcp/<string:bcp_id>/processes", methods=["POST"])
def save_processes(bcp_id):
    """Body: {processes: [{name, sites[], primaryOwner{name,email}, backupOwner{name,email}}]}"""
    wizard_service.save_processes(bcp_id, _json_body())
    return jsonify({"message": "Processes saved successfully"})


@bcp_bp.route("/bcp/<string:bcp_id>/bia", methods=["POST"])
def save_bia(bcp_id):
    """Body: {criticalityUnit, criticalityValue, headcountRequirement, dependencies: [{type, description}]}"""
    wizard_service.save_impact_analysis(bcp_id, _json_body())
    return jsonify({"message": "BIA data saved successfully"})


@bcp_bp.route("/bcp/<string:bcp_id>/communications", methods=["POST"])
def save_communications(bcp_id):
    wizard_service.save_communications(bcp_id, _json_body())
    return jsonify({"message": "Communications saved successfully"})


@bcp_bp.route("/bcp/<string:bcp_id>/risks", methods=["POST"])
def save_risks(bcp_id):
    wizard_service.save_risks(bcp_id, _json_body())
    return jsonify({"message": "Risks saved successfully"})


# ═════════════════════════════════════════════════════════════════════════
#  REPORTS
# ═════════════════════════════════════════════════════════════════════════


@bcp_bp.route("/bcps", methods=["GET"])
def list_bcps():
    return jsonify(report_service.list_plans())


@bcp_bp.route("/bcp/<string:bcp_id>/report", methods=["GET"])
def get_report(bcp_id):
    return jsonify(report_service.build_report(bcp_id))

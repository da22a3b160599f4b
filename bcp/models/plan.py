"""
BCP Wizard Backend
Continuity plan domain models.

Models:
    - ContinuityPlan: one row per business-continuity plan (wizard step 1)
    - Process: business processes of a plan, with sites and owners (step 1)
    - ImpactRecord: business impact analysis (step 2)
    - CommunicationContact: people / lists to notify (step 3)
    - RiskNote: free-text risk assessment (step 4)

Architecture chain: ContinuityPlan → Process / ImpactRecord / CommunicationContact / RiskNote

Child rows are owned by the plan identifier only; each wizard step replaces
its whole child set, so no child has an identity that outlives a submission.
"""

from enum import Enum

from bcp.models import db
from bcp.utils.helpers import new_id, utcnow


# ── Enumerations ─────────────────────────────────────────────────────────────

class CriticalityUnit(str, Enum):
    HOURS = "Hours"
    DAYS = "Days"


class DependencyType(str, Enum):
    UPSTREAM = "Upstream"
    IT = "IT"
    EQUIPMENT = "Equipment"
    EXTERNAL = "External"


class ContactType(str, Enum):
    INDIVIDUAL = "individual"
    GROUP = "group"
    DISTRIBUTION_LIST = "distribution_list"


def _iso(value):
    return value.isoformat() if value else None


# ═══════════════════════════════════════════════════════════════════════════
#  PLAN
# ═══════════════════════════════════════════════════════════════════════════

class ContinuityPlan(db.Model):
    """A business-continuity plan for one service."""

    __tablename__ = "bcps"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(200), nullable=False)
    business_unit = db.Column(db.String(200), nullable=True)
    sub_business_unit = db.Column(db.String(200), nullable=True)
    service_name = db.Column(db.String(200), nullable=False)
    service_description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "business_unit": self.business_unit,
            "sub_business_unit": self.sub_business_unit,
            "service_name": self.service_name,
            "service_description": self.service_description,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<ContinuityPlan {self.id}: {self.name[:40]}>"


# ═══════════════════════════════════════════════════════════════════════════
#  STEP 1 — PROCESSES
# ═══════════════════════════════════════════════════════════════════════════

class Process(db.Model):
    """A business process covered by the plan."""

    __tablename__ = "processes"
    __table_args__ = (
        db.Index("idx_processes_bcp_position", "bcp_id", "position"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    bcp_id = db.Column(db.String(36), db.ForeignKey("bcps.id"), nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0, comment="Submission order within the plan")
    name = db.Column(db.String(200), nullable=False)
    sites = db.Column(db.Text, default="[]", comment="JSON list of site names")
    primary_owner_name = db.Column(db.String(200), nullable=True)
    primary_owner_email = db.Column(db.String(255), nullable=True)
    backup_owner_name = db.Column(db.String(200), nullable=True)
    backup_owner_email = db.Column(db.String(255), nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "bcp_id": self.bcp_id,
            "name": self.name,
            "sites": self.sites,
            "primary_owner_name": self.primary_owner_name,
            "primary_owner_email": self.primary_owner_email,
            "backup_owner_name": self.backup_owner_name,
            "backup_owner_email": self.backup_owner_email,
        }

    def __repr__(self):
        return f"<Process {self.id}: {self.name[:40]}>"


# ═══════════════════════════════════════════════════════════════════════════
#  STEP 2 — BUSINESS IMPACT ANALYSIS
# ═══════════════════════════════════════════════════════════════════════════

class ImpactRecord(db.Model):
    """Business impact analysis: recovery criticality, headcount and dependencies.

    Only the most recent row per plan is meaningful.
    """

    __tablename__ = "bia_data"
    __table_args__ = (
        db.Index("idx_bia_bcp_position", "bcp_id", "position"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    bcp_id = db.Column(db.String(36), db.ForeignKey("bcps.id"), nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0, comment="Submission order within the plan")
    criticality_unit = db.Column(db.String(10), default=CriticalityUnit.HOURS.value, comment="Hours | Days")
    criticality_value = db.Column(db.Integer, nullable=True)
    headcount_requirement = db.Column(db.Integer, nullable=True)
    dependencies = db.Column(db.Text, default="[]", comment="JSON list of {type, description}")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "bcp_id": self.bcp_id,
            "criticality_unit": self.criticality_unit,
            "criticality_value": self.criticality_value,
            "headcount_requirement": self.headcount_requirement,
            "dependencies": self.dependencies,
        }


# ═══════════════════════════════════════════════════════════════════════════
#  STEP 3 — COMMUNICATIONS
# ═══════════════════════════════════════════════════════════════════════════

class CommunicationContact(db.Model):
    """Someone (or some list) to notify when the plan is invoked."""

    __tablename__ = "communications"
    __table_args__ = (
        db.Index("idx_communications_bcp_position", "bcp_id", "position"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    bcp_id = db.Column(db.String(36), db.ForeignKey("bcps.id"), nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0, comment="Submission order within the plan")
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(30), nullable=False, default=ContactType.INDIVIDUAL.value,
                     comment="individual | group | distribution_list")

    def to_dict(self):
        return {
            "id": self.id,
            "bcp_id": self.bcp_id,
            "name": self.name,
            "email": self.email,
            "type": self.type or ContactType.INDIVIDUAL.value,
        }


# ═══════════════════════════════════════════════════════════════════════════
#  STEP 4 — RISK ASSESSMENT
# ═══════════════════════════════════════════════════════════════════════════

class RiskNote(db.Model):
    """Free-text risk assessment for the plan."""

    __tablename__ = "risks"
    __table_args__ = (
        db.Index("idx_risks_bcp_position", "bcp_id", "position"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    bcp_id = db.Column(db.String(36), db.ForeignKey("bcps.id"), nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0, comment="Submission order within the plan")
    description = db.Column(db.Text, default="")

    def to_dict(self):
        return {
            "id": self.id,
            "bcp_id": self.bcp_id,
            "description": self.description or "",
        }


# Report section name → child model
CHILD_TABLES = {
    "processes": Process,
    "bia": ImpactRecord,
    "communications": CommunicationContact,
    "risks": RiskNote,
}

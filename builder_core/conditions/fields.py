"""Lead/contact fields that trigger conditions can test."""

from typing import Dict, List, Optional

from pydantic import BaseModel

from builder_core.models.conditions import FieldType


class FieldDefinition(BaseModel):
    value: str
    label: str
    type: FieldType
    category: str
    options: List[str] = []


def _field(value: str, label: str, type: FieldType, category: str,
           options: Optional[List[str]] = None) -> FieldDefinition:
    return FieldDefinition(
        value=value, label=label, type=type, category=category, options=options or []
    )


LEAD_FIELDS: List[FieldDefinition] = [
    # Contact information
    _field("email", "Email", FieldType.TEXT, "contact"),
    _field("phone", "Phone", FieldType.TEXT, "contact"),
    _field("first_name", "First Name", FieldType.TEXT, "contact"),
    _field("last_name", "Last Name", FieldType.TEXT, "contact"),

    # Demographics
    _field("country", "Country", FieldType.SELECT, "demographics", [
        "Canada", "United States", "India", "Philippines", "Nigeria", "Pakistan", "Bangladesh",
    ]),
    _field("state", "State/Province", FieldType.SELECT, "demographics", [
        "Manitoba", "Ontario", "British Columbia", "Alberta", "Saskatchewan", "Quebec",
    ]),
    _field("city", "City", FieldType.SELECT, "demographics"),
    _field("student_type", "Student Type", FieldType.SELECT, "demographics", [
        "Domestic", "International",
    ]),

    # Academic
    _field("program_interest", "Program Interest", FieldType.ARRAY, "academic", [
        "Health Care Assistant", "Aviation", "Education Assistant", "Hospitality", "ECE", "MLA",
    ]),
    _field("qualification_stage", "Qualification Stage", FieldType.SELECT, "academic", [
        "New", "Qualifying", "Qualified", "Application", "Enrolled",
    ]),
    _field("substage", "Substage", FieldType.SELECT, "academic"),
    _field("tags", "Tags", FieldType.ARRAY, "academic"),

    # Source tracking
    _field("source", "Lead Source", FieldType.SELECT, "source", [
        "Web", "Social Media", "Event", "Agent", "Email", "Referral",
        "Phone", "Walk-in", "Chatbot", "Ads", "Forms",
    ]),
    _field("utm_source", "UTM Source", FieldType.TEXT, "source"),
    _field("utm_medium", "UTM Medium", FieldType.TEXT, "source"),
    _field("utm_campaign", "UTM Campaign", FieldType.TEXT, "source"),

    # Engagement
    _field("lead_score", "Lead Score", FieldType.NUMERIC, "engagement"),
    _field("ai_score", "AI Score", FieldType.NUMERIC, "engagement"),
    _field("priority", "Priority", FieldType.SELECT, "engagement", ["Low", "Medium", "High"]),
    _field("status", "Status", FieldType.SELECT, "engagement", [
        "New", "Contacted", "Qualified", "Unqualified", "Converted", "Lost",
    ]),

    # Dates
    _field("created_at", "Created Date", FieldType.DATE, "dates"),
    _field("last_contacted_at", "Last Contacted Date", FieldType.DATE, "dates"),
    _field("next_follow_up_at", "Next Follow-up Date", FieldType.DATE, "dates"),
    _field("assigned_at", "Assigned Date", FieldType.DATE, "dates"),
]

_BY_NAME: Dict[str, FieldDefinition] = {f.value: f for f in LEAD_FIELDS}


def get_field(name: str) -> Optional[FieldDefinition]:
    return _BY_NAME.get(name)


def field_type_for(name: str) -> FieldType:
    """Declared type of a field. Unlisted fields are treated as text."""
    definition = _BY_NAME.get(name)
    return definition.type if definition else FieldType.TEXT


def options_for(name: str) -> List[str]:
    definition = _BY_NAME.get(name)
    return list(definition.options) if definition else []

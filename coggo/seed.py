"""Seed entity and relationship types, plus loose validation of entity fields."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from coggo.model import (
    EntityTypeDefinition,
    FieldDef,
    FieldType,
    RelationshipTypeDefinition,
    parse_time,
)

ERROR = "error"
WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    """One problem with a write; "error" blocks it, "warning" is only logged."""

    field: str
    severity: str
    message: str


def seed_entity_types(peer_did: str) -> list[EntityTypeDefinition]:
    """Return the starter entity types every fresh peer ships with."""
    return [
        EntityTypeDefinition(
            name="Project",
            peer_did=peer_did,
            description="Work or efforts with goals and trajectories",
            fields=[
                FieldDef(name="title", type=FieldType.STRING, required=True),
                FieldDef(
                    name="status",
                    type=FieldType.STRING,
                    default="active",
                    description="active | paused | completed | abandoned",
                ),
                FieldDef(name="description", type=FieldType.STRING),
                FieldDef(
                    name="completion_estimate",
                    type=FieldType.NUMBER,
                    description="0-100 estimate of completion",
                ),
                FieldDef(name="tags", type=FieldType.LIST_OF, element_type=FieldType.STRING),
                FieldDef(
                    name="external_url",
                    type=FieldType.STRING,
                    description="GitHub URL, project page, etc.",
                ),
            ],
        ),
        EntityTypeDefinition(
            name="Domain",
            peer_did=peer_did,
            description="Life areas (health, finance, social, music, etc.)",
            fields=[
                FieldDef(name="title", type=FieldType.STRING, required=True),
                FieldDef(name="description", type=FieldType.STRING),
                FieldDef(name="tags", type=FieldType.LIST_OF, element_type=FieldType.STRING),
            ],
        ),
        EntityTypeDefinition(
            name="Decision",
            peer_did=peer_did,
            description="Discrete reasoned choices with rationale, alternatives, supersedes",
            fields=[
                FieldDef(
                    name="title",
                    type=FieldType.STRING,
                    required=True,
                    description="One-line summary of the decision",
                ),
                FieldDef(
                    name="rationale",
                    type=FieldType.STRING,
                    required=True,
                    description="Why this was decided",
                ),
                FieldDef(
                    name="alternatives",
                    type=FieldType.LIST_OF,
                    element_type=FieldType.STRING,
                    description="Alternatives considered and rejected",
                ),
                FieldDef(
                    name="context",
                    type=FieldType.STRING,
                    description="Background that led to this decision",
                ),
                FieldDef(name="confidence", type=FieldType.STRING, description="low | medium | high"),
            ],
        ),
        EntityTypeDefinition(
            name="Goal",
            peer_did=peer_did,
            description="Desired states with time horizons",
            fields=[
                FieldDef(name="title", type=FieldType.STRING, required=True),
                FieldDef(name="description", type=FieldType.STRING),
                FieldDef(name="target_date", type=FieldType.TIMESTAMP),
                FieldDef(
                    name="status",
                    type=FieldType.STRING,
                    default="open",
                    description="open | achieved | abandoned | paused",
                ),
                FieldDef(
                    name="success_criteria",
                    type=FieldType.STRING,
                    description="What it looks like when achieved",
                ),
            ],
        ),
        EntityTypeDefinition(
            name="Observation",
            peer_did=peer_did,
            description="Context, learnings, signals that don't fit elsewhere",
            fields=[
                FieldDef(name="text", type=FieldType.STRING, required=True),
                FieldDef(name="tags", type=FieldType.LIST_OF, element_type=FieldType.STRING),
                FieldDef(
                    name="source",
                    type=FieldType.STRING,
                    description="Where this observation came from",
                ),
            ],
        ),
        EntityTypeDefinition(
            name="Setting",
            peer_did=peer_did,
            description="Coggo behavioral settings stored as data",
            fields=[
                FieldDef(name="key", type=FieldType.STRING, required=True),
                FieldDef(name="value", type=FieldType.STRING, required=True),
                FieldDef(name="scope", type=FieldType.STRING, description="global | peer-specific"),
            ],
        ),
    ]


def seed_relationship_types(peer_did: str) -> list[RelationshipTypeDefinition]:
    """Return the starter relationship types every fresh peer ships with."""
    return [
        RelationshipTypeDefinition(
            name="depends_on",
            peer_did=peer_did,
            description="Directional dependency",
            directional=True,
            fields=[
                FieldDef(
                    name="kind",
                    type=FieldType.STRING,
                    description="blocking | soft | informational",
                ),
            ],
        ),
        RelationshipTypeDefinition(
            name="supersedes",
            peer_did=peer_did,
            description="Replacement (decisions, goals)",
            directional=True,
            fields=[FieldDef(name="reason", type=FieldType.STRING)],
        ),
        RelationshipTypeDefinition(
            name="affects",
            peer_did=peer_did,
            description="Entity A affects entity B's state or trajectory",
            directional=True,
            fields=[
                FieldDef(
                    name="nature",
                    type=FieldType.STRING,
                    description="positive | negative | mixed | neutral",
                ),
            ],
        ),
    ]


def _is_timestamp(value: Any) -> bool:
    if isinstance(value, datetime):
        return True
    if not isinstance(value, str) or not value:
        return False
    try:
        parse_time(value)
    except ValueError:
        return False
    return True


def _check_type(value: Any, definition: FieldDef) -> bool:
    if value is None:
        return True
    kind = definition.type
    if kind in (FieldType.STRING, FieldType.REFERENCE):
        return isinstance(value, str)
    if kind == FieldType.NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if kind == FieldType.BOOLEAN:
        return isinstance(value, bool)
    if kind == FieldType.TIMESTAMP:
        return _is_timestamp(value)
    if kind == FieldType.LIST_OF:
        return isinstance(value, list)
    return True


def validate_entity(
    definition: EntityTypeDefinition | None, fields: dict[str, Any] | None
) -> list[ValidationIssue]:
    """Loosely validate fields against a type definition.

    Missing required fields are errors; type mismatches and unknown fields are
    warnings. Missing fields with a default get the default, in place.
    """
    if definition is None:
        return [ValidationIssue(field="", severity=ERROR, message="no type definition supplied")]
    if fields is None:
        fields = {}

    issues: list[ValidationIssue] = []
    known: set[str] = set()
    for field_def in definition.fields:
        known.add(field_def.name)
        if field_def.name not in fields:
            if field_def.default is not None:
                fields[field_def.name] = field_def.default
            elif field_def.required:
                issues.append(
                    ValidationIssue(
                        field=field_def.name, severity=ERROR, message="required field missing"
                    )
                )
            continue
        if not _check_type(fields[field_def.name], field_def):
            issues.append(
                ValidationIssue(
                    field=field_def.name,
                    severity=WARNING,
                    message=f"expected {field_def.type}",
                )
            )
    issues.extend(
        ValidationIssue(
            field=name,
            severity=WARNING,
            message="unknown field; accepted but not in type definition",
        )
        for name in fields
        if name not in known
    )
    return issues


def has_errors(issues: list[ValidationIssue]) -> bool:
    """Report whether any issue has severity "error"."""
    return any(issue.severity == ERROR for issue in issues)
"""
Plan validation against the event schema.

Checks that every event and updating event in a plan matches a schema
definition: known types, the declared parameter set, unique ids, and envelope
references that exist in the plan.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from .exceptions import PlanValidationError
from .factory import ENVELOPE_UNITS
from .model import Plan
from .schema import EventDefinition, SchemaCatalog


@dataclass
class PlanValidationReport:
    """
    Structured validation report for a plan document.

    Event-level findings are keyed by the offending event (or updating event)
    id. Unknown types, duplicate ids, missing parameters and duplicate
    parameter types are errors; unexpected parameters and dangling envelope
    references are warnings, since the engine tolerates both.
    """

    unknown_types: dict[int, str] = field(default_factory=dict)
    unknown_updating_types: dict[int, str] = field(default_factory=dict)
    missing_parameters: dict[int, list[str]] = field(default_factory=dict)
    unexpected_parameters: dict[int, list[str]] = field(default_factory=dict)
    duplicate_ids: list[int] = field(default_factory=list)
    duplicate_parameter_types: dict[int, list[str]] = field(default_factory=dict)
    missing_envelopes: dict[int, list[str]] = field(default_factory=dict)

    def has_errors(self) -> bool:
        """Check if there are any hard errors (unknown types, id conflicts, missing parameters)."""
        return bool(
            self.unknown_types
            or self.unknown_updating_types
            or self.missing_parameters
            or self.duplicate_ids
            or self.duplicate_parameter_types
        )

    def has_warnings(self) -> bool:
        """Check if there are any warnings (unexpected parameters, unknown envelopes)."""
        return bool(self.unexpected_parameters or self.missing_envelopes)

    def is_valid(self) -> bool:
        """Check if validation passed (no errors, warnings are OK)."""
        return not self.has_errors()

    def get_exit_code(self) -> int:
        """
        Get appropriate CLI exit code.

        Returns:
            0: Valid (no errors)
            1: Errors present
            2: Warnings only
        """
        if self.has_errors():
            return 1
        elif self.has_warnings():
            return 2
        else:
            return 0

    def problem_ids(self) -> list[int]:
        """Ids of every event involved in an error, ascending."""
        ids = set(self.unknown_types)
        ids.update(self.unknown_updating_types)
        ids.update(self.missing_parameters)
        ids.update(self.duplicate_ids)
        ids.update(self.duplicate_parameter_types)
        return sorted(ids)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""

        def keyed(mapping: Mapping[int, Any]) -> dict[str, Any]:
            return {str(k): v for k, v in mapping.items()}

        return {
            "unknown_types": keyed(self.unknown_types),
            "unknown_updating_types": keyed(self.unknown_updating_types),
            "missing_parameters": keyed(self.missing_parameters),
            "unexpected_parameters": keyed(self.unexpected_parameters),
            "duplicate_ids": list(self.duplicate_ids),
            "duplicate_parameter_types": keyed(self.duplicate_parameter_types),
            "missing_envelopes": keyed(self.missing_envelopes),
            "has_errors": self.has_errors(),
            "has_warnings": self.has_warnings(),
            "is_valid": self.is_valid(),
            "exit_code": self.get_exit_code(),
        }

    def __str__(self) -> str:
        """Human-readable string representation."""
        lines = []

        if self.is_valid():
            lines.append("✅ Validation passed")
        else:
            lines.append("❌ Validation failed")

        for event_id, event_type in self.unknown_types.items():
            lines.append(f"Unknown event type: {event_type} (event {event_id})")

        for event_id, event_type in self.unknown_updating_types.items():
            lines.append(f"Unknown updating event type: {event_type} (event {event_id})")

        if self.duplicate_ids:
            lines.append(f"Duplicate ids: {', '.join(str(i) for i in self.duplicate_ids)}")

        for event_id, names in self.missing_parameters.items():
            lines.append(f"Missing parameters in event {event_id}: {', '.join(names)}")

        for event_id, names in self.duplicate_parameter_types.items():
            lines.append(f"Duplicate parameters in event {event_id}: {', '.join(names)}")

        for event_id, names in self.unexpected_parameters.items():
            lines.append(f"Unexpected parameters in event {event_id}: {', '.join(names)}")

        for event_id, names in self.missing_envelopes.items():
            lines.append(f"Unknown envelopes in event {event_id}: {', '.join(names)}")

        return "\n".join(lines)


@dataclass
class _Node:
    id: int
    type: str
    parameters: list[tuple[str, Any]]
    parent_type: str | None = None


def _iter_nodes(plan: Plan | Mapping[str, Any]) -> Iterator[_Node]:
    # Raw documents are walked as-is so duplicate parameter entries survive
    if isinstance(plan, Plan):
        for event in plan.events:
            yield _Node(event.id, event.type, [(p.type, p.value) for p in event.parameters])
            for updating in event.updating_events:
                yield _Node(
                    updating.id,
                    updating.type,
                    [(p.type, p.value) for p in updating.parameters],
                    parent_type=event.type,
                )
        return

    for event in plan.get("events") or []:
        yield _Node(
            event.get("id"),
            str(event.get("type")),
            [(p.get("type"), p.get("value")) for p in event.get("parameters") or []],
        )
        for updating in event.get("updating_events") or []:
            yield _Node(
                updating.get("id"),
                str(updating.get("type")),
                [(p.get("type"), p.get("value")) for p in updating.get("parameters") or []],
                parent_type=str(event.get("type")),
            )


def _envelope_names(plan: Plan | Mapping[str, Any]) -> set[str]:
    if isinstance(plan, Plan):
        return set(plan.envelope_names())
    return {str(e.get("name")) for e in plan.get("envelopes") or []}


def _definition_for(node: _Node, schema: SchemaCatalog) -> EventDefinition | None:
    if node.parent_type is None:
        if node.type not in schema.event_types():
            return None
        return schema.event_definition(node.type)
    parent = schema.event_definition(node.parent_type)
    if parent is None:
        return None
    for updating in parent.updating_events:
        if updating.type == node.type:
            return updating
    return None


def validate_plan(plan: Plan | Mapping[str, Any], schema: SchemaCatalog) -> PlanValidationReport:
    """
    Validate a plan (or a raw plan document) against the schema.

    Args:
        plan: A :class:`Plan`, or the JSON document mapping it was loaded from
        schema: Event schema catalog

    Returns:
        PlanValidationReport with all findings
    """
    report = PlanValidationReport()
    envelopes = _envelope_names(plan)
    seen_ids: set[Any] = set()

    for node in _iter_nodes(plan):
        if node.id in seen_ids:
            if node.id not in report.duplicate_ids:
                report.duplicate_ids.append(node.id)
        else:
            seen_ids.add(node.id)

        definition = _definition_for(node, schema)
        if definition is None:
            if node.parent_type is None:
                report.unknown_types[node.id] = node.type
            else:
                report.unknown_updating_types[node.id] = node.type
            continue

        provided = [name for name, _value in node.parameters]
        expected = [p.type for p in definition.parameters]

        missing = [name for name in expected if name not in provided]
        if missing:
            report.missing_parameters[node.id] = missing

        unexpected = [name for name in dict.fromkeys(provided) if name not in expected]
        if unexpected:
            report.unexpected_parameters[node.id] = unexpected

        duplicates = [
            name for name in dict.fromkeys(provided) if provided.count(name) > 1
        ]
        if duplicates:
            report.duplicate_parameter_types[node.id] = duplicates

        dangling = []
        for name, value in node.parameters:
            pdef = definition.parameter(name)
            if pdef is None or pdef.parameter_units != ENVELOPE_UNITS:
                continue
            if isinstance(value, str) and value and value not in envelopes:
                dangling.append(value)
        if dangling:
            report.missing_envelopes[node.id] = list(dict.fromkeys(dangling))

    return report


def assert_valid(plan: Plan | Mapping[str, Any], schema: SchemaCatalog) -> PlanValidationReport:
    """
    Validate a plan and raise when it has errors.

    Returns:
        The report, which may still carry warnings

    Raises:
        PlanValidationError: If the report has errors
    """
    report = validate_plan(plan, schema)
    if report.has_errors():
        title = plan.title if isinstance(plan, Plan) else str(plan.get("title", ""))
        raise PlanValidationError(
            title,
            "Plan does not match the event schema",
            report=report,
            problem_ids=report.problem_ids(),
        )
    return report

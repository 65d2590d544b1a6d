"""
Event factory and plan mutations for LifePlanLab.

Every function here is pure: it takes a plan and returns the next plan value,
built on a deep copy, and never modifies its input. Callers (the editor) can
therefore compute and check the complete next state before recording it in
history, and a failure partway through leaves nothing half-applied.
"""

from __future__ import annotations

import logging
import math
import warnings
from collections.abc import Mapping
from datetime import date
from typing import Any

from .clone import clone_plan
from .dates import (
    date_string_to_days_since_birth,
    days_since_birth_to_date_string,
    format_date,
    parse_date,
    today_days_since_birth,
)
from .errors import EventNotFound, InvalidParameterValue, UnknownEventType
from .model import (
    BaseEvent,
    Event,
    EventFunction,
    Parameter,
    ParameterValue,
    Plan,
    UpdatingEvent,
    find_event,
    next_event_id,
)
from .schema import EventDefinition, SchemaCatalog

logger = logging.getLogger(__name__)

DATE_UNITS = "date"
ENVELOPE_UNITS = "envelope"

_SETTINGS_FIELDS = {
    "title",
    "birth_date",
    "inflation_rate",
    "adjust_for_inflation",
    "retirement_goal",
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def check_parameter_value(value: Any) -> ParameterValue:
    """
    Ensure a value can be stored on a parameter.

    Raises:
        InvalidParameterValue: If the value is NaN, infinite, or neither a
            number nor a string
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, str):
        return value
    if _is_number(value):
        if isinstance(value, float) and not math.isfinite(value):
            raise InvalidParameterValue(f"Parameter value must be finite, got {value!r}")
        return value
    raise InvalidParameterValue(
        f"Parameter value must be a number or string, got {type(value).__name__}"
    )


def _provision_envelopes(plan: Plan, schema: SchemaCatalog, definition: EventDefinition) -> None:
    present = set(plan.envelope_names())
    for param in definition.parameters:
        if param.parameter_units != ENVELOPE_UNITS:
            continue
        name = param.default
        if not isinstance(name, str) or not name or name in present:
            continue
        template = schema.default_envelope(name)
        if template is None:
            logger.warning(
                "Event type '%s' defaults '%s' to envelope '%s' which is not in the schema catalog",
                definition.type,
                param.type,
                name,
            )
            continue
        plan.envelopes.append(template)
        present.add(name)
        logger.debug("Provisioned default envelope '%s'", name)


def _normalize_overrides(
    definition: EventDefinition, overrides: Mapping[Any, Any] | None
) -> dict[str, Any]:
    normalized: dict[str, Any] = {}
    for key, value in (overrides or {}).items():
        if isinstance(key, int) and not isinstance(key, bool):
            warnings.warn(
                "Parameter overrides keyed by position are deprecated; "
                "key them by parameter type instead",
                DeprecationWarning,
                stacklevel=3,
            )
            if not 0 <= key < len(definition.parameters):
                logger.warning(
                    "Ignoring override at position %d for '%s'", key, definition.type
                )
                continue
            key = definition.parameters[key].type
        normalized[str(key)] = value
    return normalized


def _build_parameters(
    definition: EventDefinition,
    overrides: Mapping[str, Any],
    base_day: int,
    birth_date: str,
) -> list[Parameter]:
    params: list[Parameter] = []
    for pdef in definition.parameters:
        if pdef.type in overrides:
            value = overrides[pdef.type]
        else:
            value = pdef.default
        if value is None:
            value = ""
        if pdef.parameter_units == DATE_UNITS and _is_number(value):
            # Defaults are authored as day offsets, stored as absolute dates
            value = days_since_birth_to_date_string(base_day + value, birth_date)
        params.append(Parameter(type=pdef.type, value=check_parameter_value(value)))

    unknown = set(overrides) - {p.type for p in definition.parameters}
    if unknown:
        logger.warning(
            "Ignoring overrides not declared for '%s': %s",
            definition.type,
            ", ".join(sorted(unknown)),
        )
    return params


def _build_functions(definition: EventDefinition) -> list[EventFunction]:
    return [
        EventFunction(title=part.title, enabled=part.default_state)
        for part in definition.event_functions_parts
    ]


def _require_definition(schema: SchemaCatalog, event_type: str) -> EventDefinition:
    definition = schema.event_definition(event_type)
    if definition is None:
        raise UnknownEventType(event_type)
    return definition


def add_event(
    plan: Plan,
    schema: SchemaCatalog,
    event_type: str,
    today: date | str,
    overrides: Mapping[str, Any] | None = None,
    replace_existing: bool = False,
) -> tuple[Plan, int]:
    """
    Create a main event from its schema definition and append it to the plan.

    Date parameters whose resolved value is numeric are read as day offsets
    from ``today`` and stored as absolute ``YYYY-MM-DD`` strings.

    Args:
        plan: Current plan (not modified)
        schema: Event schema catalog
        event_type: Schema type of the new event
        today: The current calendar date
        overrides: Parameter values that replace schema defaults, keyed by
            parameter type
        replace_existing: Remove every existing event of ``event_type`` first

    Returns:
        ``(next_plan, new_id)``

    Raises:
        UnknownEventType: If the schema has no entry for ``event_type``
    """
    definition = _require_definition(schema, event_type)
    overrides = _normalize_overrides(definition, overrides)
    new_plan = clone_plan(plan)

    if replace_existing:
        new_plan.events = [e for e in new_plan.events if e.type != event_type]

    _provision_envelopes(new_plan, schema, definition)

    base_day = today_days_since_birth(new_plan.birth_date, today)
    event = Event(
        id=next_event_id(new_plan),
        type=event_type,
        title=definition.display_type,
        description="",
        is_recurring=bool(definition.is_recurring),
        parameters=_build_parameters(definition, overrides, base_day, new_plan.birth_date),
        event_functions=_build_functions(definition),
    )
    new_plan.events.append(event)
    logger.debug("Added event %s (%s)", event.id, event_type)
    return new_plan, event.id


def add_updating_event(
    plan: Plan,
    schema: SchemaCatalog,
    parent_id: int,
    event_type: str,
    today: date | str,
    overrides: Mapping[str, Any] | None = None,
) -> tuple[Plan, int]:
    """
    Create an updating event under the main event ``parent_id``.

    Numeric date values resolve relative to the parent's ``start_time``
    rather than today; ``today`` is the fallback when the parent has no valid
    start date.

    Raises:
        UnknownEventType: If the schema has no entry for ``event_type``
        EventNotFound: If ``parent_id`` is not a main event of the plan
    """
    definition = _require_definition(schema, event_type)
    overrides = _normalize_overrides(definition, overrides)
    new_plan = clone_plan(plan)

    parent, grandparent = find_event(new_plan, parent_id)
    if parent is None or grandparent is not None:
        raise EventNotFound(parent_id)

    declared = schema.updating_event_types(parent.type)
    if event_type not in declared:
        logger.warning(
            "Updating event type '%s' is not declared under '%s'", event_type, parent.type
        )

    _provision_envelopes(new_plan, schema, definition)

    base_day = date_string_to_days_since_birth(
        parent.get_value("start_time", ""), new_plan.birth_date
    )
    if base_day is None:
        base_day = today_days_since_birth(new_plan.birth_date, today)

    updating = UpdatingEvent(
        id=next_event_id(new_plan),
        type=event_type,
        title=definition.display_type,
        description="",
        is_recurring=bool(definition.is_recurring),
        parameters=_build_parameters(definition, overrides, base_day, new_plan.birth_date),
        event_functions=_build_functions(definition),
    )
    parent.updating_events.append(updating)
    logger.debug("Added updating event %s (%s) under %s", updating.id, event_type, parent_id)
    return new_plan, updating.id


def delete_event(plan: Plan, event_id: int) -> Plan:
    """
    Remove an event or updating event.

    Deleting a main event removes its updating events with it. When
    ``event_id`` is not in the plan the input plan object is returned as-is.
    """
    node, parent = find_event(plan, event_id)
    if node is None:
        return plan
    new_plan = clone_plan(plan)
    if parent is None:
        new_plan.events = [e for e in new_plan.events if e.id != event_id]
    else:
        for event in new_plan.events:
            if event.id == parent.id:
                event.updating_events = [
                    u for u in event.updating_events if u.id != event_id
                ]
    return new_plan


def _edit_node(plan: Plan, event_id: int) -> tuple[Plan, BaseEvent]:
    new_plan = clone_plan(plan)
    node, _parent = find_event(new_plan, event_id)
    if node is None:
        raise EventNotFound(event_id)
    return new_plan, node


def update_parameter(
    plan: Plan, event_id: int, parameter_type: str, value: Any
) -> Plan:
    """
    Replace the value of one parameter on an event or updating event.

    Unit coercion (percentages as fractions, currency rounded to cents) is the
    caller's job; this only refuses values that cannot be stored.

    Raises:
        EventNotFound: If ``event_id`` is not in the plan
        InvalidParameterValue: If ``value`` is NaN, infinite or not a number/string
    """
    value = check_parameter_value(value)
    new_plan, node = _edit_node(plan, event_id)
    for idx, param in enumerate(node.parameters):
        if param.type == parameter_type:
            node.parameters[idx] = Parameter(type=parameter_type, value=value)
            break
    else:
        node.parameters.append(Parameter(type=parameter_type, value=value))
    return new_plan


def update_title(plan: Plan, event_id: int, title: str) -> Plan:
    new_plan, node = _edit_node(plan, event_id)
    node.title = str(title)
    return new_plan


def update_description(plan: Plan, event_id: int, description: str) -> Plan:
    new_plan, node = _edit_node(plan, event_id)
    node.description = str(description)
    return new_plan


def update_is_recurring(plan: Plan, event_id: int, is_recurring: bool) -> Plan:
    new_plan, node = _edit_node(plan, event_id)
    node.is_recurring = bool(is_recurring)
    return new_plan


def set_event_function(plan: Plan, event_id: int, title: str, enabled: bool) -> Plan:
    """Enable or disable an event function toggle, adding it if missing."""
    new_plan, node = _edit_node(plan, event_id)
    for func in node.event_functions:
        if func.title == title:
            func.enabled = bool(enabled)
            break
    else:
        node.event_functions.append(EventFunction(title=title, enabled=bool(enabled)))
    return new_plan


def update_plan_settings(plan: Plan, **fields: Any) -> Plan:
    """
    Update plan-level settings.

    Accepted keys: ``title``, ``birth_date``, ``inflation_rate``,
    ``adjust_for_inflation``, ``retirement_goal``.

    Raises:
        TypeError: For any other key
        InvalidDateString: If ``birth_date`` is malformed
        InvalidParameterValue: If a numeric setting is NaN or infinite
    """
    unknown = set(fields) - _SETTINGS_FIELDS
    if unknown:
        raise TypeError(f"Unknown plan settings: {', '.join(sorted(unknown))}")

    new_plan = clone_plan(plan)
    if "title" in fields:
        new_plan.title = str(fields["title"])
    if "birth_date" in fields:
        new_plan.birth_date = format_date(parse_date(fields["birth_date"]))
    for key in ("inflation_rate", "retirement_goal"):
        if key in fields:
            value = check_parameter_value(fields[key])
            if not _is_number(value):
                raise InvalidParameterValue(f"{key} must be numeric, got {value!r}")
            setattr(new_plan, key, float(value))
    if "adjust_for_inflation" in fields:
        new_plan.adjust_for_inflation = bool(fields["adjust_for_inflation"])
    return new_plan

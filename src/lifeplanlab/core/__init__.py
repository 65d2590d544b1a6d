"""
Core module for LifePlanLab.

This module contains the plan document model, the schema catalog, the
recurrence engine and the editing history.
"""

from .clone import clone_plan
from .dates import (
    date_string_to_days_since_birth,
    days_since_birth_to_date_string,
    frequency_days_for,
    get_age_from_date_strings,
    get_age_from_days,
    get_days_from_age,
)
from .editor import EditorConfig, PlanEditor
from .envelopes import (
    add_envelope,
    delete_envelope,
    is_system_envelope,
    update_envelope,
)
from .errors import (
    ConfigError,
    EventNotFound,
    HistoryBoundary,
    InvalidDateString,
    InvalidParameterValue,
    PlanError,
    ReadOnlyEnvelope,
    UnknownEventType,
    UnknownParameter,
)
from .exceptions import PlanValidationError
from .factory import (
    add_event,
    add_updating_event,
    delete_event,
    set_event_function,
    update_description,
    update_is_recurring,
    update_parameter,
    update_plan_settings,
    update_title,
)
from .history import HistoryStack
from .model import (
    Envelope,
    Event,
    EventFunction,
    Parameter,
    Plan,
    UpdatingEvent,
    find_event,
    iter_all_events,
    iter_all_ids,
    next_event_id,
)
from .persistence import load_plan, plan_from_json, plan_to_json, save_plan
from .recurrence import (
    ExpansionConfig,
    LinearProjection,
    Occurrence,
    OccurrenceGroup,
    effective_scale,
    event_frequency_days,
    expand,
    flatten,
    group_occurrences,
    linear_projection,
    next_occurrence,
    occurrences_frame,
)
from .schema import SchemaCatalog, SchemaError, load_schema
from .summary import summarize_plan
from .validation import PlanValidationReport, assert_valid, validate_plan
from .workspace import PlanWorkspace

__all__ = [
    # Errors
    "ConfigError",
    "PlanError",
    "UnknownEventType",
    "UnknownParameter",
    "InvalidDateString",
    "HistoryBoundary",
    "EventNotFound",
    "InvalidParameterValue",
    "ReadOnlyEnvelope",
    "PlanValidationError",
    "SchemaError",
    # Model
    "Plan",
    "Event",
    "UpdatingEvent",
    "Parameter",
    "EventFunction",
    "Envelope",
    "find_event",
    "iter_all_events",
    "iter_all_ids",
    "next_event_id",
    "clone_plan",
    # Schema
    "SchemaCatalog",
    "load_schema",
    # Dates
    "date_string_to_days_since_birth",
    "days_since_birth_to_date_string",
    "get_age_from_date_strings",
    "get_age_from_days",
    "get_days_from_age",
    "frequency_days_for",
    # Mutations
    "add_event",
    "add_updating_event",
    "delete_event",
    "update_parameter",
    "update_title",
    "update_description",
    "update_is_recurring",
    "set_event_function",
    "update_plan_settings",
    "add_envelope",
    "update_envelope",
    "delete_envelope",
    "is_system_envelope",
    # Recurrence
    "ExpansionConfig",
    "Occurrence",
    "OccurrenceGroup",
    "LinearProjection",
    "expand",
    "flatten",
    "occurrences_frame",
    "effective_scale",
    "event_frequency_days",
    "group_occurrences",
    "linear_projection",
    "next_occurrence",
    # History and editing
    "HistoryStack",
    "EditorConfig",
    "PlanEditor",
    "PlanWorkspace",
    # Validation, summary, persistence
    "PlanValidationReport",
    "validate_plan",
    "assert_valid",
    "summarize_plan",
    "plan_to_json",
    "plan_from_json",
    "save_plan",
    "load_plan",
]

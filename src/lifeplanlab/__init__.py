"""
LifePlanLab - Temporal Event Model for Personal Financial Plans

LifePlanLab models a person's financial life as a timeline of dated,
parameterized events anchored to a birth date. It turns a plan into the
discrete occurrences a timeline view draws, and keeps every edit undoable.

Key Features:
- **Schema-Driven Events**: Event types, parameters, units and defaults come
  from a YAML/JSON catalog, not from code
- **Recurrence Engine**: Start, end and repeating markers on a day-indexed
  timeline, filtered by zoom level
- **Undo/Redo**: Every edit records one immutable snapshot of the whole plan
- **Compare Mode**: A locked copy of the plan is expanded alongside as shadows

Quick Start:
    ```python
    from lifeplanlab import PlanEditor, Plan, load_schema

    schema = load_schema("schema.yaml")
    editor = PlanEditor(Plan(birth_date="1990-01-01"), schema, today="2026-01-01")
    car_id = editor.add_event("buy_car", {"price": 25000})

    occurrences = editor.expand(zoom_level=2.0)
    for day, items in occurrences.items():
        print(day, [o.display_id for o in items])

    editor.undo()
    ```
"""

# Version information
__version__ = "0.1.0"
__author__ = "LifePlanLab Team"
__description__ = "Temporal event model and recurrence engine for financial plans"

from .core import (
    ConfigError,
    EditorConfig,
    Envelope,
    Event,
    EventNotFound,
    ExpansionConfig,
    HistoryBoundary,
    HistoryStack,
    InvalidDateString,
    InvalidParameterValue,
    Occurrence,
    Parameter,
    Plan,
    PlanEditor,
    PlanError,
    PlanValidationError,
    PlanValidationReport,
    PlanWorkspace,
    ReadOnlyEnvelope,
    SchemaCatalog,
    SchemaError,
    UnknownEventType,
    UnknownParameter,
    UpdatingEvent,
    expand,
    group_occurrences,
    load_plan,
    load_schema,
    occurrences_frame,
    save_plan,
    summarize_plan,
    validate_plan,
)

# Define what gets imported with "from lifeplanlab import *"
__all__ = [
    # Model
    "Plan",
    "Event",
    "UpdatingEvent",
    "Parameter",
    "Envelope",
    # Schema
    "SchemaCatalog",
    "load_schema",
    # Engine
    "ExpansionConfig",
    "Occurrence",
    "expand",
    "occurrences_frame",
    "group_occurrences",
    # Editing
    "HistoryStack",
    "EditorConfig",
    "PlanEditor",
    "PlanWorkspace",
    # Validation, summary, persistence
    "PlanValidationReport",
    "validate_plan",
    "summarize_plan",
    "save_plan",
    "load_plan",
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
]

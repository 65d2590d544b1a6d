"""Loading and lookup for the event schema catalog (YAML/JSON sources)."""

from __future__ import annotations

import json
import logging
from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import UnknownParameter
from .model import Envelope

__all__ = [
    "SchemaError",
    "ParameterDefinition",
    "FunctionPart",
    "EventDefinition",
    "SchemaEntry",
    "SchemaCatalog",
    "load_schema",
]

logger = logging.getLogger(__name__)

DEFAULT_EVENT_WEIGHT = 100


class SchemaError(ValueError):
    """Raised when a schema file cannot be parsed or validated."""


@dataclass(slots=True)
class ParameterDefinition:
    """Schema declaration of one parameter of an event type."""

    type: str
    display_name: str
    parameter_units: str = ""
    description: str = ""
    default: Any = None
    options: list[Any] = field(default_factory=list)
    editable: bool = True


@dataclass(slots=True)
class FunctionPart:
    """Optional toggleable behaviour of an event type."""

    title: str
    description: str = ""
    icon: str = ""
    default_state: bool = True


@dataclass(slots=True)
class EventDefinition:
    """Schema declaration of an event type (main or updating)."""

    type: str
    display_type: str
    category: str = ""
    description: str = ""
    icon: str = ""
    weight: float = DEFAULT_EVENT_WEIGHT
    parameters: list[ParameterDefinition] = field(default_factory=list)
    updating_events: list[EventDefinition] = field(default_factory=list)
    can_be_reocurring: bool | None = None
    is_recurring: bool = False
    disclaimer: str = ""
    display_event: bool = True
    event_functions_parts: list[FunctionPart] = field(default_factory=list)
    onboarding_stage: str | None = None

    def parameter(self, parameter_type: str) -> ParameterDefinition | None:
        for param in self.parameters:
            if param.type == parameter_type:
                return param
        return None


@dataclass(slots=True)
class SchemaEntry:
    """Flattened lookup row: a definition and the type that owns it, if nested."""

    definition: EventDefinition
    parent_type: str | None = None


class SchemaCatalog:
    """
    Read-only event schema with a flattened type lookup.

    The catalog is built once per schema load. Main event types and every
    nested updating-event type are indexed in one table, so lookups never
    repeat the two-level search. All accessors are total: a miss returns a
    safe fallback instead of raising.

    **Example Usage:**
        ```python
        from lifeplanlab.core.schema import load_schema

        schema = load_schema("schema.yaml")
        schema.parameter_display_name("buy_car", "price")  # 'Price'
        schema.parameter_units("buy_car", "start_time")    # 'date'
        schema.parameter_units("buy_car", "unknown")       # ''
        ```
    """

    def __init__(
        self,
        events: list[EventDefinition],
        default_envelopes: list[Envelope] | None = None,
        envelope_categories: list[str] | None = None,
        metadata: dict[str, Any] | None = None,
        source: str = "<memory>",
    ):
        self.events = list(events)
        self.default_envelopes = list(default_envelopes or [])
        self.envelope_categories = list(envelope_categories or [])
        self.metadata = dict(metadata or {})
        self.source = source
        self._entries: dict[str, SchemaEntry] = {}
        self._updating_definitions: list[EventDefinition] = []
        self._build_index()

    def _build_index(self) -> None:
        for definition in self.events:
            if definition.type in self._entries:
                raise SchemaError(
                    f"{self.source}: duplicate event type '{definition.type}'"
                )
            self._entries[definition.type] = SchemaEntry(definition, None)
        for definition in self.events:
            for updating in definition.updating_events:
                self._updating_definitions.append(updating)
                # The first parent to declare a shared updating type owns it
                self._entries.setdefault(
                    updating.type, SchemaEntry(updating, definition.type)
                )

    # ------------------------------------------------------------------
    # Event-level lookups
    # ------------------------------------------------------------------

    def __contains__(self, event_type: str) -> bool:
        return event_type in self._entries

    def event_types(self) -> list[str]:
        """Main event types in catalog order."""
        return [d.type for d in self.events]

    def entry(self, event_type: str) -> SchemaEntry | None:
        return self._entries.get(event_type)

    def event_definition(self, event_type: str) -> EventDefinition | None:
        entry = self._entries.get(event_type)
        return entry.definition if entry else None

    def parent_type(self, event_type: str) -> str | None:
        entry = self._entries.get(event_type)
        return entry.parent_type if entry else None

    def is_updating_type(self, event_type: str) -> bool:
        return self.parent_type(event_type) is not None

    def updating_event_types(self, parent_type: str) -> list[str]:
        definition = self.event_definition(parent_type)
        if definition is None:
            return []
        return [u.type for u in definition.updating_events]

    def event_display_name(self, event_type: str) -> str:
        definition = self.event_definition(event_type)
        return definition.display_type if definition else event_type

    def event_description(self, event_type: str) -> str:
        definition = self.event_definition(event_type)
        return definition.description if definition else ""

    def event_disclaimer(self, event_type: str) -> str:
        definition = self.event_definition(event_type)
        return definition.disclaimer if definition else ""

    def event_category(self, event_type: str) -> str:
        definition = self.event_definition(event_type)
        return definition.category if definition else ""

    def event_weight(self, event_type: str) -> float:
        definition = self.event_definition(event_type)
        return definition.weight if definition else DEFAULT_EVENT_WEIGHT

    def can_be_recurring(self, event_type: str) -> bool | None:
        """Schema ``can_be_reocurring`` flag, ``None`` when undeclared or unknown."""
        definition = self.event_definition(event_type)
        return definition.can_be_reocurring if definition else None

    def is_recurring_default(self, event_type: str) -> bool:
        definition = self.event_definition(event_type)
        return bool(definition.is_recurring) if definition else False

    # ------------------------------------------------------------------
    # Parameter-level lookups
    # ------------------------------------------------------------------

    def parameter_definition(
        self, event_type: str, parameter_type: str
    ) -> ParameterDefinition | None:
        """
        Resolve a parameter declaration.

        The type's own parameter list is searched first; on a miss every
        updating-event definition in the catalog is searched, since updating
        event parameter schemas are not duplicated per parent.
        """
        definition = self.event_definition(event_type)
        if definition is not None:
            found = definition.parameter(parameter_type)
            if found is not None:
                return found
        for updating in self._updating_definitions:
            found = updating.parameter(parameter_type)
            if found is not None:
                return found
        return None

    def require_parameter(
        self, event_type: str, parameter_type: str
    ) -> ParameterDefinition:
        """
        Strict variant of :meth:`parameter_definition`.

        Raises:
            UnknownParameter: If no declaration is found
        """
        found = self.parameter_definition(event_type, parameter_type)
        if found is None:
            raise UnknownParameter(event_type, parameter_type)
        return found

    def parameter_display_name(self, event_type: str, parameter_type: str) -> str:
        found = self.parameter_definition(event_type, parameter_type)
        return found.display_name if found else parameter_type

    def parameter_units(self, event_type: str, parameter_type: str) -> str:
        found = self.parameter_definition(event_type, parameter_type)
        return found.parameter_units if found else ""

    def parameter_description(self, event_type: str, parameter_type: str) -> str:
        found = self.parameter_definition(event_type, parameter_type)
        return found.description if found else ""

    def parameter_default(self, event_type: str, parameter_type: str) -> Any:
        found = self.parameter_definition(event_type, parameter_type)
        return deepcopy(found.default) if found else None

    def parameter_options(self, event_type: str, parameter_type: str) -> list[Any]:
        found = self.parameter_definition(event_type, parameter_type)
        return list(found.options) if found else []

    def parameter_editable(self, event_type: str, parameter_type: str) -> bool:
        found = self.parameter_definition(event_type, parameter_type)
        return found.editable if found else True

    # ------------------------------------------------------------------
    # Envelopes
    # ------------------------------------------------------------------

    def default_envelope(self, name: str) -> Envelope | None:
        """Return a fresh copy of the default envelope template called ``name``."""
        for envelope in self.default_envelopes:
            if envelope.name == name:
                return deepcopy(envelope)
        return None


def load_schema(
    source: str | Path | dict[str, Any], *, format: str | None = None
) -> SchemaCatalog:
    """Parse an event schema from YAML/JSON/dict into a :class:`SchemaCatalog`."""

    mapping, label = _read_source(source, format=format)
    events = [
        _normalize_event(entry, f"{label}::events[{idx}]")
        for idx, entry in enumerate(_ensure_list(mapping.get("events"), f"{label}::events"))
    ]
    envelopes = [
        _normalize_envelope(entry, f"{label}::default_envelopes[{idx}]")
        for idx, entry in enumerate(
            _ensure_list(mapping.get("default_envelopes"), f"{label}::default_envelopes", allow_none=True)
            or []
        )
    ]
    categories = _ensure_list(mapping.get("envelopes"), f"{label}::envelopes", allow_none=True) or []
    metadata = {
        k: deepcopy(v)
        for k, v in mapping.items()
        if k not in {"events", "default_envelopes", "envelopes"}
    }
    catalog = SchemaCatalog(
        events=events,
        default_envelopes=envelopes,
        envelope_categories=[str(c) for c in categories],
        metadata=metadata,
        source=label,
    )
    logger.debug("Loaded schema %s with %d event types", label, len(events))
    return catalog


def _read_source(
    source: str | Path | dict[str, Any], *, format: str | None
) -> tuple[dict[str, Any], str]:
    if isinstance(source, dict):
        return deepcopy(source), "<mapping>"

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(path)

    fmt = (format or path.suffix.lstrip(".")).lower()
    text = path.read_text(encoding="utf-8")
    if fmt in {"yaml", "yml", ""}:
        data = yaml.safe_load(text)
    elif fmt == "json":
        data = json.loads(text)
    else:
        raise SchemaError(f"Unsupported schema format '{fmt}' for {path}")

    if not isinstance(data, dict):
        raise SchemaError(f"Schema root must be a mapping (source={path})")
    return data, str(path)


def _normalize_event(raw: Any, ctx: str) -> EventDefinition:
    data = _ensure_dict(raw, ctx)
    event_type = _coerce_str(data.get("type"), f"{ctx}.type")
    parameters = [
        _normalize_parameter(p, f"{ctx}.parameters[{i}]")
        for i, p in enumerate(_ensure_list(data.get("parameters"), f"{ctx}.parameters", allow_none=True) or [])
    ]
    seen: set[str] = set()
    for param in parameters:
        if param.type in seen:
            raise SchemaError(f"{ctx}: duplicate parameter type '{param.type}'")
        seen.add(param.type)
    updating = [
        _normalize_event(u, f"{ctx}.updating_events[{i}]")
        for i, u in enumerate(
            _ensure_list(data.get("updating_events"), f"{ctx}.updating_events", allow_none=True) or []
        )
    ]
    parts = [
        _normalize_function_part(p, f"{ctx}.event_functions_parts[{i}]")
        for i, p in enumerate(
            _ensure_list(data.get("event_functions_parts"), f"{ctx}.event_functions_parts", allow_none=True)
            or []
        )
    ]
    weight = data.get("weight", DEFAULT_EVENT_WEIGHT)
    if isinstance(weight, bool) or not isinstance(weight, (int, float)):
        raise SchemaError(f"{ctx}.weight must be a number")
    can_recur = data.get("can_be_reocurring")
    if can_recur is not None and not isinstance(can_recur, bool):
        raise SchemaError(f"{ctx}.can_be_reocurring must be boolean when provided")
    return EventDefinition(
        type=event_type,
        display_type=str(data.get("display_type") or event_type),
        category=str(data.get("category") or ""),
        description=str(data.get("description") or ""),
        icon=str(data.get("icon") or ""),
        weight=float(weight),
        parameters=parameters,
        updating_events=updating,
        can_be_reocurring=can_recur,
        is_recurring=bool(data.get("is_recurring", False)),
        disclaimer=str(data.get("disclaimer") or ""),
        display_event=bool(data.get("display_event", True)),
        event_functions_parts=parts,
        onboarding_stage=data.get("onboarding_stage"),
    )


def _normalize_parameter(raw: Any, ctx: str) -> ParameterDefinition:
    data = _ensure_dict(raw, ctx)
    param_type = _coerce_str(data.get("type"), f"{ctx}.type")
    editable = data.get("editable", True)
    if not isinstance(editable, bool):
        raise SchemaError(f"{ctx}.editable must be boolean when provided")
    return ParameterDefinition(
        type=param_type,
        display_name=str(data.get("display_name") or param_type),
        parameter_units=str(data.get("parameter_units") or ""),
        description=str(data.get("description") or ""),
        default=data.get("default"),
        options=list(_ensure_list(data.get("options"), f"{ctx}.options", allow_none=True) or []),
        editable=editable,
    )


def _normalize_function_part(raw: Any, ctx: str) -> FunctionPart:
    data = _ensure_dict(raw, ctx)
    return FunctionPart(
        title=_coerce_str(data.get("title"), f"{ctx}.title"),
        description=str(data.get("description") or ""),
        icon=str(data.get("icon") or ""),
        default_state=bool(data.get("default_state", True)),
    )


def _normalize_envelope(raw: Any, ctx: str) -> Envelope:
    data = _ensure_dict(raw, ctx)
    _coerce_str(data.get("name"), f"{ctx}.name")
    return Envelope.from_dict(data)


def _coerce_str(value: Any, ctx: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise SchemaError(f"{ctx}: expected non-empty string")
    return value


def _ensure_dict(value: Any, ctx: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise SchemaError(f"{ctx}: expected a mapping")
    return value


def _ensure_list(value: Any, ctx: str, *, allow_none: bool = False) -> list[Any] | None:
    if value is None:
        if allow_none:
            return None
        raise SchemaError(f"{ctx}: expected a list")
    if not isinstance(value, list):
        raise SchemaError(f"{ctx}: expected a list")
    return list(value)

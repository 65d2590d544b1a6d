"""
Plan document model for LifePlanLab.

A plan is an ordered list of dated, parameterized events anchored to a birth
date, plus the envelopes (accounts) those events move money between. The
classes here are plain dataclasses that serialize to and from the JSON plan
document verbatim.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Union

logger = logging.getLogger(__name__)

ParameterValue = Union[int, float, str]

GROWTH_MODELS = ("None", "Appreciation", "Daily Compound", "Yearly Compound")

_PLAN_FIELDS = {
    "title",
    "birth_date",
    "inflation_rate",
    "adjust_for_inflation",
    "retirement_goal",
    "events",
    "envelopes",
    "view_start_date",
    "view_end_date",
}


@dataclass
class Parameter:
    """
    A single typed value on an event.

    The parameter carries no unit tag: whether ``value`` is a currency, a
    percentage, a day count, a calendar date or an envelope name is decided by
    the schema's ``parameter_units`` for ``(event.type, parameter.type)``.
    Within one event ``type`` is the only key.
    """

    type: str
    value: ParameterValue

    def to_dict(self, position: int) -> dict[str, Any]:
        return {"id": position, "type": self.type, "value": self.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Parameter:
        return cls(type=str(data["type"]), value=data.get("value", ""))


@dataclass
class EventFunction:
    """On/off toggle materialized from the schema's ``event_functions_parts``."""

    title: str
    enabled: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "enabled": self.enabled}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EventFunction:
        return cls(title=str(data["title"]), enabled=bool(data.get("enabled", True)))


def _parameters_from_list(raw: list[dict[str, Any]] | None, owner: Any) -> list[Parameter]:
    params: list[Parameter] = []
    seen: dict[str, int] = {}
    for entry in raw or []:
        param = Parameter.from_dict(entry)
        if param.type in seen:
            logger.warning(
                "Event %s declares parameter '%s' twice; keeping the last value",
                owner,
                param.type,
            )
            params[seen[param.type]] = param
            continue
        seen[param.type] = len(params)
        params.append(param)
    return params


@dataclass
class BaseEvent:
    """
    Fields shared by main events and updating events.

    Attributes:
        id: Stable identity, unique across the whole plan
        type: Key into the schema catalog
        title: User-editable title
        description: User-editable description
        is_recurring: Whether this instance repeats every ``frequency_days``
        parameters: Typed values, at most one per parameter type
        event_functions: Toggles materialized from the schema
    """

    id: int
    type: str
    title: str = ""
    description: str = ""
    is_recurring: bool = False
    parameters: list[Parameter] = field(default_factory=list)
    event_functions: list[EventFunction] = field(default_factory=list)

    def get_parameter(self, parameter_type: str) -> Parameter | None:
        """Return the parameter entry for ``parameter_type`` if present."""
        for param in self.parameters:
            if param.type == parameter_type:
                return param
        return None

    def get_value(self, parameter_type: str, default: Any = None) -> Any:
        """Return the value of ``parameter_type`` or ``default``."""
        param = self.get_parameter(parameter_type)
        return default if param is None else param.value

    def parameter_map(self) -> dict[str, ParameterValue]:
        """Parameters as a ``{type: value}`` mapping."""
        return {p.type: p.value for p in self.parameters}

    def _base_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "is_recurring": self.is_recurring,
            "parameters": [p.to_dict(i) for i, p in enumerate(self.parameters)],
            "event_functions": [f.to_dict() for f in self.event_functions],
        }

    @staticmethod
    def _base_kwargs(data: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": int(data["id"]),
            "type": str(data["type"]),
            "title": str(data.get("title") or ""),
            "description": str(data.get("description") or ""),
            "is_recurring": bool(data.get("is_recurring", False)),
            "parameters": _parameters_from_list(data.get("parameters"), data.get("id")),
            "event_functions": [
                EventFunction.from_dict(f) for f in data.get("event_functions") or []
            ],
        }


@dataclass
class UpdatingEvent(BaseEvent):
    """A dependent modifier owned by exactly one parent :class:`Event`."""

    def to_dict(self) -> dict[str, Any]:
        return self._base_dict()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UpdatingEvent:
        return cls(**cls._base_kwargs(data))


@dataclass
class Event(BaseEvent):
    """
    A top-level financial action (job, purchase, transfer, recurring bill).

    Deleting an event deletes every updating event it owns.
    """

    updating_events: list[UpdatingEvent] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = self._base_dict()
        data["updating_events"] = [u.to_dict() for u in self.updating_events]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Event:
        return cls(
            **cls._base_kwargs(data),
            updating_events=[
                UpdatingEvent.from_dict(u) for u in data.get("updating_events") or []
            ],
        )


@dataclass
class Envelope:
    """
    A named account or bucket money flows into and out of.

    Attributes:
        name: Unique name within the plan
        category: Grouping used for legends (e.g. 'Savings', 'Debt')
        growth: One of ``GROWTH_MODELS``
        rate: Annual growth rate as a fraction, ignored when growth is 'None'
        account_type: 'regular' or a system account type
        days_of_usefulness: Optional depreciation horizon for asset envelopes
    """

    name: str
    category: str = ""
    growth: str = "None"
    rate: float = 0.0
    account_type: str = "regular"
    days_of_usefulness: float | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "category": self.category,
            "growth": self.growth,
            "rate": self.rate,
            "account_type": self.account_type,
        }
        if self.days_of_usefulness is not None:
            data["days_of_usefulness"] = self.days_of_usefulness
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Envelope:
        return cls(
            name=str(data["name"]),
            category=str(data.get("category") or ""),
            growth=str(data.get("growth") or "None"),
            rate=float(data.get("rate") or 0.0),
            account_type=str(data.get("account_type") or "regular"),
            days_of_usefulness=data.get("days_of_usefulness"),
        )


@dataclass
class Plan:
    """
    Root plan document.

    Attributes:
        title: Plan title
        birth_date: ``YYYY-MM-DD`` anchor for every day-offset computation
        inflation_rate: Annual inflation as a fraction
        adjust_for_inflation: Whether the simulation reports real values
        retirement_goal: Target net worth in currency
        events: Main events in insertion (display) order
        envelopes: Accounts, unique by name
        view_start_date: Last applied visualization window start
        view_end_date: Last applied visualization window end
        extra: Top-level document keys this model does not interpret, kept so
            save/load round trips are lossless
    """

    title: str = "My Plan"
    birth_date: str = "2000-01-01"
    inflation_rate: float = 0.03
    adjust_for_inflation: bool = False
    retirement_goal: float = 0.0
    events: list[Event] = field(default_factory=list)
    envelopes: list[Envelope] = field(default_factory=list)
    view_start_date: str | None = None
    view_end_date: str | None = None
    extra: dict[str, Any] = field(default_factory=dict, repr=False)

    def get_envelope(self, name: str) -> Envelope | None:
        """Return the envelope called ``name`` if present."""
        for envelope in self.envelopes:
            if envelope.name == name:
                return envelope
        return None

    def envelope_names(self) -> list[str]:
        return [e.name for e in self.envelopes]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON plan document shape."""
        data: dict[str, Any] = dict(self.extra)
        data.update(
            {
                "title": self.title,
                "birth_date": self.birth_date,
                "inflation_rate": self.inflation_rate,
                "adjust_for_inflation": self.adjust_for_inflation,
                "retirement_goal": self.retirement_goal,
                "events": [e.to_dict() for e in self.events],
                "envelopes": [e.to_dict() for e in self.envelopes],
            }
        )
        if self.view_start_date is not None:
            data["view_start_date"] = self.view_start_date
        if self.view_end_date is not None:
            data["view_end_date"] = self.view_end_date
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Plan:
        """
        Build a plan from its JSON document shape.

        Missing optional fields take the dataclass defaults; unknown top-level
        keys are preserved in ``extra``.
        """
        defaults = cls()
        return cls(
            title=str(data.get("title") or defaults.title),
            birth_date=str(data.get("birth_date") or defaults.birth_date),
            inflation_rate=float(data.get("inflation_rate", defaults.inflation_rate)),
            adjust_for_inflation=bool(
                data.get("adjust_for_inflation", defaults.adjust_for_inflation)
            ),
            retirement_goal=float(data.get("retirement_goal") or 0.0),
            events=[Event.from_dict(e) for e in data.get("events") or []],
            envelopes=[Envelope.from_dict(e) for e in data.get("envelopes") or []],
            view_start_date=data.get("view_start_date"),
            view_end_date=data.get("view_end_date"),
            extra={k: v for k, v in data.items() if k not in _PLAN_FIELDS},
        )


def find_event(
    plan: Plan, event_id: int
) -> tuple[Event | UpdatingEvent | None, Event | None]:
    """
    Locate an event or updating event by id.

    Main events are searched first, then every main event's updating events.

    Returns:
        ``(node, parent)`` where ``parent`` is ``None`` when ``node`` is a main
        event, or ``(None, None)`` when the id is not in the plan.
    """
    for event in plan.events:
        if event.id == event_id:
            return event, None
    for event in plan.events:
        for updating in event.updating_events:
            if updating.id == event_id:
                return updating, event
    return None, None


def iter_all_events(plan: Plan) -> Iterator[tuple[BaseEvent, Event | None]]:
    """Yield ``(node, parent)`` for every main and updating event in display order."""
    for event in plan.events:
        yield event, None
        for updating in event.updating_events:
            yield updating, event


def iter_all_ids(plan: Plan) -> Iterator[int]:
    """Yield every event and updating-event id in the plan."""
    for node, _parent in iter_all_events(plan):
        yield node.id


def next_event_id(plan: Plan) -> int:
    """Next free id: ``max(all ids) + 1``, or 1 for an empty plan."""
    return max(iter_all_ids(plan), default=0) + 1

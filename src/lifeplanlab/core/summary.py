"""
Plain-text plan summary.

Produces a compact, human-readable digest of a plan as of a given day: the
plan settings, the next upcoming events, every event with its parameters, and
the envelopes. The output is meant for people and for language-model prompts,
not for parsing.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from .dates import completed_years, format_date, parse_date, try_parse_date
from .model import BaseEvent, Plan
from .recurrence import event_frequency_days, next_occurrence
from .schema import SchemaCatalog

DEFAULT_MAX_NEXT_EVENTS = 5
MAX_KEY_AMOUNTS = 3

_AMOUNT_TOKENS = (
    "amount",
    "salary",
    "money",
    "downpayment",
    "home_value",
    "loan_rate",
    "rate",
    "payment",
    "value",
    "price",
)


@dataclass
class EventSummary:
    """Digest of one main event used to build the summary text."""

    title: str
    type: str
    start: date | None
    end: date | None
    is_recurring: bool
    next_date: date | None
    description: str = ""
    key_amounts: list[str] = field(default_factory=list)
    parameter_lines: list[str] = field(default_factory=list)
    updating_count: int = 0


def compute_age(birth: date, on: date) -> int:
    """Completed years between ``birth`` and ``on``, never negative."""
    return max(0, completed_years(birth, on))


def format_number(value: Any) -> str | None:
    """
    Format a numeric value for display.

    Fractions strictly between -1 and 1 read as percentages, magnitudes of
    1000 and more as whole currency amounts. Numeric strings are parsed
    first. Returns ``None`` for anything that is not a number.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip().replace(",", ""))
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    if value != 0 and -1 < value < 1:
        return f"{value * 100:.2f}%"
    if abs(value) >= 1000:
        return f"${value:,.0f}"
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"


def format_value(value: Any) -> str:
    formatted = format_number(value)
    if formatted is not None:
        return formatted
    if value is None:
        return "null"
    return str(value)


def _is_amount_key(key: str) -> bool:
    lowered = key.lower()
    return any(token in lowered for token in _AMOUNT_TOKENS)


def _key_amounts(node: BaseEvent, limit: int = MAX_KEY_AMOUNTS) -> list[str]:
    entries = [
        (p.type, format_number(p.value))
        for p in node.parameters
        if _is_amount_key(p.type)
    ]
    entries = [(k, v) for k, v in entries if v is not None]
    if not entries:
        entries = [(p.type, format_number(p.value)) for p in node.parameters]
        entries = [(k, v) for k, v in entries if v is not None]
    return [f"{k}: {v}" for k, v in entries[:limit]]


def _parameter_lines(node: BaseEvent, schema: SchemaCatalog | None) -> list[str]:
    lines = []
    for param in node.parameters:
        line = f"{param.type}: {format_value(param.value)}"
        if schema is not None:
            pdef = schema.parameter_definition(node.type, param.type)
            if pdef is not None:
                extras = []
                if pdef.parameter_units:
                    extras.append(f"units={pdef.parameter_units}")
                if pdef.display_name:
                    extras.append(f"label={pdef.display_name}")
                if pdef.description:
                    extras.append(f"desc={pdef.description}")
                if extras:
                    line += f" ({'; '.join(extras)})"
        lines.append(line)
    return lines


def summarize_event(
    node: BaseEvent, today: date, schema: SchemaCatalog | None = None
) -> EventSummary:
    start = try_parse_date(node.get_value("start_time")) if node.get_value("start_time") else None
    end = try_parse_date(node.get_value("end_time")) if node.get_value("end_time") else None
    frequency = event_frequency_days(node) if node.is_recurring else None
    return EventSummary(
        title=node.title.strip() or node.type.replace("_", " "),
        type=node.type,
        start=start,
        end=end,
        is_recurring=node.is_recurring,
        next_date=next_occurrence(start, end, frequency, today),
        description=node.description,
        key_amounts=_key_amounts(node),
        parameter_lines=_parameter_lines(node, schema),
        updating_count=len(getattr(node, "updating_events", [])),
    )


def _date_text(value: date | None) -> str:
    return format_date(value) if value is not None else "N/A"


def summarize_plan(
    plan: Plan,
    schema: SchemaCatalog | None = None,
    *,
    today: date | str,
    max_next_events: int = DEFAULT_MAX_NEXT_EVENTS,
) -> str:
    """
    Render a plain-text digest of a plan.

    Args:
        plan: The plan to summarize
        schema: Optional schema used to label parameters with units and names
        today: Reference date for ages and upcoming events
        max_next_events: Number of upcoming events listed

    Returns:
        Multi-line summary text

    **Example Usage:**
        ```python
        print(summarize_plan(plan, schema, today="2026-01-01"))
        # Snapshot as of 2026-01-01. Birth date: 1990-01-01; Age: 36 ...
        #
        # Next events:
        # - 2026-06-01: Buy Car | price: $25,000 | age: 36
        ```
    """
    today_d = parse_date(today)
    birth = try_parse_date(plan.birth_date)
    summaries = [summarize_event(event, today_d, schema) for event in plan.events]

    header = [f"Snapshot as of {format_date(today_d)}."]
    if birth is not None:
        header.append(f"Birth date: {format_date(birth)}; Age: {compute_age(birth, today_d)}")
    if plan.retirement_goal:
        goal = format_number(plan.retirement_goal)
        if goal:
            header.append(f"Retirement goal: {goal}")
    inflation = format_number(plan.inflation_rate)
    if inflation:
        header.append(
            f"Assumed inflation: {inflation}"
            + (" (values inflation-adjusted)" if plan.adjust_for_inflation else "")
        )
    lines = [" ".join(header)]

    upcoming = sorted(
        (s for s in summaries if s.next_date is not None), key=lambda s: s.next_date
    )[:max_next_events]
    if upcoming:
        lines.append("\nNext events:")
        for s in upcoming:
            recur = " (recurring)" if s.is_recurring else ""
            amounts = f" | {'; '.join(s.key_amounts)}" if s.key_amounts else ""
            desc = f" | desc: {s.description}" if s.description else ""
            age = f" | age: {compute_age(birth, s.next_date)}" if birth is not None else ""
            lines.append(f"- {format_date(s.next_date)}: {s.title}{recur}{amounts}{desc}{age}")
    else:
        lines.append("\nNext events: None scheduled.")

    lines.append("\nPlan events (detailed):")
    dated = sorted((s for s in summaries if s.start is not None), key=lambda s: (s.start, s.title))
    undated = sorted((s for s in summaries if s.start is None), key=lambda s: s.title)
    for s in dated + undated:
        recur = " (recurring)" if s.is_recurring else ""
        lines.append(f"- {s.title} [type={s.type}]{recur}")
        lines.append(f"  - Dates: start={_date_text(s.start)}, end={_date_text(s.end)}")
        if birth is not None and s.start is not None:
            lines.append(f"  - Age at start: {compute_age(birth, s.start)}")
        if s.next_date is not None:
            lines.append(f"  - Next occurrence: {format_date(s.next_date)}")
        if s.description:
            lines.append(f"  - Description: {s.description}")
        if s.key_amounts:
            lines.append(f"  - Key amounts: {'; '.join(s.key_amounts)}")
        if s.updating_count:
            lines.append(f"  - Updating events: {s.updating_count}")
        if s.parameter_lines:
            lines.append("  - Parameters:")
            lines.extend(f"    - {p}" for p in s.parameter_lines)

    if plan.envelopes:
        lines.append("\nEnvelopes:")
        for env in plan.envelopes:
            parts = [env.name or env.account_type or "Unnamed Account"]
            if env.category and env.category != env.name:
                parts.append(f"Category: {env.category}")
            if env.growth and env.growth != "None":
                parts.append(f"Growth: {env.growth}")
            if env.rate:
                parts.append(f"Rate: {format_value(env.rate)}")
            if env.days_of_usefulness:
                parts.append(f"Days of usefulness: {env.days_of_usefulness}")
            lines.append(f"- {'; '.join(parts)}")

    return "\n".join(lines)

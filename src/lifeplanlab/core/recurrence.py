"""
Recurrence expansion for LifePlanLab.

Turns a plan (and optionally a locked comparison plan) into a day-indexed map
of discrete occurrences: start markers, end markers and the synthetic
instances of recurring events. Expansion is side-effect free and rebuilds its
result on every call, so it can run on every zoom or viewport change.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta

import numpy as np
import pandas as pd

from .dates import (
    date_string_to_days_since_birth,
    days_since_birth_to_date_string,
    try_parse_date,
)
from .errors import ConfigError
from .model import BaseEvent, Event, Plan, iter_all_events
from .schema import DEFAULT_EVENT_WEIGHT, SchemaCatalog

logger = logging.getLogger(__name__)

# Weights for synthetic recurring instances, which have no schema weight of
# their own. Kept as named values until product confirms them.
RECURRING_MAIN_WEIGHT = 10
RECURRING_UPDATING_WEIGHT = 30

EASE_STEEPNESS = 4.0

MARKER_START = "start"
MARKER_END = "end"
MARKER_RECURRING = "recurring"

SHADOW_SUFFIX = "-shadow"

OCCURRENCE_COLUMNS = [
    "day",
    "date",
    "event_id",
    "event_type",
    "title",
    "parent_event_id",
    "is_updating_event",
    "marker",
    "display_id",
    "weight",
    "is_shadow_mode",
    "recurrence_index",
]


@dataclass
class ExpansionConfig:
    """
    Tuning values for occurrence visibility and grouping.

    Attributes:
        min_zoom: Zoom level at which icons sit at their minimum scale
        full_growth_zoom: Zoom level at which every icon reaches full scale
        visibility_ratio: Minimum effective scale for an occurrence to be kept
        default_weight: Weight for event types missing from the schema
        recurring_main_weight: Weight of synthetic instances of main events
        recurring_updating_weight: Weight of synthetic instances of updating events
        overlap_width_px: Projected distance under which occurrences are grouped
        max_recurrences: Cap on synthetic instances generated for one event
    """

    min_zoom: float = 1.0
    full_growth_zoom: float = 10.0
    visibility_ratio: float = 0.3
    default_weight: float = DEFAULT_EVENT_WEIGHT
    recurring_main_weight: float = RECURRING_MAIN_WEIGHT
    recurring_updating_weight: float = RECURRING_UPDATING_WEIGHT
    overlap_width_px: float = 24.0
    max_recurrences: int = 100_000

    def __post_init__(self) -> None:
        if self.full_growth_zoom <= self.min_zoom:
            raise ConfigError("full_growth_zoom must be greater than min_zoom")
        if not 0.0 <= self.visibility_ratio <= 1.0:
            raise ConfigError("visibility_ratio must be within [0, 1]")
        if self.overlap_width_px < 0:
            raise ConfigError("overlap_width_px must be >= 0")


@dataclass
class Occurrence:
    """
    One dated marker of an event on the timeline.

    ``event`` is the node inside the expanded plan itself, not a copy. When
    that plan is a history snapshot, treat it as read-only and make edits
    through the editor; writing to it would rewrite undo history.

    Attributes:
        day: Day offset from the birth date
        date: ``YYYY-MM-DD`` of ``day``
        event: The event or updating event this marker belongs to
        is_updating_event: Whether ``event`` is an updating event
        parent_event_id: Id of the owning main event for updating events
        marker: 'start', 'end' or 'recurring'
        display_id: Identity used to position and drag the marker
        weight: Minimum icon scale (0-100)
        is_shadow_mode: Whether the marker comes from the locked plan
        recurrence_index: 1-based index of a synthetic recurring instance
    """

    day: int
    date: str
    event: BaseEvent
    is_updating_event: bool
    parent_event_id: int | None
    marker: str
    display_id: str
    weight: float
    is_shadow_mode: bool = False
    recurrence_index: int | None = None


def _ease(t: float) -> float:
    return 1.0 - math.exp(-EASE_STEEPNESS * t)


def effective_scale(weight: float, zoom_level: float, config: ExpansionConfig | None = None) -> float:
    """
    Render scale of an icon with ``weight`` at ``zoom_level``.

    The weight is the minimum scale in percent. Between ``min_zoom`` and
    ``full_growth_zoom`` the scale grows from that minimum towards 1 along
    ``1 - exp(-4 t)`` where ``t`` is the normalized zoom progress.
    """
    cfg = config or ExpansionConfig()
    minimum = min(max(weight, 0.0), 100.0) / 100.0
    span = cfg.full_growth_zoom - cfg.min_zoom
    t = min(max((zoom_level - cfg.min_zoom) / span, 0.0), 1.0)
    return minimum + (1.0 - minimum) * _ease(t)


def is_visible(weight: float, zoom_level: float | None, config: ExpansionConfig | None = None) -> bool:
    """Whether an occurrence of ``weight`` is shown; always True without a zoom level."""
    if zoom_level is None:
        return True
    cfg = config or ExpansionConfig()
    return effective_scale(weight, zoom_level, cfg) >= cfg.visibility_ratio


def event_frequency_days(node: BaseEvent) -> float | None:
    raw = node.get_value("frequency_days")
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def _node_day(node: BaseEvent, parameter_type: str, birth_date: str) -> int | None:
    value = node.get_value(parameter_type)
    if not isinstance(value, str):
        return None
    return date_string_to_days_since_birth(value, birth_date)


def _expand_node(
    node: BaseEvent,
    parent: Event | None,
    plan: Plan,
    schema: SchemaCatalog,
    cfg: ExpansionConfig,
    shadow: bool,
) -> list[Occurrence]:
    start_day = _node_day(node, "start_time", plan.birth_date)
    if start_day is None:
        logger.debug("Skipping event %s (%s): no valid start_time", node.id, node.type)
        return []

    suffix = SHADOW_SUFFIX if shadow else ""
    is_updating = parent is not None
    parent_id = parent.id if parent is not None else None
    definition = schema.event_definition(node.type)
    weight = definition.weight if definition is not None else cfg.default_weight

    def make(day: int, marker: str, display_id: str, w: float, k: int | None = None) -> Occurrence:
        return Occurrence(
            day=day,
            date=days_since_birth_to_date_string(day, plan.birth_date),
            event=node,
            is_updating_event=is_updating,
            parent_event_id=parent_id,
            marker=marker,
            display_id=display_id + suffix,
            weight=w,
            is_shadow_mode=shadow,
            recurrence_index=k,
        )

    out = [make(start_day, MARKER_START, f"start-{node.id}", weight)]

    end_day = _node_day(node, "end_time", plan.birth_date)
    if end_day is not None and (
        node.is_recurring or schema.can_be_recurring(node.type) is False
    ):
        out.append(make(end_day, MARKER_END, f"end-{node.id}", weight))

    if not node.is_recurring:
        return out
    frequency = event_frequency_days(node)
    if frequency is None or end_day is None:
        logger.debug(
            "Event %s is recurring but has no usable frequency_days/end_time", node.id
        )
        return out

    synthetic_weight = (
        cfg.recurring_updating_weight if is_updating else cfg.recurring_main_weight
    )
    current = start_day + frequency
    k = 1
    while current <= end_day:
        if k > cfg.max_recurrences:
            logger.warning(
                "Event %s exceeds %d recurrences; truncating expansion",
                node.id,
                cfg.max_recurrences,
            )
            break
        out.append(
            make(int(round(current)), MARKER_RECURRING, f"start-{node.id}-r{k}", synthetic_weight, k)
        )
        current += frequency
        k += 1
    return out


def _collect(
    into: dict[int, list[Occurrence]],
    plan: Plan,
    schema: SchemaCatalog,
    cfg: ExpansionConfig,
    zoom_level: float | None,
    shadow: bool,
) -> None:
    for node, parent in iter_all_events(plan):
        try:
            occurrences = _expand_node(node, parent, plan, schema, cfg, shadow)
        except (ValueError, OverflowError) as exc:
            logger.warning("Skipping malformed event %s (%s): %s", node.id, node.type, exc)
            continue
        for occ in occurrences:
            if is_visible(occ.weight, zoom_level, cfg):
                into.setdefault(occ.day, []).append(occ)


def expand(
    plan: Plan,
    schema: SchemaCatalog,
    *,
    locked_plan: Plan | None = None,
    zoom_level: float | None = None,
    config: ExpansionConfig | None = None,
) -> dict[int, list[Occurrence]]:
    """
    Expand a plan into day-indexed occurrences.

    For every main and updating event a start marker is emitted; an end
    marker is emitted when the event is recurring or its type can never
    recur; recurring events with a positive ``frequency_days`` add one
    synthetic instance every ``frequency_days`` after the start up to and
    including the end.

    Args:
        plan: The plan to expand
        schema: Event schema catalog
        locked_plan: Optional comparison plan, expanded with shadow markers
        zoom_level: Current zoom; ``None`` disables visibility filtering
        config: Visibility tuning values

    Returns:
        Mapping of day offset to occurrences on that day, keys ascending.

    Example:
        ```python
        occurrences = expand(plan, schema, zoom_level=2.5)
        for day, items in occurrences.items():
            print(day, [o.display_id for o in items])
        ```
    """
    cfg = config or ExpansionConfig()
    by_day: dict[int, list[Occurrence]] = {}
    _collect(by_day, plan, schema, cfg, zoom_level, shadow=False)
    if locked_plan is not None:
        _collect(by_day, locked_plan, schema, cfg, zoom_level, shadow=True)
    return {day: by_day[day] for day in sorted(by_day)}


def flatten(occurrences: dict[int, list[Occurrence]]) -> list[Occurrence]:
    """All occurrences in day order."""
    return [occ for day in sorted(occurrences) for occ in occurrences[day]]


def occurrences_frame(occurrences: dict[int, list[Occurrence]]) -> pd.DataFrame:
    """
    Tidy DataFrame with one row per occurrence.

    This is the shape handed to the simulation collaborator and written by the
    CLI; columns are listed in ``OCCURRENCE_COLUMNS``.
    """
    rows = [
        {
            "day": occ.day,
            "date": occ.date,
            "event_id": occ.event.id,
            "event_type": occ.event.type,
            "title": occ.event.title,
            "parent_event_id": occ.parent_event_id,
            "is_updating_event": occ.is_updating_event,
            "marker": occ.marker,
            "display_id": occ.display_id,
            "weight": occ.weight,
            "is_shadow_mode": occ.is_shadow_mode,
            "recurrence_index": occ.recurrence_index,
        }
        for occ in flatten(occurrences)
    ]
    frame = pd.DataFrame(rows, columns=OCCURRENCE_COLUMNS)
    frame["parent_event_id"] = frame["parent_event_id"].astype("Int64")
    frame["recurrence_index"] = frame["recurrence_index"].astype("Int64")
    return frame


@dataclass
class LinearProjection:
    """
    Linear day-to-pixel mapping.

    A default for callers that do not supply the visualization layer's own
    projection.
    """

    domain: tuple[float, float]
    output_range: tuple[float, float]

    def __post_init__(self) -> None:
        if self.domain[0] == self.domain[1]:
            raise ConfigError("Projection domain must not be empty")

    def __call__(self, day):
        d0, d1 = self.domain
        r0, r1 = self.output_range
        return r0 + (np.asarray(day, dtype=float) - d0) * (r1 - r0) / (d1 - d0)

    def invert(self, pixel):
        """Pixel position back to a (fractional) day offset."""
        d0, d1 = self.domain
        r0, r1 = self.output_range
        return d0 + (np.asarray(pixel, dtype=float) - r0) * (d1 - d0) / (r1 - r0)


def linear_projection(
    domain: tuple[float, float], output_range: tuple[float, float]
) -> LinearProjection:
    return LinearProjection(tuple(domain), tuple(output_range))


@dataclass
class OccurrenceGroup:
    """Occurrences drawn as one cluster; ``position`` is the first member's."""

    occurrences: list[Occurrence] = field(default_factory=list)
    positions: list[float] = field(default_factory=list)

    @property
    def position(self) -> float:
        return self.positions[0]

    def overlaps(self, position: float, width: float) -> bool:
        return any(abs(position - p) < width for p in self.positions)

    def add(self, occurrence: Occurrence, position: float) -> None:
        self.occurrences.append(occurrence)
        self.positions.append(position)


def group_occurrences(
    occurrences: Iterable[Occurrence] | dict[int, list[Occurrence]],
    project: Callable[[int], float],
    width: float | None = None,
) -> list[OccurrenceGroup]:
    """
    Bucket occurrences by horizontal proximity.

    Occurrences are sorted by projected position (ties keep their input order)
    and swept once left to right. Each joins the first existing group holding
    a member closer than ``width`` pixels, or starts a new group. This is a
    greedy single pass, not an optimal clustering.

    Args:
        occurrences: Occurrences, or an expansion map
        project: Day offset to pixel position, assumed monotonic
        width: Overlap width in pixels (default ``ExpansionConfig.overlap_width_px``)

    Returns:
        Groups in order of creation
    """
    if isinstance(occurrences, dict):
        items: Sequence[Occurrence] = flatten(occurrences)
    else:
        items = list(occurrences)
    if width is None:
        width = ExpansionConfig().overlap_width_px
    if not items:
        return []

    positions = np.asarray([float(project(o.day)) for o in items], dtype=float)
    order = np.argsort(positions, kind="stable")

    groups: list[OccurrenceGroup] = []
    for idx in order:
        occ = items[int(idx)]
        pos = float(positions[idx])
        for group in groups:
            if group.overlaps(pos, width):
                group.add(occ, pos)
                break
        else:
            group = OccurrenceGroup()
            group.add(occ, pos)
            groups.append(group)
    return groups


def next_occurrence(
    start: str | date | None,
    end: str | date | None,
    frequency_days: float | None,
    today: str | date,
) -> date | None:
    """
    Next date on or after ``today`` at which an event happens.

    One-time events (no positive frequency) occur only on their start date.
    Returns ``None`` when the event is over or the start date is unusable.
    """
    start_d = try_parse_date(start) if start else None
    if start_d is None:
        return None
    end_d = try_parse_date(end) if end else None
    today_d = try_parse_date(today)
    if today_d is None:
        return None
    if end_d is not None and today_d > end_d:
        return None
    if not frequency_days or frequency_days <= 0:
        return start_d if start_d >= today_d else None
    if start_d >= today_d:
        return start_d

    delta = (today_d - start_d).days
    cycles = math.ceil(delta / frequency_days)
    candidate = start_d + timedelta(days=int(round(cycles * frequency_days)))
    if end_d is not None and candidate > end_d:
        return None
    return candidate

"""
Plan editor: the mutation surface used by the UI layer.

Each editing call computes the complete next plan with the pure functions in
:mod:`lifeplanlab.core.factory` / :mod:`lifeplanlab.core.envelopes` and then
records it in history exactly once. Calls that leave the plan unchanged, and
view-window changes, record nothing.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from . import envelopes as envelope_ops
from . import factory
from .clone import clone_plan
from .dates import format_date, parse_date
from .history import DEFAULT_MAX_HISTORY, HistoryStack
from .model import Envelope, Plan
from .recurrence import ExpansionConfig, Occurrence, expand
from .schema import SchemaCatalog

logger = logging.getLogger(__name__)


@dataclass
class EditorConfig:
    """Configuration options for a plan editor."""

    max_history: int = DEFAULT_MAX_HISTORY
    expansion: ExpansionConfig = field(default_factory=ExpansionConfig)


class PlanEditor:
    """
    Editable plan with undo/redo.

    Attributes:
        schema: Event schema catalog
        today: Current calendar date, used to resolve relative date defaults
        config: Editor configuration
        history: Snapshot history; ``history.current`` is the plan
        view_start_date: Last applied visualization window start
        view_end_date: Last applied visualization window end

    **Example Usage:**
        ```python
        editor = PlanEditor(plan, schema, today=date(2026, 1, 1))
        car_id = editor.add_event("buy_car", {"price": 25000})
        editor.update_parameter(car_id, "price", 27500)
        editor.undo()
        editor.plan.events[-1].get_value("price")  # 25000
        ```
    """

    def __init__(
        self,
        plan: Plan,
        schema: SchemaCatalog,
        today: date | str,
        config: EditorConfig | None = None,
    ):
        self.schema = schema
        self.today = parse_date(today)
        self.config = config or EditorConfig()
        self.history: HistoryStack[Plan] = HistoryStack(plan, self.config.max_history)
        self.view_start_date = plan.view_start_date
        self.view_end_date = plan.view_end_date

    @property
    def plan(self) -> Plan:
        return self.history.current

    def _commit(self, new_plan: Plan) -> Plan:
        current = self.history.current
        if new_plan is current or new_plan == current:
            return current
        return self.history.push(new_plan)

    def replace_plan(self, plan: Plan) -> Plan:
        """Record an externally built plan as the next history entry."""
        return self._commit(plan)

    def load(self, plan: Plan) -> Plan:
        """Start editing ``plan`` from a fresh history."""
        self.view_start_date = plan.view_start_date
        self.view_end_date = plan.view_end_date
        return self.history.reset(plan)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def add_event(
        self,
        event_type: str,
        overrides: Mapping[str, Any] | None = None,
        replace_existing: bool = False,
    ) -> int:
        """Add a main event from the schema and return its id."""
        new_plan, new_id = factory.add_event(
            self.plan, self.schema, event_type, self.today, overrides, replace_existing
        )
        self._commit(new_plan)
        return new_id

    def add_updating_event(
        self,
        parent_id: int,
        event_type: str,
        overrides: Mapping[str, Any] | None = None,
    ) -> int:
        """Add an updating event under ``parent_id`` and return its id."""
        new_plan, new_id = factory.add_updating_event(
            self.plan, self.schema, parent_id, event_type, self.today, overrides
        )
        self._commit(new_plan)
        return new_id

    def delete_event(self, event_id: int) -> None:
        self._commit(factory.delete_event(self.plan, event_id))

    def update_parameter(self, event_id: int, parameter_type: str, value: Any) -> None:
        self._commit(factory.update_parameter(self.plan, event_id, parameter_type, value))

    def update_title(self, event_id: int, title: str) -> None:
        self._commit(factory.update_title(self.plan, event_id, title))

    def update_description(self, event_id: int, description: str) -> None:
        self._commit(factory.update_description(self.plan, event_id, description))

    def update_is_recurring(self, event_id: int, is_recurring: bool) -> None:
        self._commit(factory.update_is_recurring(self.plan, event_id, is_recurring))

    def set_event_function(self, event_id: int, title: str, enabled: bool) -> None:
        self._commit(factory.set_event_function(self.plan, event_id, title, enabled))

    def update_settings(self, **fields: Any) -> None:
        self._commit(factory.update_plan_settings(self.plan, **fields))

    # ------------------------------------------------------------------
    # Envelopes
    # ------------------------------------------------------------------

    def add_envelope(self, envelope: Envelope) -> None:
        self._commit(envelope_ops.add_envelope(self.plan, envelope))

    def update_envelope(self, name: str, /, **changes: Any) -> None:
        self._commit(envelope_ops.update_envelope(self.plan, name, **changes))

    def delete_envelope(self, name: str) -> None:
        self._commit(envelope_ops.delete_envelope(self.plan, name))

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def undo(self) -> Plan:
        return self.history.undo()

    def redo(self) -> Plan:
        return self.history.redo()

    # ------------------------------------------------------------------
    # View state and output
    # ------------------------------------------------------------------

    def set_view_window(self, start: date | str | None, end: date | str | None) -> None:
        """
        Remember the visualization window.

        View state is not part of the undo history; it is written into the
        plan document by :meth:`document`.
        """
        self.view_start_date = format_date(parse_date(start)) if start is not None else None
        self.view_end_date = format_date(parse_date(end)) if end is not None else None

    def document(self) -> Plan:
        """Copy of the current plan with the view window written back, ready to save."""
        doc = clone_plan(self.plan)
        doc.view_start_date = self.view_start_date
        doc.view_end_date = self.view_end_date
        return doc

    def expand(
        self, zoom_level: float | None = None, locked_plan: Plan | None = None
    ) -> dict[int, list[Occurrence]]:
        return expand(
            self.plan,
            self.schema,
            locked_plan=locked_plan,
            zoom_level=zoom_level,
            config=self.config.expansion,
        )

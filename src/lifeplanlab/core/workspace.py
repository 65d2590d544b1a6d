"""
Current and locked plans side by side.

The locked plan is a comparison snapshot. Both plans are versioned
independently and never share mutable structure: every hand-off between them
is a deep copy.
"""

from __future__ import annotations

import logging
from datetime import date

from .clone import clone_plan
from .editor import EditorConfig, PlanEditor
from .history import HistoryStack
from .model import Plan
from .recurrence import Occurrence, expand
from .schema import SchemaCatalog

logger = logging.getLogger(__name__)


class PlanWorkspace:
    """
    Owns the editable current plan and the locked comparison plan.

    Attributes:
        editor: Editor (and history) of the current plan
        locked_history: Independent history of the locked plan, ``None`` until
            a plan is first locked
        compare_mode: Whether expansion includes the locked plan as shadows

    **Example Usage:**
        ```python
        ws = PlanWorkspace(plan, schema, today=date(2026, 1, 1))
        ws.copy_plan_to_lock()
        ws.editor.update_parameter(3, "salary", 90000)
        ws.set_compare_mode(True)
        occurrences = ws.expand(zoom_level=2.0)  # current + '-shadow' markers
        ```
    """

    def __init__(
        self,
        plan: Plan,
        schema: SchemaCatalog,
        today: date | str,
        locked_plan: Plan | None = None,
        config: EditorConfig | None = None,
    ):
        self.editor = PlanEditor(plan, schema, today, config)
        self.locked_history: HistoryStack[Plan] | None = None
        if locked_plan is not None:
            self.locked_history = HistoryStack(
                clone_plan(locked_plan), self.editor.config.max_history
            )
        self.compare_mode = False
        self._lock_since_compare = locked_plan is not None

    @property
    def schema(self) -> SchemaCatalog:
        return self.editor.schema

    @property
    def plan(self) -> Plan:
        return self.editor.plan

    @property
    def locked_plan(self) -> Plan | None:
        return self.locked_history.current if self.locked_history is not None else None

    def _set_locked(self, plan: Plan) -> None:
        if self.locked_history is None:
            self.locked_history = HistoryStack(plan, self.editor.config.max_history)
        else:
            self.locked_history.push(plan)

    def copy_plan_to_lock(self) -> Plan:
        """Baseline: deep-copy the current plan into the locked slot."""
        locked = clone_plan(self.plan)
        self._set_locked(locked)
        self._lock_since_compare = True
        logger.debug("Copied current plan to lock")
        return locked

    def lock_plan(self) -> tuple[Plan, Plan]:
        """
        Swap the current and locked plans.

        Both sides are deep-copied, so later edits to the new current plan can
        never reach the plan that now sits in the locked slot. With no locked
        plan yet, this behaves like :meth:`copy_plan_to_lock`.

        Returns:
            ``(current, locked)`` after the swap
        """
        if self.locked_plan is None:
            self.copy_plan_to_lock()
            return self.plan, self.locked_plan

        new_current = clone_plan(self.locked_plan)
        new_locked = clone_plan(self.plan)
        self.editor.replace_plan(new_current)
        self._set_locked(new_locked)
        self._lock_since_compare = True
        logger.debug("Swapped current and locked plans")
        return self.plan, self.locked_plan

    def set_compare_mode(self, enabled: bool) -> None:
        """
        Enter or leave compare mode.

        Entering compare mode without an explicit lock action since the last
        time it was left takes a fresh baseline with :meth:`copy_plan_to_lock`.
        A locked plan passed to the constructor counts as a lock action.
        """
        enabled = bool(enabled)
        if enabled and not self.compare_mode and not self._lock_since_compare:
            self.copy_plan_to_lock()
        if not enabled and self.compare_mode:
            self._lock_since_compare = False
        self.compare_mode = enabled

    def undo_locked(self) -> Plan | None:
        return self.locked_history.undo() if self.locked_history is not None else None

    def redo_locked(self) -> Plan | None:
        return self.locked_history.redo() if self.locked_history is not None else None

    def expand(self, zoom_level: float | None = None) -> dict[int, list[Occurrence]]:
        """Expand the current plan, plus the locked plan as shadows in compare mode."""
        return expand(
            self.plan,
            self.schema,
            locked_plan=self.locked_plan if self.compare_mode else None,
            zoom_level=zoom_level,
            config=self.editor.config.expansion,
        )

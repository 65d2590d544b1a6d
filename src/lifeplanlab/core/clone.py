"""
Plan cloning utilities for LifePlanLab.

The current plan and the locked comparison plan are edited independently, so
every hand-off between them goes through a full deep copy.
"""

from __future__ import annotations

from copy import deepcopy

from .model import Plan


def clone_plan(plan: Plan) -> Plan:
    """
    Return a fully independent copy of a plan.

    Deep-copies events, their parameters, updating events, event function
    toggles, envelopes and any preserved extra fields. No mutable substructure
    is shared between the input and the result.

    Args:
        plan: The plan to clone

    Returns:
        A deep copy of the plan
    """
    return deepcopy(plan)

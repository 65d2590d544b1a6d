"""
Plan document save/load.

Plans are stored as UTF-8 JSON documents with two-space indentation. Top-level
keys the model does not interpret are carried through ``Plan.extra``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import numpy as np

from .model import Plan

logger = logging.getLogger(__name__)


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy scalars and arrays in parameter values."""

    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        elif isinstance(obj, np.floating):
            return float(obj)
        elif isinstance(obj, np.bool_):
            return bool(obj)
        elif isinstance(obj, np.ndarray):
            return obj.tolist()
        return super().default(obj)


def plan_to_json(plan: Plan) -> str:
    """Serialize a plan to its JSON document text."""
    return json.dumps(plan.to_dict(), indent=2, ensure_ascii=False, cls=NumpyEncoder)


def plan_from_json(text: str | bytes) -> Plan:
    """
    Parse a plan from JSON document text.

    Raises:
        ValueError: If the text is not JSON or its root is not an object
    """
    data: Any = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("Plan document root must be a JSON object")
    return Plan.from_dict(data)


def save_plan(path: str | Path, plan: Plan) -> None:
    """Write a plan document to ``path``."""
    with open(path, "w", encoding="utf-8") as f:
        f.write(plan_to_json(plan))
        f.write("\n")
    logger.debug("Saved plan '%s' to %s", plan.title, path)


def load_plan(path: str | Path) -> Plan:
    """Read a plan document from ``path``."""
    with open(path, encoding="utf-8") as f:
        plan = plan_from_json(f.read())
    logger.debug("Loaded plan '%s' from %s", plan.title, path)
    return plan

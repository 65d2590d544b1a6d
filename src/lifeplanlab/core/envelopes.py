"""
Envelope management for LifePlanLab.

Envelopes named ``Other (<category>)`` are system catch-alls: they can be
edited (growth, rate) but never renamed or deleted.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Any

from .clone import clone_plan
from .errors import ConfigError, ReadOnlyEnvelope
from .model import GROWTH_MODELS, Envelope, Plan

_SYSTEM_NAME = re.compile(r"^Other \((?P<category>.+)\)$")

_EDITABLE_FIELDS = {
    "name",
    "category",
    "growth",
    "rate",
    "account_type",
    "days_of_usefulness",
}


def is_system_envelope(name: str) -> bool:
    """True for system catch-all envelopes named ``Other (<category>)``."""
    return bool(_SYSTEM_NAME.match(name or ""))


def system_envelope_name(category: str) -> str:
    return f"Other ({category})"


def _normalized(envelope: Envelope) -> Envelope:
    if not envelope.name or not envelope.name.strip():
        raise ConfigError("Envelope name must be a non-empty string")
    if envelope.growth not in GROWTH_MODELS:
        raise ConfigError(
            f"Envelope '{envelope.name}': growth must be one of {list(GROWTH_MODELS)}, "
            f"got {envelope.growth!r}"
        )
    if envelope.growth == "None":
        return replace(envelope, rate=0.0)
    return envelope


def add_envelope(plan: Plan, envelope: Envelope) -> Plan:
    """
    Append an envelope.

    Raises:
        ConfigError: If the name is empty, already used, or the growth model is
            unknown
    """
    envelope = _normalized(envelope)
    if plan.get_envelope(envelope.name) is not None:
        raise ConfigError(f"Envelope '{envelope.name}' already exists")
    new_plan = clone_plan(plan)
    new_plan.envelopes.append(replace(envelope))
    return new_plan


def update_envelope(plan: Plan, name: str, /, **changes: Any) -> Plan:
    """
    Edit an envelope's fields.

    Raises:
        KeyError: If no envelope is called ``name``
        ReadOnlyEnvelope: If renaming a system envelope
        ConfigError: For unknown fields, duplicate names or invalid growth
    """
    unknown = set(changes) - _EDITABLE_FIELDS
    if unknown:
        raise ConfigError(f"Unknown envelope fields: {', '.join(sorted(unknown))}")
    current = plan.get_envelope(name)
    if current is None:
        raise KeyError(name)

    new_name = changes.get("name", name)
    if new_name != name:
        if is_system_envelope(name):
            raise ReadOnlyEnvelope(f"System envelope '{name}' cannot be renamed")
        if plan.get_envelope(new_name) is not None:
            raise ConfigError(f"Envelope '{new_name}' already exists")

    updated = _normalized(replace(current, **changes))
    new_plan = clone_plan(plan)
    new_plan.envelopes = [
        updated if e.name == name else e for e in new_plan.envelopes
    ]
    return new_plan


def delete_envelope(plan: Plan, name: str) -> Plan:
    """
    Remove an envelope.

    Deleting an envelope that does not exist returns the input plan unchanged.

    Raises:
        ReadOnlyEnvelope: If ``name`` is a system envelope
    """
    if is_system_envelope(name):
        raise ReadOnlyEnvelope(f"System envelope '{name}' cannot be deleted")
    if plan.get_envelope(name) is None:
        return plan
    new_plan = clone_plan(plan)
    new_plan.envelopes = [e for e in new_plan.envelopes if e.name != name]
    return new_plan

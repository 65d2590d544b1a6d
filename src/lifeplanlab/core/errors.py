"""
Error classes for LifePlanLab.

This module defines the exception hierarchy used by the plan engine. Only a
few of these ever escape a public operation: non-strict schema lookups
return a fallback instead of ``UnknownParameter``, date conversion recovers from
``InvalidDateString`` by returning ``None``, and undo/redo treat a
``HistoryBoundary`` as a no-op.
"""


class ConfigError(Exception):
    """
    Configuration error in a plan, schema or editor setup.

    **Common Causes:**
    - Duplicate envelope names
    - Unsupported growth model on an envelope
    - Invalid engine configuration values (negative history caps, zoom ranges)

    **Example Usage:**
        ```python
        from lifeplanlab.core.errors import ConfigError
        from lifeplanlab.core.envelopes import add_envelope

        try:
            plan = add_envelope(plan, Envelope(name="Savings", category="Cash"))
        except ConfigError as e:
            print(f"Configuration error: {e}")
        ```
    """

    pass


class PlanError(Exception):
    """Base class for errors raised by plan operations."""


class UnknownEventType(PlanError, KeyError):
    """Raised when the schema has no entry for a requested event type."""

    def __init__(self, event_type: str):
        self.event_type = event_type
        super().__init__(event_type)

    def __str__(self) -> str:
        return f"Unknown event type '{self.event_type}'"


class UnknownParameter(PlanError, KeyError):
    """Raised by strict schema lookups when a parameter is not declared."""

    def __init__(self, event_type: str, parameter_type: str):
        self.event_type = event_type
        self.parameter_type = parameter_type
        super().__init__(parameter_type)

    def __str__(self) -> str:
        return (
            f"Schema has no parameter '{self.parameter_type}' "
            f"for event type '{self.event_type}'"
        )


class InvalidDateString(PlanError, ValueError):
    """Raised when a value cannot be parsed as a ``YYYY-MM-DD`` calendar date."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid calendar date: {value!r}")


class HistoryBoundary(PlanError, IndexError):
    """Raised when a history position outside the recorded range is requested."""


class EventNotFound(PlanError, KeyError):
    """Raised when an operation targets an event id that is not in the plan."""

    def __init__(self, event_id: int):
        self.event_id = event_id
        super().__init__(event_id)

    def __str__(self) -> str:
        return f"No event or updating event with id {self.event_id}"


class InvalidParameterValue(PlanError, ValueError):
    """Raised when a parameter value is NaN, infinite, or not a number/string."""


class ReadOnlyEnvelope(PlanError):
    """Raised when renaming or deleting a system ``Other (<category>)`` envelope."""

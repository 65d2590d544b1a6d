"""
Custom exceptions for LifePlanLab.

This module provides specialized exception classes for reporting plan
validation failures with enough context to locate the offending events.
"""

from __future__ import annotations


class PlanValidationError(Exception):
    """
    Raised when a plan fails validation against its schema.

    Attributes:
        plan_title: Title of the plan that failed validation
        report: The validation report object (if available)
        problem_ids: List of event ids that caused issues
    """

    def __init__(
        self,
        plan_title: str,
        message: str,
        report=None,
        problem_ids: list[int] | None = None,
    ):
        self.plan_title = plan_title
        self.report = report
        self.problem_ids = problem_ids or []
        super().__init__(self._fmt(message))

    def _fmt(self, msg: str) -> str:
        """Format the error message with additional context."""
        suffix = ""
        if self.problem_ids:
            preview = ", ".join(str(i) for i in self.problem_ids[:10])
            more = (
                f" (+{len(self.problem_ids)-10} more)"
                if len(self.problem_ids) > 10
                else ""
            )
            suffix = f" | problem_ids: [{preview}]{more}"
        return f"[Plan {self.plan_title}] {msg}{suffix}"

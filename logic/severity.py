"""
Delay severity classification.

Every place that colours a case by its estimated delay (marker icon, popup
delay text, list view) goes through classify_severity so the tiers agree.

Author: Case Map maintainers
Date: 2026-10-18
"""

from typing import Any, Dict, Iterable, List, NamedTuple, Optional


class Severity(NamedTuple):
    """Severity tier and the colour used to draw it."""

    tier: str
    color: str

    @property
    def css_class(self) -> str:
        return f"delay-{self.tier}"


HIGH = Severity("high", "#FF0000")
MEDIUM = Severity("medium", "#FFA500")
LOW = Severity("low", "#FFD700")


def delay_days(value: Optional[float]) -> float:
    """Return the delay in days, treating a missing value as 0."""
    return value or 0


def classify_severity(delay: Optional[float]) -> Severity:
    """Classify an estimated delay into a severity tier.

    Args:
        delay: Estimated delay in days, or None.

    Returns:
        HIGH for 3 days or more, MEDIUM for 1 up to 3, LOW otherwise.
    """
    days = delay_days(delay)
    if days >= 3:
        return HIGH
    if days >= 1:
        return MEDIUM
    return LOW


def sort_by_delay(cases: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Project cases for the list view, longest delay first.

    Each item is a copy of the case with its delay_class and tier attached.

    Args:
        cases: Case dictionaries with an estimatedDelay key.

    Returns:
        New list of new dictionaries; the input is left untouched.
    """
    ordered = sorted(cases, key=lambda c: delay_days(c.get("estimatedDelay")), reverse=True)
    projected = []
    for case in ordered:
        severity = classify_severity(case.get("estimatedDelay"))
        projected.append({**case, "delayClass": severity.css_class, "tier": severity.tier})
    return projected

"""Helpers shared by the screens."""

from __future__ import annotations

from textual.screen import Screen

from movie_catalog.outcomes import (
    OUTCOME_AUTH_EXPIRED,
    OUTCOME_ERROR,
    OUTCOME_PARTIAL,
    OUTCOME_VALIDATION,
    Outcome,
)

_SEVERITY_BY_KIND = {
    OUTCOME_VALIDATION: "warning",
    OUTCOME_AUTH_EXPIRED: "warning",
    OUTCOME_ERROR: "error",
    OUTCOME_PARTIAL: "error",
}


def notify_outcome(screen: Screen, outcome: Outcome, *, title: str = "") -> None:
    """Show an outcome as a toast; silent successes show nothing."""
    if not outcome.message:
        return
    severity = _SEVERITY_BY_KIND.get(outcome.kind, "information")
    screen.notify(outcome.message, title=title, severity=severity)  # type: ignore[arg-type]


__all__ = ["notify_outcome"]

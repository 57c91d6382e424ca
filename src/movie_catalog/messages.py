"""UI-facing copy builders for outcomes and notifications."""

from __future__ import annotations

from rich.markup import escape as escape_markup


def _ensure_sentence(text: str) -> str:
    """Return text with terminal sentence punctuation."""
    cleaned = text.strip()
    if not cleaned:
        return ""
    if cleaned.endswith((".", "!", "?")):
        return cleaned
    return f"{cleaned}."


def build_next_step_hint(next_step: str) -> str:
    """Build a canonical next-step guidance line."""
    return f"Next step: {_ensure_sentence(next_step)}"


def build_actionable_error(
    action: str,
    *,
    next_step: str,
    why: str | None = None,
) -> str:
    """Build a 2-3 line actionable error message."""
    lines = [f"Could not {action.strip()}."]
    if why:
        lines.append(f"Why: {_ensure_sentence(why)}")
    lines.append(build_next_step_hint(next_step))
    return "\n".join(lines)


def build_actionable_success(
    message: str,
    *,
    detail: str | None = None,
    next_step: str | None = None,
) -> str:
    """Build a concise success message with optional detail and next step."""
    lines = [_ensure_sentence(message)]
    if detail:
        lines.append(_ensure_sentence(detail))
    if next_step:
        lines.append(build_next_step_hint(next_step))
    return "\n".join(lines)


def build_validation_message(reasons: list[str] | tuple[str, ...]) -> str:
    """Join validation reasons into one message, one reason per line."""
    return "\n".join(_ensure_sentence(reason) for reason in reasons if reason.strip())


def escape_rich_text(text: str) -> str:
    """Escape text for safe Rich markup rendering."""
    return escape_markup(text) if text else ""


def format_rating_average(value: float | None) -> str:
    """Render a server-computed average, or a dash when absent."""
    if value is None:
        return "–"
    return f"{value:.1f}"


def format_stars(rating: int) -> str:
    """Render a 1-5 rating as filled stars plus the numeric value."""
    return f"{'★' * max(0, rating)} ({rating}/5)"


__all__ = [
    "build_actionable_error",
    "build_actionable_success",
    "build_next_step_hint",
    "build_validation_message",
    "escape_rich_text",
    "format_rating_average",
    "format_stars",
]

"""Internal UI constants for the MovieCatalogApp."""

from __future__ import annotations

from textual.binding import Binding, BindingType

APP_CSS = """
Screen {
    background: $background;
}

Header {
    background: $panel;
    color: $text;
}

.screen-title {
    padding: 0 1;
    color: $accent;
    text-style: bold;
}

.form {
    width: 60;
    height: auto;
    padding: 1 2;
    border: tall $accent;
    background: $panel;
}

.form Input,
.form Select {
    width: 100%;
    margin-bottom: 1;
}

.button-row {
    height: auto;
    align: right middle;
}

.button-row Button {
    margin-left: 1;
}

.status-line {
    height: auto;
    padding: 0 1;
    color: $text-muted;
}

.status-line.error {
    color: $error;
}

.centered {
    align: center middle;
}

#movie-list,
#profile-list {
    height: 1fr;
    scrollbar-gutter: stable;
}

#detail-scroll {
    height: 1fr;
    padding: 0 1;
}

.comment {
    padding: 0 1;
    margin-bottom: 1;
    border-left: tall $primary;
}

.comment.own {
    border-left: tall $accent;
}
"""

APP_BINDINGS: list[BindingType] = [
    Binding("q", "quit", "Quit"),
    Binding("ctrl+c", "quit", "Quit", show=False),
]

CATALOG_BINDINGS: list[BindingType] = [
    Binding("slash", "focus_search", "Search"),
    Binding("p", "show_profile", "Profile"),
    Binding("escape", "clear_search", "Clear", show=False),
]

DETAIL_BINDINGS: list[BindingType] = [
    Binding("escape", "back", "Back"),
    Binding("w", "toggle_watchlist", "Watch later"),
    Binding("s", "mark_seen", "Seen"),
]

PROFILE_BINDINGS: list[BindingType] = [
    Binding("escape", "back", "Back"),
    Binding("1", "select_tab('watchlist')", "Watch later"),
    Binding("2", "select_tab('seenlist')", "Seen"),
]

__all__ = [
    "APP_BINDINGS",
    "APP_CSS",
    "CATALOG_BINDINGS",
    "DETAIL_BINDINGS",
    "PROFILE_BINDINGS",
]

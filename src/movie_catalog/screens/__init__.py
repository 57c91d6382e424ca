"""Screens for the movie catalog TUI.

Import screens from this package: ``from movie_catalog.screens import LoginScreen``
"""

from movie_catalog.screens.catalog import CatalogScreen
from movie_catalog.screens.detail import MovieDetailScreen
from movie_catalog.screens.login import LoginScreen
from movie_catalog.screens.profile import ProfileScreen
from movie_catalog.screens.register import RegisterModal

__all__ = [
    "CatalogScreen",
    "LoginScreen",
    "MovieDetailScreen",
    "ProfileScreen",
    "RegisterModal",
]

"""Terminal client for a movie catalog service.

Controllers (search, list membership, comments, profile) return ``Outcome``
values and never raise into the Textual screens that drive them.
"""

from movie_catalog.api_client import ApiClient
from movie_catalog.comments import CommentReconciler
from movie_catalog.engagement import EngagementStateMachine
from movie_catalog.search import SearchController
from movie_catalog.session import SessionStore

__version__ = "0.3.0"

__all__ = [
    "ApiClient",
    "CommentReconciler",
    "EngagementStateMachine",
    "SearchController",
    "SessionStore",
    "__version__",
]

"""
Browser control layer.

Tab recency tracking, the heuristic search and click resolvers, content
extraction, and the action executors that the JSON-RPC surface dispatches to.
"""

from .actions import BrowserActions
from .click_resolver import AmbiguousClickResolver
from .content import ContentOptions
from .launch import BrowserLauncher
from .results import ToolResult
from .search_resolver import SearchOptions, SearchResolver, SearchState
from .tab_tracker import ActiveTabTracker, TabInfo

__all__ = [
    "ActiveTabTracker",
    "AmbiguousClickResolver",
    "BrowserActions",
    "BrowserLauncher",
    "ContentOptions",
    "SearchOptions",
    "SearchResolver",
    "SearchState",
    "TabInfo",
    "ToolResult",
]

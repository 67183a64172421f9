"""Recency-based active tab tracking for a single browser."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from .common import BLANK_PAGE_URL, DEFAULT_RECENCY_CAPACITY, _page_url
from .logging_utils import _log_browser_event

logger = logging.getLogger(__name__)


@dataclass
class TabInfo:
    index: int
    url: str
    title: str
    page: Any

    def describe(self) -> str:
        return f'{self.index}: "{self.title}" - {self.url}'

    def to_dict(self) -> dict:
        return {"index": self.index, "url": self.url, "title": self.title}


def _is_open(page: Any) -> bool:
    try:
        return not page.is_closed()
    except Exception:
        return False


def _is_usable(page: Any) -> bool:
    return _is_open(page) and _page_url(page) != BLANK_PAGE_URL


class ActiveTabTracker:
    """
    Bounded most-recently-used list of tab handles.

    Operations that do not name a tab target the first still-open, non-blank
    entry of this list. Closed tabs stay in the list until evicted; they are
    skipped when the list is consulted.
    """

    def __init__(self, browser: Any, capacity: int = DEFAULT_RECENCY_CAPACITY) -> None:
        self._browser = browser
        self._capacity = max(1, int(capacity))
        self._recent: List[Any] = []

    @property
    def browser(self) -> Any:
        return self._browser

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def recent(self) -> List[Any]:
        return list(self._recent)

    def record_access(self, page: Any) -> None:
        self._recent = [item for item in self._recent if item is not page]
        self._recent.insert(0, page)
        del self._recent[self._capacity :]
        _log_browser_event(
            logger,
            level=logging.DEBUG,
            event="tab_recency_updated",
            url=_page_url(page),
            size=len(self._recent),
        )

    def iter_pages(self) -> List[Any]:
        """All pages of all contexts, in engine enumeration order."""
        pages: List[Any] = []
        for context in list(self._browser.contexts):
            try:
                pages.extend(list(context.pages))
            except Exception as exc:
                _log_browser_event(
                    logger,
                    level=logging.DEBUG,
                    event="context_pages_failed",
                    error=exc,
                )
        return pages

    def resolve_active_tab(self) -> Optional[Any]:
        for page in self._recent:
            if _is_usable(page):
                return page

        pages = self.iter_pages()
        for page in pages:
            if _is_usable(page):
                self.record_access(page)
                return page

        for page in pages:
            if _is_open(page):
                self.record_access(page)
                return page
        return None

    async def list_tabs(self) -> List[TabInfo]:
        tabs: List[TabInfo] = []
        for index, page in enumerate(self.iter_pages()):
            try:
                url = page.url
                title = await page.title()
            except Exception as exc:
                # Unreadable pages keep their slot so indices stay stable.
                _log_browser_event(
                    logger,
                    level=logging.WARNING,
                    event="tab_info_failed",
                    index=index,
                    error=exc,
                )
                continue
            tabs.append(TabInfo(index=index, url=url, title=title, page=page))
        return tabs

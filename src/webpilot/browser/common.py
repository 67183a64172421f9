"""Shared constants and small coercion helpers for browser modules."""

from __future__ import annotations

from typing import Any, Optional


DEFAULT_RECENCY_CAPACITY = 10
DEFAULT_ELEMENT_TIMEOUT_MS = 10_000
DEFAULT_NAVIGATION_TIMEOUT_MS = 10_000
DEFAULT_HISTORY_SETTLE_MS = 1_000
DEFAULT_NEW_TAB_WAIT_MS = 1_000
DEFAULT_CLICK_TARGET_TIMEOUT_MS = 5_000
BLANK_PAGE_URL = "about:blank"


def _as_text(value: Any) -> str:
    try:
        return str(value) if value is not None else ""
    except Exception:
        return ""


def _distributed_attempt_timeout(timeout_ms: int, *, attempt_count: int, minimum: int = 1) -> int:
    """Split one overall budget evenly across ``attempt_count`` candidate attempts."""
    if attempt_count <= 0:
        return max(minimum, int(timeout_ms))
    return max(minimum, int(timeout_ms) // int(attempt_count))


def _contains_casefold(haystack: Any, needle: Optional[str]) -> bool:
    if not needle:
        return False
    return needle.casefold() in _as_text(haystack).casefold()


def _page_url(page: Any) -> str:
    try:
        return _as_text(getattr(page, "url", ""))
    except Exception:
        return ""


async def _page_title(page: Any) -> str:
    try:
        return _as_text(await page.title())
    except Exception:
        return ""

"""Click resolution for selectors that may match more than one element."""

from __future__ import annotations

import logging
import random
import re
from typing import Any, Optional

from .common import DEFAULT_CLICK_TARGET_TIMEOUT_MS, DEFAULT_ELEMENT_TIMEOUT_MS
from .errors import AmbiguousMatchError, ElementNotFoundError, ElementNotInteractableError
from .logging_utils import _log_browser_event
from .results import ToolResult

logger = logging.getLogger(__name__)

SELECTION_SINGLE = "single"
SELECTION_EXPLICIT = "explicit"
SELECTION_RANDOM = "random"
SELECTION_FALLBACK = "fallback"

_STRICT_MODE_COUNT = re.compile(r"resolved to (\d+) elements")


class AmbiguousClickResolver:
    """
    Picks one element out of every match for ``selector`` and clicks it.

    An explicit ``nth`` is honored exactly or the click fails. Without one,
    a uniformly random match is tried first, then the first clickable match.
    """

    def __init__(
        self,
        page: Any,
        *,
        rng: Optional[random.Random] = None,
        element_timeout_ms: int = DEFAULT_ELEMENT_TIMEOUT_MS,
        target_timeout_ms: int = DEFAULT_CLICK_TARGET_TIMEOUT_MS,
    ) -> None:
        self._page = page
        self._rng = rng or random.Random()
        self._element_timeout_ms = element_timeout_ms
        self._target_timeout_ms = target_timeout_ms

    async def click(self, selector: str, nth: Optional[int] = None) -> ToolResult:
        try:
            return await self._click(selector, nth)
        except (ElementNotFoundError, ElementNotInteractableError, AmbiguousMatchError) as exc:
            _log_browser_event(logger, level=logging.INFO, event="click_failed", **exc.to_dict())
            return ToolResult.error(str(exc), code=exc.code, **exc.details)
        except Exception as exc:
            message = str(exc)
            if "strict mode violation" in message:
                match = _STRICT_MODE_COUNT.search(message)
                element_count = match.group(1) if match else "multiple"
                return ToolResult.error(
                    f"Failed to click {selector}: Found {element_count} matching elements. "
                    "Try using a more specific selector or use the nth parameter "
                    "(e.g., nth=0 for first element)",
                    code=AmbiguousMatchError.code,
                )
            return ToolResult.error(f"Failed to click {selector}: {message}")

    async def _click(self, selector: str, nth: Optional[int]) -> ToolResult:
        locator = self._page.locator(selector)
        count = await locator.count()
        _log_browser_event(
            logger,
            level=logging.DEBUG,
            event="click_candidates",
            selector=selector,
            count=count,
            nth=nth,
        )

        if count == 0:
            raise ElementNotFoundError(f"No elements found matching selector: {selector}")

        if nth is not None and not 0 <= nth < count:
            raise ElementNotFoundError(
                f"Invalid nth value: {nth}. Must be between 0 and {count - 1} "
                f"(found {count} elements)",
                details={"count": count},
            )

        if count == 1:
            return await self._click_single(locator, selector, explicit=nth is not None)

        if nth is not None:
            return await self._click_explicit(locator, selector, nth, count)
        return await self._click_random(locator, selector, count)

    async def _click_single(self, locator: Any, selector: str, *, explicit: bool = False) -> ToolResult:
        await locator.wait_for(timeout=self._element_timeout_ms)
        visible = await locator.is_visible()
        enabled = await locator.is_enabled()
        if not (visible and enabled):
            raise ElementNotInteractableError(
                f"Element matching {selector} is not clickable (visible: {visible}, enabled: {enabled})"
            )
        await locator.scroll_into_view_if_needed()
        await locator.click()
        suffix = " - specified nth=0" if explicit else ""
        return ToolResult.ok(
            f"Clicked on {selector} (element 0 of 1{suffix})",
            index=0,
            count=1,
            selection=SELECTION_EXPLICIT if explicit else SELECTION_SINGLE,
        )

    async def _click_explicit(self, locator: Any, selector: str, nth: int, count: int) -> ToolResult:
        target = locator.nth(nth)
        try:
            await target.wait_for(timeout=self._target_timeout_ms)
            visible = await target.is_visible()
            enabled = await target.is_enabled()
        except Exception as exc:
            return ToolResult.error(f"Failed to click element {nth} matching {selector}: {exc}")
        if not (visible and enabled):
            raise ElementNotInteractableError(
                f"Element {nth} matching {selector} is not clickable "
                f"(visible: {visible}, enabled: {enabled})"
            )
        try:
            await target.scroll_into_view_if_needed()
            await target.click()
        except Exception as exc:
            return ToolResult.error(f"Failed to click element {nth} matching {selector}: {exc}")
        return ToolResult.ok(
            f"Clicked on {selector} (element {nth} of {count} - specified nth={nth})",
            index=nth,
            count=count,
            selection=SELECTION_EXPLICIT,
        )

    async def _click_random(self, locator: Any, selector: str, count: int) -> ToolResult:
        index = self._rng.randrange(count)
        target = locator.nth(index)
        try:
            await target.wait_for(timeout=self._target_timeout_ms)
            visible = await target.is_visible()
            enabled = await target.is_enabled()
            if visible and enabled:
                await target.scroll_into_view_if_needed()
                await target.click()
                return ToolResult.ok(
                    f"Clicked on {selector} (element {index} of {count} - "
                    f"randomly selected ({index} of {count}))",
                    index=index,
                    count=count,
                    selection=SELECTION_RANDOM,
                )
        except Exception as exc:
            _log_browser_event(
                logger,
                level=logging.DEBUG,
                event="click_random_target_failed",
                selector=selector,
                index=index,
                error=exc,
            )
            return await self._click_first(locator, selector, count, exc)

        _log_browser_event(
            logger,
            level=logging.DEBUG,
            event="click_random_target_not_clickable",
            selector=selector,
            index=index,
            visible=visible,
            enabled=enabled,
        )
        return await self._click_first_clickable(locator, selector, count, index)

    async def _click_first_clickable(
        self,
        locator: Any,
        selector: str,
        count: int,
        random_index: int,
    ) -> ToolResult:
        for index in range(count):
            candidate = locator.nth(index)
            try:
                if await candidate.is_visible() and await candidate.is_enabled():
                    await candidate.scroll_into_view_if_needed()
                    await candidate.click()
                    return ToolResult.ok(
                        f"Clicked on {selector} (element {index} of {count} - fallback after "
                        f"random target {random_index} was not clickable)",
                        index=index,
                        count=count,
                        selection=SELECTION_FALLBACK,
                    )
            except Exception:
                continue
        raise AmbiguousMatchError(
            f"No clickable elements found among {count} matches for {selector}",
            details={"count": count},
        )

    async def _click_first(
        self,
        locator: Any,
        selector: str,
        count: int,
        target_error: Exception,
    ) -> ToolResult:
        first = locator.first
        try:
            await first.wait_for(timeout=self._target_timeout_ms)
            await first.scroll_into_view_if_needed()
            await first.click()
        except Exception as exc:
            return ToolResult.error(
                f"Failed to click any of {count} elements matching {selector}. "
                f"Random target error: {target_error}, Fallback error: {exc}",
                code=AmbiguousMatchError.code,
            )
        return ToolResult.ok(
            f"Clicked on {selector} (first of {count} elements - fallback after random selection failed)",
            index=0,
            count=count,
            selection=SELECTION_FALLBACK,
        )

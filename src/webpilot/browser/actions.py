"""
Browser action executors.

Each public coroutine implements one tool: it resolves the tab to act on
through the ActiveTabTracker, performs the automation calls, records tab
recency on success, and returns a ToolResult. Exceptions never escape a
public coroutine.
"""

from __future__ import annotations

import base64
import logging
import random
import sys
from typing import Any, Awaitable, Callable, Dict, Optional

from .click_resolver import AmbiguousClickResolver
from .common import (
    DEFAULT_ELEMENT_TIMEOUT_MS,
    DEFAULT_HISTORY_SETTLE_MS,
    DEFAULT_NAVIGATION_TIMEOUT_MS,
    DEFAULT_NEW_TAB_WAIT_MS,
    _contains_casefold,
    _page_title,
    _page_url,
)
from .content import ContentOptions, extract_structured_content, format_content
from .errors import BrowserOperationError, NavigationTimeoutError, NoActivePageError
from .logging_utils import _log_browser_event
from .results import ToolResult
from .search_resolver import SearchOptions, SearchResolver
from .tab_tracker import ActiveTabTracker

logger = logging.getLogger(__name__)

SCREENSHOT_VIEWPORT = {"width": 1920, "height": 1080}
SCREENSHOT_SETTLE_MS = 1_000
SCREENSHOT_TIMEOUT_MS = 10_000


def _error_code(exc: Exception) -> str:
    if isinstance(exc, BrowserOperationError):
        return exc.code
    # Playwright's TimeoutError shares the builtin's name.
    if exc.__class__.__name__ == "TimeoutError":
        return NavigationTimeoutError.code
    return "browser_error"


def _failure(prefix: str, exc: Exception) -> ToolResult:
    if isinstance(exc, NoActivePageError):
        return ToolResult.error(str(exc), code=exc.code)
    return ToolResult.error(f"{prefix}: {exc}", code=_error_code(exc))


class BrowserActions:
    """Tool executors bound to one browser and one recency tracker."""

    def __init__(
        self,
        browser: Any,
        tracker: Optional[ActiveTabTracker] = None,
        *,
        element_timeout_ms: int = DEFAULT_ELEMENT_TIMEOUT_MS,
        navigation_timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS,
        history_settle_ms: int = DEFAULT_HISTORY_SETTLE_MS,
        new_tab_wait_ms: int = DEFAULT_NEW_TAB_WAIT_MS,
        rng: Optional[random.Random] = None,
        platform: Optional[str] = None,
    ) -> None:
        self._browser = browser
        self._tracker = tracker or ActiveTabTracker(browser)
        self._element_timeout_ms = element_timeout_ms
        self._navigation_timeout_ms = navigation_timeout_ms
        self._history_settle_ms = history_settle_ms
        self._new_tab_wait_ms = new_tab_wait_ms
        self._rng = rng or random.Random()
        self._platform = platform or sys.platform

    @property
    def tracker(self) -> ActiveTabTracker:
        return self._tracker

    def _require_page(self, purpose: str) -> Any:
        page = self._tracker.resolve_active_tab()
        if page is None:
            raise NoActivePageError(f"No active page to {purpose}")
        return page

    async def _new_page(self) -> Any:
        context = await self._browser.new_context()
        return await context.new_page()

    # Navigation

    async def navigate(self, url: str) -> ToolResult:
        try:
            page = self._tracker.resolve_active_tab()
            if page is None:
                page = await self._new_page()
            await page.goto(url)
            self._tracker.record_access(page)
        except Exception as exc:
            return _failure(f"Failed to navigate to {url}", exc)
        return ToolResult.ok(f"Navigated to {url}")

    async def open_new_tab(self, url: Optional[str] = None) -> ToolResult:
        try:
            active = self._tracker.resolve_active_tab()
            if active is not None:
                shortcut_result = await self._open_tab_with_shortcut(active, url)
                if shortcut_result is not None:
                    return shortcut_result

            page = await self._new_page()
            if url:
                await page.goto(url)
            self._tracker.record_access(page)
        except Exception as exc:
            return _failure("Failed to open new tab", exc)

        if url:
            return ToolResult.ok(f"Opened new tab and navigated to {url}")
        return ToolResult.ok("Opened new tab (about:blank)")

    async def _open_tab_with_shortcut(self, active: Any, url: Optional[str]) -> Optional[ToolResult]:
        modifier = "Meta" if self._platform == "darwin" else "Control"
        known = {id(page) for page in self._tracker.iter_pages()}
        try:
            await active.keyboard.press(f"{modifier}+t")
            await active.wait_for_timeout(self._new_tab_wait_ms)
            new_page = None
            for context in list(self._browser.contexts):
                pages = list(context.pages)
                if pages and id(pages[-1]) not in known:
                    new_page = pages[-1]
                    break
            if new_page is None:
                _log_browser_event(
                    logger,
                    level=logging.INFO,
                    event="new_tab_shortcut_no_tab",
                    shortcut=f"{modifier}+t",
                )
                return None
            if url:
                await new_page.goto(url)
            self._tracker.record_access(new_page)
        except Exception as exc:
            logger.info("Keyboard shortcut failed: %s, falling back to programmatic creation", exc)
            return None

        if url:
            return ToolResult.ok(f"Opened new tab with keyboard shortcut and navigated to {url}")
        return ToolResult.ok("Opened new tab with keyboard shortcut (about:blank)")

    async def reload_page(self) -> ToolResult:
        try:
            page = self._require_page("reload")
            await page.reload(wait_until="networkidle")
            self._tracker.record_access(page)
        except Exception as exc:
            return _failure("Failed to reload page", exc)
        return ToolResult.ok("Page reloaded successfully")

    async def go_back(
        self,
        target_url: Optional[str] = None,
        target_title: Optional[str] = None,
        steps: Optional[int] = None,
    ) -> ToolResult:
        return await self._traverse_history(
            "back",
            target_url=target_url,
            target_title=target_title,
            steps=steps,
        )

    async def go_forward(
        self,
        target_url: Optional[str] = None,
        target_title: Optional[str] = None,
        steps: Optional[int] = None,
    ) -> ToolResult:
        return await self._traverse_history(
            "forward",
            target_url=target_url,
            target_title=target_title,
            steps=steps,
        )

    async def _traverse_history(
        self,
        direction: str,
        *,
        target_url: Optional[str],
        target_title: Optional[str],
        steps: Optional[int],
    ) -> ToolResult:
        boundary = "beginning" if direction == "back" else "end"
        try:
            page = self._require_page(f"navigate {direction} from")
        except NoActivePageError as exc:
            return ToolResult.error(str(exc), code=exc.code)

        def reached(url: str, title: str) -> bool:
            return _contains_casefold(url, target_url) or _contains_casefold(title, target_title)

        has_target = bool(target_url or target_title)
        max_steps = steps or (10 if has_target else 1)
        step = page.go_back if direction == "back" else page.go_forward
        steps_taken = 0
        try:
            for index in range(max_steps):
                try:
                    current_url = _page_url(page)
                    if reached(current_url, await _page_title(page)):
                        break
                    await step(wait_until="networkidle", timeout=self._navigation_timeout_ms)
                    steps_taken += 1
                    await page.wait_for_timeout(self._history_settle_ms)
                    new_url = _page_url(page)
                    if reached(new_url, await _page_title(page)):
                        break
                    if new_url == current_url:
                        _log_browser_event(
                            logger,
                            level=logging.DEBUG,
                            event="history_boundary",
                            direction=direction,
                            url=new_url,
                        )
                        break
                except Exception as exc:
                    _log_browser_event(
                        logger,
                        level=logging.INFO,
                        event="history_step_failed",
                        direction=direction,
                        step=index + 1,
                        error=exc,
                    )
                    break

            final_url = _page_url(page)
            final_title = await _page_title(page)
        except Exception as exc:
            return _failure(f"Failed to navigate {direction}", exc)

        if steps_taken == 0:
            return ToolResult.ok(
                f"Unable to navigate {direction}. Already at target or {boundary} of history.\n"
                f"Current URL: {final_url}\n"
                f'Current Title: "{final_title}"',
                steps_taken=0,
                url=final_url,
                title=final_title,
            )

        lines = [f"Navigated {direction} {steps_taken} step{'' if steps_taken == 1 else 's'}"]
        if _contains_casefold(final_url, target_url):
            lines.append(f"Reached target URL: {target_url}")
        elif _contains_casefold(final_title, target_title):
            lines.append(f"Reached target title: {target_title}")
        elif has_target:
            lines.append(f"Target not found, stopped after {steps_taken} steps")
        lines.append(f"Final URL: {final_url}")
        lines.append(f'Final Title: "{final_title}"')
        return ToolResult.ok(
            "\n".join(lines),
            steps_taken=steps_taken,
            url=final_url,
            title=final_title,
        )

    async def switch_tab(self, target_tab_name: Optional[str] = None) -> ToolResult:
        try:
            tabs = await self._tracker.list_tabs()
            if not tabs:
                return ToolResult.error(
                    "No tabs found. Browser may not be properly initialized.",
                    code=NoActivePageError.code,
                    tabs=[],
                )

            tab_list = "\n".join(tab.describe() for tab in tabs)
            listing = [tab.to_dict() for tab in tabs]
            if not target_tab_name:
                return ToolResult.ok(f"Current tabs:\n{tab_list}", tabs=listing)

            target = next(
                (
                    tab
                    for tab in tabs
                    if _contains_casefold(tab.title, target_tab_name)
                    or _contains_casefold(tab.url, target_tab_name)
                ),
                None,
            )
            if target is None:
                return ToolResult.error(
                    f'Tab "{target_tab_name}" not found.\nCurrent tabs:\n{tab_list}',
                    code="tab_not_found",
                    tabs=listing,
                )

            await target.page.bring_to_front()
            self._tracker.record_access(target.page)
        except Exception as exc:
            return _failure("Error managing tabs", exc)

        logger.info("Switched to tab %s (%s)", target.index, target.url)
        return ToolResult.ok(
            f'Switched to tab: "{target.title}" - {target.url}',
            active_tab=target.to_dict(),
        )

    # Content

    async def get_page_content(self, options: Optional[ContentOptions] = None) -> ToolResult:
        try:
            page = self._require_page("extract content from")
            content = await extract_structured_content(page, options)
        except Exception as exc:
            return _failure("Failed to extract page content", exc)
        return ToolResult.ok(format_content(content))

    async def get_html(self) -> ToolResult:
        try:
            page = self._require_page("get HTML from")
            html = await page.content()
        except Exception as exc:
            return _failure("Failed to get HTML", exc)
        return ToolResult.ok(html)

    async def take_screenshot(self) -> ToolResult:
        try:
            page = self._require_page("screenshot")
        except NoActivePageError as exc:
            return ToolResult.error(str(exc), code=exc.code)

        original_viewport = page.viewport_size
        try:
            await page.set_viewport_size(SCREENSHOT_VIEWPORT)
            try:
                await page.wait_for_load_state("networkidle", timeout=self._navigation_timeout_ms)
            except Exception as exc:
                _log_browser_event(
                    logger,
                    level=logging.DEBUG,
                    event="screenshot_network_idle_timeout",
                    error=exc,
                )
            await page.wait_for_timeout(SCREENSHOT_SETTLE_MS)
            data = await page.screenshot(full_page=True, type="png", timeout=SCREENSHOT_TIMEOUT_MS)
        except Exception as exc:
            return _failure("Failed to take screenshot", exc)
        finally:
            if original_viewport:
                try:
                    await page.set_viewport_size(original_viewport)
                except Exception as exc:
                    _log_browser_event(
                        logger,
                        level=logging.DEBUG,
                        event="viewport_restore_failed",
                        error=exc,
                    )
        return ToolResult.image(base64.b64encode(data).decode("ascii"), mime_type="image/png")

    # Interaction

    async def fill(self, selector: str, value: str) -> ToolResult:
        return await self._act_on_selector(
            "fill input on",
            selector,
            lambda locator: locator.fill(value),
            success=f"Filled {selector} with: {value}",
            failure=f"Failed to fill {selector}",
        )

    async def select(self, selector: str, value: str) -> ToolResult:
        return await self._act_on_selector(
            "select on",
            selector,
            lambda locator: locator.select_option(value),
            success=f"Selected {selector} with: {value}",
            failure=f"Failed to select {selector}",
        )

    async def hover(self, selector: str) -> ToolResult:
        return await self._act_on_selector(
            "hover on",
            selector,
            lambda locator: locator.hover(),
            success=f"Hovered {selector}",
            failure=f"Failed to hover {selector}",
        )

    async def _act_on_selector(
        self,
        purpose: str,
        selector: str,
        action: Callable[[Any], Awaitable[Any]],
        *,
        success: str,
        failure: str,
    ) -> ToolResult:
        try:
            page = self._require_page(purpose)
            locator = page.locator(selector)
            await locator.wait_for(timeout=self._element_timeout_ms)
            await action(locator)
        except Exception as exc:
            return _failure(failure, exc)
        return ToolResult.ok(success)

    async def click(self, selector: str, nth: Optional[int] = None) -> ToolResult:
        try:
            page = self._require_page("click on")
        except NoActivePageError as exc:
            return ToolResult.error(str(exc), code=exc.code)
        resolver = AmbiguousClickResolver(
            page,
            rng=self._rng,
            element_timeout_ms=self._element_timeout_ms,
        )
        return await resolver.click(selector, nth)

    async def search(self, search_text: str, options: Optional[SearchOptions] = None) -> ToolResult:
        try:
            page = self._require_page("perform search on")
            outcome = await SearchResolver(page, options).run(search_text)
        except Exception as exc:
            return _failure("Search operation failed", exc)
        if not outcome.succeeded:
            return ToolResult.error(outcome.report(), code="element_not_found")
        return ToolResult.ok(outcome.report(), **outcome.to_payload())

    def operations(self) -> Dict[str, Callable[..., Awaitable[ToolResult]]]:
        return {
            "navigate": self.navigate,
            "open_new_tab": self.open_new_tab,
            "reload_page": self.reload_page,
            "go_back": self.go_back,
            "go_forward": self.go_forward,
            "switch_tab": self.switch_tab,
            "get_page_content": self.get_page_content,
            "get_html": self.get_html,
            "take_screenshot": self.take_screenshot,
            "search": self.search,
            "fill": self.fill,
            "select": self.select,
            "hover": self.hover,
            "click": self.click,
        }

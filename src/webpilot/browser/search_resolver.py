"""
In-page search resolver.

Finds a search input without being told its selector, types the query,
and submits it, preferring the Enter key and falling back to a submit
button. The cascade is an explicit state machine:

    FINDING_INPUT -> TYPING -> SUBMIT_ENTER -> DONE
                                  |
                                  v
                       SUBMIT_BUTTON_FALLBACK -> DONE

A pass over every input candidate that never reaches SUBMIT_ENTER is
retried up to ``retry_attempts`` times before ending in FAILED.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from .common import _distributed_attempt_timeout, _page_url
from .logging_utils import _log_browser_event
from .selectors import (
    SEARCH_INPUT_SELECTORS,
    SEARCH_RESULT_SELECTOR,
    SUBMIT_BUTTON_SELECTORS,
    RankedSelector,
)

logger = logging.getLogger(__name__)

ERROR_REPORT_LIMIT = 5
RETRY_BACKOFF_MS = 1_000
INPUT_SCROLL_SETTLE_MS = 500
BUTTON_SCROLL_SETTLE_MS = 300
CONTENT_UPDATE_WAIT_MS = 2_000
ENTER_METHOD = "Enter key"
NO_BUTTON_METHOD = "Enter key (no button found)"


class SearchState(str, Enum):
    FINDING_INPUT = "finding_input"
    TYPING = "typing"
    SUBMIT_ENTER = "submit_enter"
    SUBMIT_BUTTON_FALLBACK = "submit_button_fallback"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES = frozenset({SearchState.DONE, SearchState.FAILED})


@dataclass
class SearchOptions:
    clear_existing: bool = True
    wait_for_navigation: bool = True
    timeout_ms: int = 5_000
    retry_attempts: int = 3
    type_delay_ms: int = 50
    navigation_timeout_ms: int = 10_000


@dataclass
class SearchOutcome:
    search_text: str
    state: SearchState = SearchState.FINDING_INPUT
    used_selector: Optional[str] = None
    submit_method: Optional[str] = None
    url_changed: bool = False
    final_url: str = ""
    has_results: bool = False
    entered_text: Optional[str] = None
    errors: List[str] = field(default_factory=list)
    transitions: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state is SearchState.DONE

    def report(self) -> str:
        if not self.succeeded:
            recent = "; ".join(self.errors[-ERROR_REPORT_LIMIT:])
            return f"Failed to find accessible search bar. Errors: {recent}"
        headline = (
            "Search completed successfully!"
            if self.submit_method == ENTER_METHOD
            else "Search completed!"
        )
        return (
            f"{headline}\n"
            f'Search text: "{self.search_text}"\n'
            f"Used selector: {self.used_selector}\n"
            f"Submit method: {self.submit_method}\n"
            f"URL changed: {'Yes' if self.url_changed else 'No'}\n"
            f"Final URL: {self.final_url}\n"
            f"Has search results: {'Yes' if self.has_results else 'No'}"
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "used_selector": self.used_selector,
            "submit_method": self.submit_method,
            "url_changed": self.url_changed,
            "final_url": self.final_url,
            "has_results": self.has_results,
        }


class SearchResolver:
    """Drives one search through the state machine against a single page."""

    def __init__(
        self,
        page: Any,
        options: Optional[SearchOptions] = None,
        *,
        input_selectors: Tuple[RankedSelector, ...] = SEARCH_INPUT_SELECTORS,
        submit_selectors: Tuple[RankedSelector, ...] = SUBMIT_BUTTON_SELECTORS,
        result_selector: str = SEARCH_RESULT_SELECTOR,
    ) -> None:
        self._page = page
        self._options = options or SearchOptions()
        self._input_selectors = input_selectors
        self._submit_selectors = submit_selectors
        self._result_selector = result_selector

        self._attempt = 0
        self._cursor = 0
        self._candidate: Optional[Any] = None
        self._candidate_selector: Optional[str] = None
        self._initial_url = ""
        self._outcome: Optional[SearchOutcome] = None

    async def run(self, search_text: str) -> SearchOutcome:
        self._outcome = SearchOutcome(search_text=search_text)
        self._attempt = 0
        self._cursor = 0
        handlers: Dict[SearchState, Callable[[], Awaitable[SearchState]]] = {
            SearchState.FINDING_INPUT: self._find_input,
            SearchState.TYPING: self._type_query,
            SearchState.SUBMIT_ENTER: self._submit_with_enter,
            SearchState.SUBMIT_BUTTON_FALLBACK: self._submit_with_button,
        }

        state = SearchState.FINDING_INPUT
        while state not in TERMINAL_STATES:
            next_state = await handlers[state]()
            self._transition(state, next_state)
            state = next_state
        self._outcome.state = state
        return self._outcome

    def _transition(self, current: SearchState, next_state: SearchState) -> None:
        assert self._outcome is not None
        if current is next_state:
            return
        self._outcome.transitions.append((current.value, next_state.value))
        _log_browser_event(
            logger,
            level=logging.DEBUG,
            event="search_transition",
            source=current.value,
            target=next_state.value,
            attempt=self._attempt + 1,
        )

    def _record_error(self, message: str) -> None:
        assert self._outcome is not None
        self._outcome.errors.append(message)
        _log_browser_event(
            logger,
            level=logging.DEBUG,
            event="search_candidate_failed",
            attempt=self._attempt + 1,
            detail=message,
        )

    async def _find_input(self) -> SearchState:
        per_attempt = _distributed_attempt_timeout(
            self._options.timeout_ms,
            attempt_count=len(self._input_selectors),
        )
        attempts = max(1, int(self._options.retry_attempts))
        while self._attempt < attempts:
            while self._cursor < len(self._input_selectors):
                selector = self._input_selectors[self._cursor].selector
                self._cursor += 1
                try:
                    element = self._page.locator(selector).first
                    await element.wait_for(timeout=per_attempt)
                    visible = await element.is_visible()
                    enabled = await element.is_enabled()
                except Exception as exc:
                    self._record_error(f"Selector {selector} failed: {exc}")
                    continue
                if visible and enabled:
                    self._candidate = element
                    self._candidate_selector = selector
                    return SearchState.TYPING
                self._record_error(
                    f"Element not interactable: {selector} - visible: {visible}, enabled: {enabled}"
                )

            self._attempt += 1
            self._cursor = 0
            if self._attempt < attempts:
                await self._page.wait_for_timeout(RETRY_BACKOFF_MS)
        return SearchState.FAILED

    async def _type_query(self) -> SearchState:
        assert self._outcome is not None
        element = self._candidate
        selector = self._candidate_selector
        text = self._outcome.search_text
        try:
            await element.scroll_into_view_if_needed()
            await self._page.wait_for_timeout(INPUT_SCROLL_SETTLE_MS)
            await element.focus()
            if self._options.clear_existing:
                await element.select_text()
                await self._page.keyboard.press("Backspace")
            await element.press_sequentially(text, delay=self._options.type_delay_ms)
            entered = await element.input_value()
        except Exception as exc:
            self._record_error(f"Selector {selector} failed: {exc}")
            return SearchState.FINDING_INPUT

        if entered != text:
            self._record_error(
                f'Text verification failed for {selector}. Expected: "{text}", Got: "{entered}"'
            )
            return SearchState.FINDING_INPUT

        self._outcome.entered_text = entered
        self._outcome.used_selector = selector
        logger.info("Typed search text into %s", selector)
        return SearchState.SUBMIT_ENTER

    async def _submit_with_enter(self) -> SearchState:
        assert self._outcome is not None
        self._initial_url = _page_url(self._page)
        try:
            await self._page.keyboard.press("Enter")
            self._outcome.submit_method = ENTER_METHOD
            await self._wait_for_update()
            await self._verify()
        except Exception as exc:
            _log_browser_event(
                logger,
                level=logging.DEBUG,
                event="search_enter_failed",
                error=exc,
            )
            return SearchState.SUBMIT_BUTTON_FALLBACK

        if self._outcome.url_changed or self._outcome.has_results:
            return SearchState.DONE
        return SearchState.SUBMIT_BUTTON_FALLBACK

    async def _submit_with_button(self) -> SearchState:
        assert self._outcome is not None
        per_attempt = _distributed_attempt_timeout(
            self._options.timeout_ms,
            attempt_count=len(self._submit_selectors),
        )
        clicked = False
        for entry in self._submit_selectors:
            try:
                element = self._page.locator(entry.selector).first
                await element.wait_for(timeout=per_attempt)
                if await element.is_visible() and await element.is_enabled():
                    await element.scroll_into_view_if_needed()
                    await self._page.wait_for_timeout(BUTTON_SCROLL_SETTLE_MS)
                    await element.click()
                    clicked = True
                    self._outcome.submit_method = f"button: {entry.selector}"
                    break
            except Exception:
                continue

        if clicked:
            if self._options.wait_for_navigation:
                await self._wait_for_update()
        else:
            self._outcome.submit_method = NO_BUTTON_METHOD

        await self._verify()
        return SearchState.DONE

    async def _wait_for_update(self) -> None:
        if not self._options.wait_for_navigation:
            await self._page.wait_for_timeout(CONTENT_UPDATE_WAIT_MS)
            return
        try:
            await self._page.wait_for_load_state(
                "networkidle",
                timeout=self._options.navigation_timeout_ms,
            )
        except Exception:
            # Sites that update results in place never reach a new load state.
            await self._page.wait_for_timeout(CONTENT_UPDATE_WAIT_MS)

    async def _verify(self) -> None:
        assert self._outcome is not None
        final_url = _page_url(self._page)
        self._outcome.final_url = final_url
        self._outcome.url_changed = final_url != self._initial_url
        try:
            count = await self._page.locator(self._result_selector).count()
        except Exception:
            count = 0
        self._outcome.has_results = count > 0

"""
Ranked selector policy tables for the heuristic resolvers.

Order inside each table is the lookup order: earlier entries win.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class RankedSelector:
    selector: str
    tier: str


def _ranked(tier: str, *selectors: str) -> Tuple[RankedSelector, ...]:
    return tuple(RankedSelector(selector=item, tier=tier) for item in selectors)


SEARCH_INPUT_SELECTORS: Tuple[RankedSelector, ...] = (
    _ranked(
        "semantic",
        'input[type="search"]',
        'input[name="q"]',
        'input[name="query"]',
        'input[name="search"]',
        'input[role="searchbox"]',
        '[role="searchbox"]',
    )
    + _ranked(
        "aria_placeholder",
        'input[aria-label*="search" i]',
        'input[placeholder*="search" i]',
        'input[placeholder*="find" i]',
    )
    + _ranked(
        "id_class",
        "#search",
        "#searchbox",
        "#search-input",
        "#q",
        ".search-input",
        ".searchbox",
        ".search-field",
        'input[class*="search"]',
        'input[id*="search"]',
    )
    + _ranked(
        "generic",
        'form input[type="text"]',
        'header input[type="text"]',
        'nav input[type="text"]',
    )
)

SUBMIT_BUTTON_SELECTORS: Tuple[RankedSelector, ...] = (
    _ranked(
        "semantic",
        'button[type="submit"]',
        'input[type="submit"]',
    )
    + _ranked(
        "aria_title",
        'button[aria-label*="search" i]',
        'button[title*="search" i]',
    )
    + _ranked(
        "id_class",
        ".search-button",
        ".search-btn",
        "#search-button",
        "#search-btn",
        'button[class*="search"]',
        'button[id*="search"]',
    )
    + _ranked(
        "form",
        'form button:not([type="button"]):not([type="reset"])',
        'form input[type="image"]',
    )
)

SEARCH_RESULT_SELECTOR = ", ".join(
    (
        '[class*="result"]',
        '[class*="search-result"]',
        '[id*="result"]',
        ".results",
        "#results",
        '[data-testid*="result"]',
    )
)


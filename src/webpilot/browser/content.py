"""Structured page content extraction and markdown-like rendering."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .common import _as_text
from .content_script import CONTENT_COLLECTOR_JS

ITEMS_PER_LIST = 20
MAX_LINK_TEXT_LENGTH = 200
MAIN_CONTENT_LIMIT = 2000
FORMAT_PARAGRAPH_LIMIT = 5
FORMAT_LIST_ITEM_LIMIT = 10
FORMAT_LINK_LIMIT = 10


@dataclass
class ContentOptions:
    max_paragraph_length: int = 1000
    max_list_items: int = 100
    max_links: int = 50
    include_metadata: bool = True
    filter_empty_content: bool = True
    deduplicate_content: bool = True


async def extract_structured_content(page: Any, options: Optional[ContentOptions] = None) -> Dict[str, Any]:
    config = options or ContentOptions()
    raw = await page.evaluate(CONTENT_COLLECTOR_JS, {"includeMetadata": config.include_metadata})
    if not isinstance(raw, dict):
        raw = {}
    return shape_content(raw, config)


def shape_content(raw: Dict[str, Any], options: ContentOptions) -> Dict[str, Any]:
    """Apply limits, deduplication and empty-section filtering to collected page facts."""
    content: Dict[str, Any] = {
        "title": _as_text(raw.get("title")),
        "url": _as_text(raw.get("url")),
        "headings": _shape_headings(raw.get("headings")),
        "paragraphs": _shape_paragraphs(raw.get("paragraphs"), options),
        "lists": _shape_lists(raw.get("lists"), options),
        "links": _shape_links(raw.get("links"), _as_text(raw.get("origin")), options),
        "metadata": dict(raw.get("metadata") or {}) if options.include_metadata else {},
    }

    main_text = raw.get("mainContentText")
    if main_text is not None:
        content["mainContentText"] = _as_text(main_text).strip()[:MAIN_CONTENT_LIMIT]

    if options.filter_empty_content:
        for key in [key for key, value in content.items() if isinstance(value, list) and not value]:
            del content[key]
    return content


def _shape_headings(raw_headings: Any) -> List[Dict[str, Any]]:
    headings: List[Dict[str, Any]] = []
    for heading in raw_headings or []:
        text = _as_text(heading.get("text")).strip()
        if not text:
            continue
        headings.append(
            {
                "level": int(heading.get("level") or 1),
                "tag": _as_text(heading.get("tag")),
                "text": text,
                "id": heading.get("id") or None,
            }
        )
    return headings


def _shape_paragraphs(raw_paragraphs: Any, options: ContentOptions) -> List[str]:
    paragraphs: List[str] = []
    seen: set[str] = set()
    for value in raw_paragraphs or []:
        text = _as_text(value).strip()
        # Over-long paragraphs are dropped whole rather than truncated.
        if not text or len(text) > options.max_paragraph_length:
            continue
        if options.deduplicate_content:
            if text in seen:
                continue
            seen.add(text)
        paragraphs.append(text)
    return paragraphs


def _shape_lists(raw_lists: Any, options: ContentOptions) -> List[Dict[str, Any]]:
    lists: List[Dict[str, Any]] = []
    for entry in raw_lists or []:
        items = [
            text
            for text in (_as_text(item).strip() for item in entry.get("items") or [])
            if text
        ]
        if items and len(lists) < options.max_list_items:
            lists.append(
                {
                    "type": _as_text(entry.get("type")) or "ul",
                    "items": items[:ITEMS_PER_LIST],
                }
            )
    return lists


def _shape_links(raw_links: Any, origin: str, options: ContentOptions) -> List[Dict[str, Any]]:
    links: List[Dict[str, Any]] = []
    seen: set[str] = set()
    for entry in raw_links or []:
        if len(links) >= options.max_links:
            break
        text = _as_text(entry.get("text")).strip()
        href = _as_text(entry.get("url"))
        if not href or not (href.startswith("http") or href.startswith("/")):
            continue
        if not 0 < len(text) < MAX_LINK_TEXT_LENGTH:
            continue
        if entry.get("inNavigation"):
            continue
        if options.deduplicate_content:
            if href in seen:
                continue
            seen.add(href)
        links.append(
            {
                "text": text,
                "url": href,
                "isExternal": href.startswith("http") and not (origin and href.startswith(origin)),
            }
        )
    return links


def format_content(content: Dict[str, Any]) -> str:
    lines: List[str] = [f"# {content.get('title', '')}", ""]

    if content.get("url"):
        lines.extend([f"**URL:** {content['url']}", ""])

    headings = content.get("headings") or []
    if headings:
        lines.append("## Headings")
        for heading in headings:
            indent = "  " * (int(heading.get("level", 1)) - 1)
            lines.append(f"{indent}- {heading['text']}")
        lines.append("")

    if content.get("mainContentText"):
        lines.extend(["## Main Content", content["mainContentText"], ""])

    paragraphs = content.get("paragraphs") or []
    if paragraphs:
        lines.append("## Key Paragraphs")
        lines.extend(f"- {text}" for text in paragraphs[:FORMAT_PARAGRAPH_LIMIT])
        lines.append("")

    lists = content.get("lists") or []
    if lists:
        lines.append("## Lists")
        for position, entry in enumerate(lists, start=1):
            lines.append(f"### List {position} ({entry['type']})")
            lines.extend(f"- {item}" for item in entry["items"][:FORMAT_LIST_ITEM_LIMIT])
            lines.append("")

    links = content.get("links") or []
    if links:
        lines.append("## Important Links")
        for link in links[:FORMAT_LINK_LIMIT]:
            suffix = " (external)" if link.get("isExternal") else ""
            lines.append(f"- [{link['text']}]({link['url']}){suffix}")

    return "\n".join(lines).rstrip() + "\n"

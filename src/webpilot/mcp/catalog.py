"""
Tool catalog: argument models and JSON-Schema declarations for every tool.

Argument models validate the shape of ``tools/call`` arguments before an
executor runs. Wire names are camelCase aliases; Python field names match
the executor parameters.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, Field
from pydantic_core import PydanticUndefined

from webpilot.browser.content import ContentOptions
from webpilot.browser.search_resolver import SearchOptions


def python_type_to_json_schema(py_type: Any) -> Dict[str, Any]:
    """Convert a Python type hint to a JSON schema type."""
    origin = get_origin(py_type)
    args = get_args(py_type)

    # Optional[X] is declared as X; absence means "not provided".
    if origin is Union:
        non_none = [a for a in args if a is not type(None)]
        if len(non_none) == 1:
            return python_type_to_json_schema(non_none[0])
        return {"type": "string"}

    if origin is list:
        item_type = args[0] if args else Any
        return {"type": "array", "items": python_type_to_json_schema(item_type)}

    if origin is dict:
        return {"type": "object"}

    type_map = {
        str: {"type": "string"},
        int: {"type": "integer"},
        float: {"type": "number"},
        bool: {"type": "boolean"},
    }
    return dict(type_map.get(py_type, {"type": "string"}))


class ToolArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def call_kwargs(self) -> Dict[str, Any]:
        return self.model_dump()


class NoArgs(ToolArgs):
    pass


class NavigateArgs(ToolArgs):
    url: str = Field(..., description="URL to navigate to")


class OpenNewTabArgs(ToolArgs):
    url: Optional[str] = Field(None, description="Optional URL to navigate to in the new tab")


class HistoryArgs(ToolArgs):
    target_url: Optional[str] = Field(
        None,
        alias="targetUrl",
        description="Partial URL to stop at (optional, case-insensitive)",
    )
    target_title: Optional[str] = Field(
        None,
        alias="targetTitle",
        description="Partial page title to stop at (optional, case-insensitive)",
    )
    steps: Optional[int] = Field(
        None,
        description="Maximum number of history steps (defaults to 1, or 10 when a target is given)",
    )


class SwitchTabArgs(ToolArgs):
    target_tab_name: Optional[str] = Field(
        None,
        alias="targetTabName",
        description="Partial title or URL of the tab to switch to (case-insensitive); omit to list tabs",
    )


class SearchArgs(ToolArgs):
    search_text: str = Field(..., alias="searchText", description="Text to search for")
    clear_existing: bool = Field(
        True, alias="clearExisting", description="Clear existing text before typing"
    )
    wait_for_navigation: bool = Field(
        True, alias="waitForNavigation", description="Wait for navigation after search submission"
    )
    timeout: int = Field(5000, description="Timeout for finding search elements (ms)")
    retry_attempts: int = Field(
        3, alias="retryAttempts", description="Number of retry attempts for finding search elements"
    )
    type_delay: int = Field(
        50, alias="typeDelay", description="Delay between keystrokes when typing (ms)"
    )

    def call_kwargs(self) -> Dict[str, Any]:
        return {
            "search_text": self.search_text,
            "options": SearchOptions(
                clear_existing=self.clear_existing,
                wait_for_navigation=self.wait_for_navigation,
                timeout_ms=self.timeout,
                retry_attempts=self.retry_attempts,
                type_delay_ms=self.type_delay,
            ),
        }


class GetPageContentArgs(ToolArgs):
    max_paragraph_length: int = Field(
        1000, alias="maxParagraphLength", description="Maximum length for paragraphs"
    )
    max_list_items: int = Field(
        100, alias="maxListItems", description="Maximum number of lists to extract"
    )
    max_links: int = Field(50, alias="maxLinks", description="Maximum number of links to extract")
    include_metadata: bool = Field(
        True, alias="includeMetadata", description="Whether to include page metadata"
    )
    filter_empty_content: bool = Field(
        True, alias="filterEmptyContent", description="Whether to filter out empty content sections"
    )
    deduplicate_content: bool = Field(
        True, alias="deduplicateContent", description="Whether to remove duplicate content"
    )

    def call_kwargs(self) -> Dict[str, Any]:
        return {"options": ContentOptions(**self.model_dump())}


class SelectorArgs(ToolArgs):
    selector: str = Field(
        ...,
        description="CSS selector or Playwright text selector (e.g., '.dropdown-menu' or 'text=Menu')",
    )


class SelectorValueArgs(SelectorArgs):
    value: str = Field(..., description="Value to fill or select")


class ClickArgs(SelectorArgs):
    nth: Optional[int] = Field(
        None,
        description="Zero-based index of the match to click when the selector matches several elements",
    )


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    args_model: Type[ToolArgs]

    def input_schema(self) -> Dict[str, Any]:
        properties: Dict[str, Any] = {}
        required: List[str] = []
        for name, info in self.args_model.model_fields.items():
            key = info.alias or name
            schema = python_type_to_json_schema(info.annotation)
            if info.description:
                schema["description"] = info.description
            if info.is_required():
                required.append(key)
            elif info.default is not None and info.default is not PydanticUndefined:
                schema["default"] = info.default
            properties[key] = schema
        return {"type": "object", "properties": properties, "required": required}

    def to_mcp(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema(),
        }


TOOL_SPECS: tuple[ToolSpec, ...] = (
    ToolSpec("navigate", "Navigate to a specific URL", NavigateArgs),
    ToolSpec("open_new_tab", "Open a new tab in the browser", OpenNewTabArgs),
    ToolSpec("reload_page", "Reload the current webpage", NoArgs),
    ToolSpec(
        "go_back",
        "Navigate back in browser history until target is reached or specified number of steps",
        HistoryArgs,
    ),
    ToolSpec(
        "go_forward",
        "Navigate forward in browser history until target is reached or specified number of steps",
        HistoryArgs,
    ),
    ToolSpec(
        "switch_tab",
        "Switch to a different tab by partial name/title match or list all tabs if no target specified",
        SwitchTabArgs,
    ),
    ToolSpec("search", "Find and use search functionality on the current page", SearchArgs),
    ToolSpec(
        "get_page_content",
        "Extract structured and formatted content from the current webpage",
        GetPageContentArgs,
    ),
    ToolSpec("get_html", "Extract the entire raw HTML from the current webpage", NoArgs),
    ToolSpec("take_screenshot", "Capture a full-page PNG screenshot of the current webpage", NoArgs),
    ToolSpec(
        "fill",
        "Fill out an input field using CSS selectors or Playwright text selectors",
        SelectorValueArgs,
    ),
    ToolSpec(
        "select",
        "Select an option of a <select> element using CSS selectors or Playwright text selectors",
        SelectorValueArgs,
    ),
    ToolSpec(
        "hover",
        "Hover an element on the page using CSS selectors or Playwright text selectors",
        SelectorArgs,
    ),
    ToolSpec(
        "click",
        "Click on an element using CSS selectors or Playwright text selectors",
        ClickArgs,
    ),
)

_SPECS_BY_NAME: Dict[str, ToolSpec] = {spec.name: spec for spec in TOOL_SPECS}


def get_tool_spec(name: Any) -> Optional[ToolSpec]:
    if not isinstance(name, str):
        return None
    return _SPECS_BY_NAME.get(name)


def list_tools() -> List[Dict[str, Any]]:
    return [spec.to_mcp() for spec in TOOL_SPECS]

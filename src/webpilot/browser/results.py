"""Uniform tool result type returned by every browser action."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class ToolResult:
    content: List[Dict[str, Any]] = field(default_factory=list)
    is_error: bool = False
    error_code: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None

    @classmethod
    def ok(cls, text: str, **payload: Any) -> "ToolResult":
        return cls(
            content=[{"type": "text", "text": text}],
            is_error=False,
            payload=payload or None,
        )

    @classmethod
    def image(cls, data: str, mime_type: str = "image/png") -> "ToolResult":
        return cls(content=[{"type": "image", "data": data, "mimeType": mime_type}])

    @classmethod
    def error(cls, text: str, *, code: str = "browser_error", **payload: Any) -> "ToolResult":
        return cls(
            content=[{"type": "text", "text": text}],
            is_error=True,
            error_code=code,
            payload=payload or None,
        )

    @property
    def text(self) -> str:
        """Concatenated text of all text content items."""
        return "\n".join(
            str(item.get("text", "")) for item in self.content if item.get("type") == "text"
        )

    def to_mcp(self) -> Dict[str, Any]:
        return {"content": list(self.content), "isError": bool(self.is_error)}

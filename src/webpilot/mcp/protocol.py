"""JSON-RPC 2.0 envelope helpers for the MCP endpoint."""

from __future__ import annotations

from typing import Any, Dict, Optional

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2025-03-26"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

SERVER_INFO = {
    "name": "Web browsing MCP",
    "version": "1.0.0",
    "description": "Allows web browser control and internet connections",
}

SERVER_CAPABILITIES = {
    "tools": {},
    "resources": {},
    "prompts": {},
    "logging": {},
}


class JsonRpcError(Exception):
    """A protocol-level failure rendered as a JSON-RPC error object."""

    def __init__(self, code: int, message: str, data: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(message)

    def to_error(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


def success_response(request_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def error_response(request_id: Any, error: JsonRpcError) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error.to_error()}

"""Routes JSON-RPC methods to the tool catalog and browser actions."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from webpilot.browser.actions import BrowserActions

from .catalog import get_tool_spec, list_tools
from .protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PROTOCOL_VERSION,
    SERVER_CAPABILITIES,
    SERVER_INFO,
    JsonRpcError,
    success_response,
)

logger = logging.getLogger(__name__)


class McpDispatcher:
    """
    Single-session JSON-RPC dispatcher.

    ``initialized`` is ``None`` before ``initialize``, ``False`` until the
    client confirms with ``notifications/initialized``, then ``True``.
    ``tools/list`` and ``tools/call`` implicitly open a session.
    """

    def __init__(self, actions: BrowserActions) -> None:
        self._actions = actions
        self._operations = actions.operations()
        self.initialized: Optional[bool] = None

    async def handle(self, envelope: Any) -> Dict[str, Any]:
        if not isinstance(envelope, dict) or not envelope.get("method"):
            raise JsonRpcError(INVALID_REQUEST, "Invalid Request")

        method = envelope["method"]
        request_id = envelope.get("id")
        params = envelope.get("params") or {}
        logger.debug("JSON-RPC request method=%s id=%s", method, request_id)

        if method == "initialize":
            if self.initialized is None:
                self.initialized = False
            return success_response(
                request_id,
                {
                    "protocolVersion": PROTOCOL_VERSION,
                    "capabilities": SERVER_CAPABILITIES,
                    "serverInfo": SERVER_INFO,
                },
            )
        if method == "notifications/initialized":
            if self.initialized is not None:
                self.initialized = True
            return success_response(request_id, None)
        if method == "tools/list":
            self._ensure_session()
            return success_response(request_id, {"tools": list_tools()})
        if method == "tools/call":
            self._ensure_session()
            return success_response(request_id, await self.call_tool(params))

        raise JsonRpcError(METHOD_NOT_FOUND, f"Method not found: {method}")

    def _ensure_session(self) -> None:
        if self.initialized is None:
            self.initialized = True

    async def call_tool(self, params: Any) -> Dict[str, Any]:
        if not isinstance(params, dict):
            raise JsonRpcError(INVALID_PARAMS, "Invalid params: expected an object")
        name = params.get("name")
        arguments = params.get("arguments") or {}
        details = {"toolName": name, "arguments": arguments}

        spec = get_tool_spec(name)
        if spec is None or name not in self._operations:
            raise JsonRpcError(
                INTERNAL_ERROR,
                f"Tool execution failed: Unknown tool: {name}",
                data=details,
            )
        if not isinstance(arguments, dict):
            raise JsonRpcError(INVALID_PARAMS, "Invalid params: arguments must be an object", data=details)

        try:
            args = spec.args_model.model_validate(arguments)
        except ValidationError as exc:
            raise JsonRpcError(
                INVALID_PARAMS,
                f"Invalid arguments for {name}",
                data={**details, "errors": exc.errors(include_url=False)},
            ) from exc

        try:
            result = await self._operations[name](**args.call_kwargs())
        except Exception as exc:
            logger.exception("Tool %s raised past its result boundary", name)
            raise JsonRpcError(
                INTERNAL_ERROR,
                f"Tool execution failed: {exc}",
                data=details,
            ) from exc

        if result.is_error:
            logger.info("Tool %s failed: %s", name, result.text)
        return result.to_mcp()

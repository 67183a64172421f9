"""FastAPI surface: the JSON-RPC endpoint, health check and discovery document."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from webpilot import __version__

from .dispatcher import McpDispatcher
from .protocol import (
    INTERNAL_ERROR,
    INVALID_REQUEST,
    PARSE_ERROR,
    SERVER_INFO,
    JsonRpcError,
    error_response,
)

logger = logging.getLogger(__name__)

MCP_PATH = "/mcp"


def _request_id(envelope: Any) -> Any:
    return envelope.get("id") if isinstance(envelope, dict) else None


def build_app(
    dispatcher: Optional[McpDispatcher] = None,
    lifespan: Optional[Callable[[FastAPI], Any]] = None,
) -> FastAPI:
    app = FastAPI(title=SERVER_INFO["name"], version=__version__, lifespan=lifespan)
    app.state.dispatcher = dispatcher

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.post(MCP_PATH)
    async def mcp_endpoint(request: Request) -> JSONResponse:
        body = await request.body()
        try:
            envelope = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("Rejected unparseable JSON-RPC body: %s", exc)
            return JSONResponse(
                error_response(None, JsonRpcError(PARSE_ERROR, "Parse error")),
                status_code=400,
            )

        request_id = _request_id(envelope)
        if not isinstance(envelope, dict) or not envelope.get("method"):
            return JSONResponse(
                error_response(request_id, JsonRpcError(INVALID_REQUEST, "Invalid Request")),
                status_code=400,
            )

        active: Optional[McpDispatcher] = request.app.state.dispatcher
        if active is None:
            logger.error("JSON-RPC request received before the browser session was ready")
            return JSONResponse(
                error_response(request_id, JsonRpcError(INTERNAL_ERROR, "Internal error")),
                status_code=500,
            )

        try:
            response = await active.handle(envelope)
        except JsonRpcError as exc:
            logger.info("JSON-RPC error code=%s message=%s", exc.code, exc.message)
            return JSONResponse(error_response(request_id, exc))
        except Exception:
            logger.exception("Unhandled failure while dispatching %s", envelope.get("method"))
            return JSONResponse(
                error_response(request_id, JsonRpcError(INTERNAL_ERROR, "Internal error")),
                status_code=500,
            )
        return JSONResponse(response)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.get("/")
    async def root() -> dict:
        return {
            "name": f"{SERVER_INFO['name']}(Playwright)",
            "version": SERVER_INFO["version"],
            "description": "MCP server for controlling web browsers via Playwright (Single user support)",
            "endpoints": {
                "mcp": f"{MCP_PATH} - MCP protocol endpoint",
                "health": "/health - Health check",
            },
        }

    return app

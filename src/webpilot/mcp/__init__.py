from .app import build_app
from .catalog import TOOL_SPECS, get_tool_spec, list_tools
from .dispatcher import McpDispatcher
from .protocol import JsonRpcError

__all__ = [
    "JsonRpcError",
    "McpDispatcher",
    "TOOL_SPECS",
    "build_app",
    "get_tool_spec",
    "list_tools",
]

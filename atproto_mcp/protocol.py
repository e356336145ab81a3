"""
JSON-RPC 2.0 / MCP message helpers.

Validation of inbound messages plus builders for the result payloads the
router returns.
"""

from typing import Any, Dict, List, Optional

JSONRPC_VERSION = "2.0"

# Standard JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class ProtocolError(Exception):
    """JSON-RPC level fault, answered with an error response."""

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


def validate_message(msg: Any) -> str:
    """
    Classify a JSON-RPC message.

    Returns one of "request", "notification", "response", "error".
    Raises ProtocolError(INVALID_REQUEST) for anything else.
    """
    if not isinstance(msg, dict):
        raise ProtocolError(INVALID_REQUEST, "Message must be a JSON object")
    if msg.get("jsonrpc") != JSONRPC_VERSION:
        raise ProtocolError(INVALID_REQUEST, "Missing or invalid jsonrpc version")
    if "id" in msg and not isinstance(msg["id"], (str, int, float, type(None))):
        raise ProtocolError(INVALID_REQUEST, "Id must be a string, number or null")

    if "method" in msg:
        if not isinstance(msg["method"], str):
            raise ProtocolError(INVALID_REQUEST, "Method must be a string")
        params = msg.get("params")
        if params is not None and not isinstance(params, (dict, list)):
            raise ProtocolError(INVALID_REQUEST, "Params must be an object or array")
        return "request" if "id" in msg else "notification"

    if "id" in msg:
        if "error" in msg:
            return "error"
        if "result" in msg:
            return "response"

    raise ProtocolError(INVALID_REQUEST, "Not a request, notification or response")


def make_response(request_id: Any, result: Dict[str, Any]) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def make_error(request_id: Any, code: int, message: str, data: Any = None) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}


# ── MCP result builders ──────────────────────────────────────────────────────

def initialize_result(server_name: str, server_version: str, protocol_version: str) -> Dict[str, Any]:
    return {
        "protocolVersion": protocol_version,
        "capabilities": {"tools": {}},
        "serverInfo": {"name": server_name, "version": server_version},
    }


def tools_list_result(tools: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"tools": tools}


def text_content(text: str) -> Dict[str, str]:
    return {"type": "text", "text": text}


def tool_result_content(content: List[Dict[str, Any]], is_error: bool = False) -> Dict[str, Any]:
    return {"content": content, "isError": is_error}


def content_text(result: Dict[str, Any]) -> Optional[str]:
    """First text block of a tool result, if any."""
    for block in result.get("content", []):
        if isinstance(block, dict) and block.get("type") == "text":
            return block.get("text")
    return None

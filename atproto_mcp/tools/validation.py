"""Input validation helpers for MCP tool parameters."""

from typing import Any, Dict, List, Optional

from atproto_mcp.errors import ValidationError


def clamp_int(val, default: int, lo: int, hi: int) -> int:
    """Clamp an integer parameter to safe range."""
    try:
        v = int(val) if val is not None else default
    except (TypeError, ValueError):
        return default
    return max(lo, min(hi, v))


def require_str(args: Dict[str, Any], name: str) -> str:
    """A required, non-blank string argument."""
    value = args.get(name)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"'{name}' is required and must be a non-empty string")
    return value


def optional_str(args: Dict[str, Any], name: str) -> Optional[str]:
    value = args.get(name)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError(f"'{name}' must be a string")
    return value


def require_list(args: Dict[str, Any], name: str, item_type: type = str) -> List[Any]:
    """A required array argument whose items are all `item_type`."""
    value = args.get(name)
    if not isinstance(value, list):
        raise ValidationError(f"'{name}' is required and must be an array")
    for index, item in enumerate(value):
        if not isinstance(item, item_type):
            raise ValidationError(
                f"'{name}[{index}]' must be {'an object' if item_type is dict else 'a string'}"
            )
    return value

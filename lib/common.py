"""
Common utility functions.
Logging, response envelopes and value stringification shared by all modules.
"""
import sys
from typing import Any


def log(*a: Any) -> None:
    """Write a diagnostic line to stderr (stdout is reserved for MCP stdio)."""
    print(*a, file=sys.stderr, flush=True)


def to_text(val: Any) -> str:
    """
    Render a scalar the way the remote script stringifies it.
    - None -> ""
    - bools -> "true"/"false"
    - whole floats -> integer form ("2.0" -> "2")
    """
    if val is None:
        return ""
    if isinstance(val, bool):
        return "true" if val else "false"
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    return str(val)


def is_blank(val: Any) -> bool:
    """
    True when a search value counts as "not provided".
    Numeric zero is a real value; None and the empty string are not.
    """
    if val is None:
        return True
    if isinstance(val, bool):
        return False
    if isinstance(val, (int, float)):
        return False
    return str(val) == ""


def ok(op: str, data: dict[str, Any] | None = None) -> dict[str, Any]:
    """Create a successful response."""
    return {"ok": True, "op": op, "data": data or {}}


def ng(op: str, code: str, message: str, extra: dict[str, Any] | None = None) -> dict[str, Any]:
    """Create an error response."""
    error: dict[str, Any] = {"code": code, "message": message}
    if extra:
        error.update(extra)
    return {"ok": False, "op": op, "error": error}

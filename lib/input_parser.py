"""
Input parsing and validation utilities.

Functions for parsing and normalizing MCP tool inputs,
handling various input formats (strings, dicts, lists, JSON text).
"""
import json
from typing import Any


def strip_quotes(s: str) -> str:
    """
    Strip outer quotes from a string.

    Args:
        s: Input string

    Returns:
        String with leading/trailing quotes removed
    """
    s = s.strip()
    if len(s) >= 2 and ((s.startswith('"') and s.endswith('"')) or (s.startswith("'") and s.endswith("'"))):
        return s[1:-1]
    return s


def coerce_str(x: Any, keys: tuple[str, ...] = ()) -> str | None:
    """
    Extract a string from various input formats.

    Handles:
    - Direct string input
    - Dict with specified keys

    Args:
        x: Input value (string, dict, or other)
        keys: Tuple of keys to try in dict order

    Returns:
        Extracted string or None if not found
    """
    if isinstance(x, str):
        return strip_quotes(x)
    if isinstance(x, dict):
        for k in keys:
            v = x.get(k)
            if isinstance(v, str):
                return strip_quotes(v)
    return None


def coerce_int(x: Any, keys: tuple[str, ...] = ()) -> int | None:
    """
    Extract an integer from various input formats.

    Args:
        x: Input value
        keys: Tuple of keys to try in dict order

    Returns:
        Extracted integer or None if not found/invalid
    """
    if isinstance(x, bool):
        return None
    if isinstance(x, int):
        return x
    if isinstance(x, str):
        try:
            return int(x.strip())
        except ValueError:
            return None
    if isinstance(x, dict):
        for k in keys:
            result = coerce_int(x.get(k), ())
            if result is not None:
                return result
    return None


def _maybe_json(x: Any) -> Any:
    """Agents sometimes pass structured arguments as JSON text."""
    if isinstance(x, str):
        s = x.strip()
        if s.startswith("[") or s.startswith("{"):
            try:
                return json.loads(s)
            except json.JSONDecodeError:
                return x
    return x


def as_str_list(x: Any) -> list[str]:
    """
    Convert input to a list of strings.

    Handles:
    - None -> empty list
    - Single string -> list with one element (or a JSON array text)
    - List/tuple -> stringified non-empty items
    """
    x = _maybe_json(x)
    if x is None:
        return []
    if isinstance(x, str):
        s = strip_quotes(x)
        return [s] if s else []
    if isinstance(x, (list, tuple)):
        out = []
        for v in x:
            if v is None:
                continue
            s = strip_quotes(v) if isinstance(v, str) else str(v)
            if s:
                out.append(s)
        return out
    return []


def parse_criteria(x: Any) -> list[dict[str, Any]] | None:
    """
    Normalize a criteria argument into a list of criterion dicts.

    Accepts a list of dicts, a single dict, or JSON text of either.
    Accepts "operator" as an alias of "op" and "column"/"value" as aliases
    of "columnName"/"searchValue".

    Returns:
        List of {columnName, searchValue?, op?} dicts, or None when the
        input is not criteria-shaped at all.
    """
    x = _maybe_json(x)
    if isinstance(x, dict):
        x = [x]
    if not isinstance(x, (list, tuple)):
        return None

    out: list[dict[str, Any]] = []
    for item in x:
        if not isinstance(item, dict):
            return None
        crit: dict[str, Any] = {"columnName": item.get("columnName", item.get("column", ""))}
        if "searchValue" in item:
            crit["searchValue"] = item["searchValue"]
        elif "value" in item:
            crit["searchValue"] = item["value"]
        op = item.get("op", item.get("operator"))
        if op is not None:
            crit["op"] = op
        out.append(crit)
    return out


def parse_batch_criteria(x: Any) -> list[dict[str, Any]] | None:
    """
    Normalize a batchCriteria argument into [{id, criteria}] items.

    Items without an id get "q_<index>". Returns None when the input is not
    batch-shaped.
    """
    x = _maybe_json(x)
    if not isinstance(x, (list, tuple)):
        return None

    out: list[dict[str, Any]] = []
    for i, item in enumerate(x):
        if not isinstance(item, dict):
            return None
        criteria = parse_criteria(item.get("criteria", []))
        if criteria is None:
            return None
        raw_id = item.get("id")
        qid = str(raw_id) if raw_id not in (None, "") else f"q_{i}"
        out.append({"id": qid, "criteria": criteria})
    return out

"""
Webhook response parsing.

The remote script returns its result in one of three ways:
- data.result holds a JSON string
- data.result holds an already-decoded object
- data.result is unusable and the JSON was printed to the console log,
  split into numbered chunks between start/end markers:

    __RESULT_JSON_START__
    __CHUNK_0__:{"success":true,"reco
    __CHUNK_1__:rds":[...]}
    __RESULT_JSON_END__

parse_response() tries them in that order and never raises.
"""
import json
from typing import Any, Iterable

from config import CHUNK_PATTERN, RESULT_END_MARKER, RESULT_SENTINELS, RESULT_START_MARKER
from lib.common import log
from lib.types import ParsedResult, RawResponse

PARSE_FAILED = "Failed to parse response"
NO_DATA = "No data in response"


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant: {name}")


def loads_strict(text: str) -> Any:
    """json.loads that rejects NaN/Infinity."""
    return json.loads(text, parse_constant=_reject_constant)


def _try_object(text: str) -> dict[str, Any] | None:
    try:
        parsed = loads_strict(text)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


class ChunkAssembler:
    """
    idle -> capturing -> idle state machine over console-log arguments.

    While capturing, arguments matching __CHUNK_<N>__:<fragment> are stored
    by N (a repeated N overwrites). Everything else is ignored.
    """

    IDLE = "idle"
    CAPTURING = "capturing"

    def __init__(self) -> None:
        self.state = self.IDLE
        self.chunks: dict[int, str] = {}

    def feed(self, arg: Any) -> None:
        if not isinstance(arg, str):
            return
        if RESULT_START_MARKER in arg:
            self.state = self.CAPTURING
            return
        if RESULT_END_MARKER in arg:
            self.state = self.IDLE
            return
        if self.state != self.CAPTURING:
            return
        m = CHUNK_PATTERN.search(arg)
        if m:
            self.chunks[int(m.group(1))] = m.group(2)

    def feed_logs(self, logs: Iterable[Any]) -> "ChunkAssembler":
        for entry in logs:
            args = entry.get("args") if isinstance(entry, dict) else None
            if not isinstance(args, list):
                continue
            for arg in args:
                self.feed(arg)
        return self

    def assemble(self) -> str | None:
        """Concatenate fragments in ascending index order, or None if nothing was captured."""
        if not self.chunks:
            return None
        return "".join(self.chunks[i] for i in sorted(self.chunks))


def parse_chunked_logs(logs: Iterable[Any]) -> dict[str, Any] | None:
    """Reassemble and decode a chunked JSON object from console logs."""
    text = ChunkAssembler().feed_logs(logs).assemble()
    if text is None:
        return None
    parsed = _try_object(text)
    if parsed is None:
        log("Failed to parse chunked JSON:", text[:100])
    return parsed


def extract_payload(raw: RawResponse) -> dict[str, Any] | None:
    """Pull the result object out of a raw envelope by any of the three paths."""
    data = raw.get("data") if isinstance(raw, dict) else None
    if not isinstance(data, dict):
        return None

    result = data.get("result")
    parsed: dict[str, Any] | None = None

    if isinstance(result, str):
        if result not in RESULT_SENTINELS:
            parsed = _try_object(result)
    elif isinstance(result, dict):
        parsed = result

    if parsed is None:
        logs = data.get("logs")
        if isinstance(logs, list) and logs:
            parsed = parse_chunked_logs(logs)

    return parsed


def is_parse_failure(parsed: ParsedResult) -> bool:
    """True when parse_response() found nothing, as opposed to a remote-reported failure."""
    return not parsed.get("success") and bool(parsed.get("parse_failed"))


def parse_response(raw: RawResponse) -> ParsedResult:
    """
    Reconstruct the logical result of one webhook call.

    Returns:
        {"success": True, "data": {...}} on success;
        {"success": False, "error": ..., "message"?: ...} when the remote
        script reported failure (fields passed through unchanged);
        {"success": False, "error": "Failed to parse response",
        "parse_failed": True} when no object could be recovered.
    """
    if not isinstance(raw, dict) or not isinstance(raw.get("data"), dict):
        return {"success": False, "error": NO_DATA, "parse_failed": True}

    payload = extract_payload(raw)
    if payload is None:
        return {"success": False, "error": PARSE_FAILED, "parse_failed": True}

    if payload.get("success") is False:
        out: ParsedResult = {"success": False, "error": payload.get("error") or "Unknown error"}
        if payload.get("message") is not None:
            out["message"] = payload["message"]
        # Remote failures often carry hints such as availableColumns
        extra = {k: v for k, v in payload.items() if k not in ("success", "error", "message")}
        if extra:
            out["data"] = extra
        return out

    return {"success": True, "data": payload}

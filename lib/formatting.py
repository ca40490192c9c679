"""
Plain-text summaries of search results for agents.
"""
from typing import Any

from config import SUMMARY_BATCH_LIMIT, SUMMARY_RECORD_LIMIT
from lib.cell_values import ImageRef, decode_record


def format_value(value: Any) -> str:
    if value is None:
        return "(empty)"
    if isinstance(value, ImageRef):
        return "[image]"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def format_records(records: list[dict[str, Any]], limit: int = SUMMARY_RECORD_LIMIT) -> str:
    """One block per record: "Record N:" followed by "  column: value" lines."""
    blocks = []
    for idx, record in enumerate(records[:limit], 1):
        lines = [f"  {name}: {format_value(v)}" for name, v in decode_record(record).items()]
        blocks.append(f"Record {idx}:\n" + "\n".join(lines))
    return "\n\n".join(blocks)


def search_summary(table_name: str, outcome: dict[str, Any], limit: int = SUMMARY_RECORD_LIMIT) -> str:
    records = outcome.get("records") or []
    if not records:
        return f'No matching records in "{table_name}"'

    text = f'Found {outcome.get("totalCount", len(records))} matching records in "{table_name}"'
    if outcome.get("truncated"):
        text += f' (truncated, max {outcome.get("maxRecords")})'
    if len(records) > limit:
        text += f"\n\nShowing first {limit}:"
    return f"{text}\n\n{format_records(records, limit)}"


def batch_summary(batch: dict[str, Any], limit: int = SUMMARY_BATCH_LIMIT) -> str:
    results = batch.get("results") or []
    lines = [
        "Batch search complete:",
        f"- queries: {batch.get('totalQueries', len(results))}",
        f"- total matches: {batch.get('totalMatches', 0)}",
        "",
    ]
    for r in results[:limit]:
        if r.get("success"):
            lines.append(f"OK {r['id']}: {len(r.get('records') or [])} matches")
        else:
            lines.append(f"FAILED {r['id']}: {r.get('error')}")
    if len(results) > limit:
        lines.append(f"... {len(results) - limit} more query results")
    return "\n".join(lines)

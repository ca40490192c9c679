"""
Tables handler class.

Lists the tables of the hosted document with their columns, and fetches
per-table details with a small record sample.
"""
from typing import Any

from config import ACTION_DETAILS, DEFAULT_SAMPLE_SIZE, MAX_SAMPLE_SIZE
from core.base_handler import BaseHandler
from lib.errors import bad_request


def clamp_sample_size(sample_size: int | None) -> int:
    """Clamp to 1..MAX_SAMPLE_SIZE, defaulting when unset or zero."""
    return min(max(1, sample_size or DEFAULT_SAMPLE_SIZE), MAX_SAMPLE_SIZE)


class TablesHandler(BaseHandler):
    """Handler for table metadata operations."""

    async def list(self) -> dict[str, Any]:
        """
        List tables with columns.

        Returns:
            {tables: [{name, id?, columns: [name...], rowCount?}], count, summary}
        """
        op = "tables.list"
        err = await self.load_tables(op)
        if err:
            return err

        tables = []
        lines = []
        for t in self.tables:
            cols = self.column_names(t)
            entry: dict[str, Any] = {"name": t.get("name"), "columns": cols}
            for key in ("id", "rowCount", "columnCount", "usedRange"):
                if t.get(key) is not None:
                    entry[key] = t[key]
            tables.append(entry)
            row_count = t.get("rowCount")
            lines.append(
                f"{t.get('name')}\n"
                f"   columns: {', '.join(cols) or '(no column info)'}\n"
                f"   rows: {row_count if row_count is not None else 'unknown'}"
            )

        summary = f"Found {len(tables)} tables:\n\n" + "\n\n".join(lines)
        return self._ok(op, {"tables": tables, "count": len(tables), "summary": summary})

    async def details(self, table_name: str, sample_size: int | None = None) -> dict[str, Any]:
        """
        Get one table's columns and a sample of records.

        Args:
            table_name: Table name
            sample_size: Sample record count (clamped to 1..20, default 5)
        """
        op = "tables.details"
        if not table_name:
            return bad_request(op, "tableName is required")

        data, err = await self.call(
            op, ACTION_DETAILS, {"sheetName": table_name, "sampleSize": clamp_sample_size(sample_size)}
        )
        if err:
            return err

        table = data.get("table") or {}
        sample = data.get("sampleData") or {}
        records = sample.get("records") or []
        return self._ok(op, {
            "table": {
                "name": table.get("name", table_name),
                "id": table.get("id"),
                "columns": self.column_names(table),
            },
            "sample": {"count": len(records), "records": records},
        })

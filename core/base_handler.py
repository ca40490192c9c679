"""
Base handler class for webhook-backed operations.

Provides common functionality for all handlers:
- Remote call + response parsing with error translation
- Table list loading (the column metadata source)
- Table lookup by name and column name extraction
- Response helpers (ok/ng)
"""
from abc import ABC
from typing import Any

from config import ACTION_GET_ALL
from core.response_parser import is_parse_failure
from lib.common import ok, ng, log
from lib.errors import ErrorCode, QueryError, not_found
from webhook_client import WebhookClient


class BaseHandler(ABC):
    """
    Abstract base class for all webhook-backed handlers.

    Example:
        class TablesHandler(BaseHandler):
            def list(self):
                tables, err = await self.load_tables("tables.list")
                ...
    """

    def __init__(self, client: WebhookClient) -> None:
        """
        Initialize handler with a webhook client.

        Args:
            client: WebhookClient bound to one hosted document
        """
        self.client = client

        # Lazily loaded
        self._tables: list[dict[str, Any]] | None = None

    # === Properties ===

    @property
    def tables(self) -> list[dict[str, Any]]:
        """Table descriptors from the last successful load."""
        return self._tables or []

    # === Remote Calls ===

    async def call(
        self,
        op_name: str,
        action: str,
        params: dict[str, Any] | None = None,
    ) -> tuple[dict[str, Any] | None, dict[str, Any] | None]:
        """
        Invoke an action and translate failures into error responses.

        Args:
            op_name: Operation name for error messages
            action: Remote action name
            params: Action parameters

        Returns:
            (data, None) on success, (None, error_response) on failure.
        """
        try:
            parsed = await self.client.call(action, params)
        except QueryError as e:
            return None, e.to_response(op_name)

        if parsed["success"]:
            return parsed.get("data") or {}, None

        if is_parse_failure(parsed):
            return None, self._error(op_name, ErrorCode.PARSE_ERROR, parsed["error"])

        extra: dict[str, Any] = dict(parsed.get("data") or {})
        if parsed.get("message"):
            extra["detail"] = parsed["message"]
        return None, self._error(op_name, ErrorCode.REMOTE_ERROR, parsed.get("error", "Unknown error"), extra)

    # === Table Metadata ===

    async def load_tables(self, op_name: str) -> dict[str, Any] | None:
        """
        Load the table list.

        Returns:
            Error dict if failed, None on success (populates self._tables).
        """
        data, err = await self.call(op_name, ACTION_GET_ALL)
        if err:
            return err
        # Database documents answer with "tables", grid documents with "sheets"
        tables = data.get("tables") or data.get("sheets") or []
        self._tables = [t for t in tables if isinstance(t, dict)]
        return None

    def find_table(self, name: str) -> dict[str, Any] | None:
        """Find a loaded table by exact name."""
        for t in self.tables:
            if t.get("name") == name:
                return t
        return None

    @staticmethod
    def column_names(table: dict[str, Any] | None) -> list[str]:
        """Column names of a table descriptor (columns may be dicts or plain names)."""
        if not table:
            return []
        names = []
        for c in table.get("columns") or []:
            if isinstance(c, dict):
                if c.get("name"):
                    names.append(str(c["name"]))
            elif c:
                names.append(str(c))
        return names

    async def resolve_table(
        self,
        op_name: str,
        table_name: str,
    ) -> tuple[dict[str, Any] | None, dict[str, Any] | None]:
        """
        Resolve a table name to {sheet_id, name, columns}.

        If the table list cannot be fetched, degrade to trusting the caller:
        no sheet id, no columns (column validation is skipped).

        Returns:
            (target, None) or (None, NOT_FOUND error) when the list was
            loaded and the name is absent.
        """
        err = await self.load_tables(op_name)
        if err:
            log(f"table list unavailable ({err['error']['message']}), trusting caller for {table_name}")
            return {"sheet_id": None, "name": table_name, "columns": []}, None

        table = self.find_table(table_name)
        if table is None:
            return None, not_found(
                op_name,
                f"table not found: {table_name}",
                {"available_tables": [t.get("name") for t in self.tables]},
            )
        return {"sheet_id": table.get("id"), "name": table_name, "columns": self.column_names(table)}, None

    # === Response Helpers ===

    def _ok(self, op: str, data: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Return success response.

        Args:
            op: Operation name
            data: Response data

        Returns:
            Success response dict
        """
        return ok(op, data or {})

    def _error(
        self,
        op: str,
        code: str,
        message: str,
        extra: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Return error response.

        Args:
            op: Operation name
            code: Error code
            message: Error message
            extra: Additional error data

        Returns:
            Error response dict
        """
        return ng(op, code, message, extra)

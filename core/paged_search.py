"""
Paged filtered scan over the remote record primitive.

The remote side hands back at most one page per call together with an
opaque offset cursor. Pages are fetched strictly in sequence because each
request needs the cursor returned by the previous one.
"""
from typing import Any, TYPE_CHECKING

from config import ACTION_GET_RECORDS, DEFAULT_MAX_RECORDS
from core.criteria import CompiledFilter
from core.response_parser import is_parse_failure
from lib.common import log
from lib.errors import ParseFailure, QueryError, RemoteLogicalError, ScanError
from lib.types import Record, SearchOutcome

if TYPE_CHECKING:
    from webhook_client import WebhookClient


class PagedSearchExecutor:
    """
    Runs one filtered scan under a record cap.

    Each execute() call owns its own cursor and accumulator, so one
    executor may serve concurrent scans.
    """

    def __init__(self, client: "WebhookClient", timeout: float | None = None) -> None:
        self.client = client
        self.timeout = timeout

    async def fetch_page(
        self,
        sheet_id: Any,
        table_name: str | None,
        compiled: CompiledFilter,
        cursor: Any,
    ) -> tuple[list[Record], Any]:
        """
        Fetch one page.

        Returns:
            (records, next_cursor); records is empty when the remote had nothing

        Raises:
            TransportError, ParseFailure, RemoteLogicalError
        """
        params: dict[str, Any] = {
            "sheetId": sheet_id,
            "sheetName": table_name,
            "filter": compiled.to_wire(),
            "offset": cursor,
        }
        parsed = await self.client.call(ACTION_GET_RECORDS, params, timeout=self.timeout)
        if not parsed["success"]:
            if is_parse_failure(parsed):
                raise ParseFailure(parsed["error"])
            raise RemoteLogicalError(parsed.get("error", "Unknown error"), parsed.get("message"), parsed.get("data"))

        page = parsed.get("data") or {}
        records = page.get("records")
        if not isinstance(records, list):
            records = []
        return records, page.get("offset")

    async def execute(
        self,
        sheet_id: Any,
        compiled: CompiledFilter,
        cap: int = DEFAULT_MAX_RECORDS,
        table_name: str | None = None,
    ) -> SearchOutcome:
        """
        Scan until exhaustion or until the cap is reached.

        truncated is set only when more data was still available: either the
        cap was hit while a next cursor existed, or the last page overshot
        the cap. originalTotalCount is "N+" when the remote still had more
        pages, otherwise the exact pre-slice count.

        Raises:
            ScanError: any page failure; partial results are discarded
        """
        cap = max(1, int(cap))
        records: list[Record] = []
        cursor: Any = None
        used_cursors: list[Any] = []
        page_count = 0
        truncated = False

        try:
            while True:
                page_count += 1
                page, next_cursor = await self.fetch_page(sheet_id, table_name, compiled, cursor)
                if not page:
                    log(f"page {page_count}: empty, scan finished")
                    cursor = None
                    break

                records.extend(page)
                log(f"page {page_count}: {len(page)} records, {len(records)} total")

                if next_cursor and (next_cursor == cursor or next_cursor in used_cursors):
                    raise RemoteLogicalError(
                        "remote returned an already consumed cursor",
                        None,
                        {"cursor": next_cursor, "page": page_count},
                    )
                if cursor:
                    used_cursors.append(cursor)
                cursor = next_cursor

                if len(records) >= cap:
                    if cursor:
                        truncated = True
                        log(f"record cap {cap} reached, stopping")
                    break
                if not cursor:
                    break
        except QueryError as e:
            log(f"scan failed on page {page_count}: {e.message}")
            raise ScanError(
                e,
                {
                    "sheet_id": sheet_id,
                    "table_name": table_name,
                    "filter": compiled.to_wire(),
                    "page": page_count,
                },
            ) from e

        fetched = len(records)
        original_total: int | str = fetched
        if truncated and cursor:
            original_total = f"{fetched}+"
        if fetched > cap:
            truncated = True
            records = records[:cap]
            log(f"results truncated from {fetched} to {cap}")

        return {
            "records": records,
            "totalCount": len(records),
            "truncated": truncated,
            "originalTotalCount": original_total,
            "maxRecords": cap,
        }

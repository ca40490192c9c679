"""
Batch search: many independent criteria sets against one table.

Each item is compiled and scanned on its own; a failing item is reported in
its own outcome and never aborts its siblings. Items may run concurrently
(bounded by a semaphore), but outcomes are always returned in input order.
"""
import asyncio
from typing import Any, Collection

from config import BATCH_MAX_RECORDS, DEFAULT_BATCH_CONCURRENCY
from core.criteria import compile_criteria
from core.paged_search import PagedSearchExecutor
from lib.common import log
from lib.errors import QueryError
from lib.types import BatchOutcome


class BatchQueryCoordinator:
    def __init__(
        self,
        executor: PagedSearchExecutor,
        concurrency: int = DEFAULT_BATCH_CONCURRENCY,
        cap: int = BATCH_MAX_RECORDS,
    ) -> None:
        self.executor = executor
        self.concurrency = max(1, concurrency)
        self.cap = cap

    async def run_item(
        self,
        sheet_id: Any,
        item: dict[str, Any],
        table_columns: Collection[str] | None = None,
        table_name: str | None = None,
    ) -> BatchOutcome:
        """Compile and scan one item, converting any failure into its outcome."""
        qid = str(item.get("id"))
        try:
            compiled = compile_criteria(item.get("criteria") or [], table_columns)
            outcome = await self.executor.execute(sheet_id, compiled, cap=self.cap, table_name=table_name)
        except QueryError as e:
            log(f"batch item {qid} failed: {e.message}")
            return {"id": qid, "success": False, "error": e.message}
        return {
            "id": qid,
            "success": True,
            "records": outcome["records"],
            "truncated": outcome["truncated"],
        }

    async def execute_batch(
        self,
        sheet_id: Any,
        items: list[dict[str, Any]],
        table_columns: Collection[str] | None = None,
        table_name: str | None = None,
    ) -> dict[str, Any]:
        """
        Run every item and aggregate.

        Returns:
            {totalQueries, totalMatches, results}; totalMatches counts records
            of successful items only
        """
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _bounded(item: dict[str, Any]) -> BatchOutcome:
            async with semaphore:
                return await self.run_item(sheet_id, item, table_columns, table_name)

        # gather preserves argument order regardless of completion order
        results: list[BatchOutcome] = list(await asyncio.gather(*(_bounded(it) for it in items)))

        total_matches = sum(len(r.get("records", [])) for r in results if r["success"])
        log(f"batch finished: {len(results)} queries, {total_matches} matches")
        return {
            "totalQueries": len(items),
            "totalMatches": total_matches,
            "results": results,
        }

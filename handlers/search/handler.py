"""
Search handler class.

Single multi-criteria AND search and batch search over one table:
resolve table -> compile criteria -> paged scan -> project/summarise.
"""
from typing import Any

from config import BATCH_MAX_RECORDS, DEFAULT_BATCH_CONCURRENCY, DEFAULT_MAX_RECORDS
from core.base_handler import BaseHandler
from core.batch import BatchQueryCoordinator
from core.criteria import compile_criteria
from core.paged_search import PagedSearchExecutor
from lib.cell_values import record_fields
from lib.errors import QueryError, bad_request
from lib.formatting import batch_summary, search_summary
from webhook_client import WebhookClient


def project_record(record: dict[str, Any], return_columns: list[str] | None) -> dict[str, Any]:
    """
    Keep only the requested columns that exist in the record.
    Unknown names are ignored; if none exist the record is returned unchanged.
    """
    if not return_columns:
        return record
    fields = record_fields(record)
    keep = [c for c in return_columns if c in fields]
    if not keep:
        return record
    projected = {c: fields[c] for c in keep}
    if fields is not record:
        out = {k: v for k, v in record.items() if k != "fields"}
        out["fields"] = projected
        return out
    return projected


class SearchHandler(BaseHandler):
    """
    Handler for search operations.

    Extends BaseHandler with:
    - search: one AND filter, paged up to max_records
    - batch_search: many criteria sets, each isolated, order preserved
    """

    def __init__(
        self,
        client: WebhookClient,
        max_records: int = DEFAULT_MAX_RECORDS,
        batch_max_records: int = BATCH_MAX_RECORDS,
        concurrency: int = DEFAULT_BATCH_CONCURRENCY,
    ) -> None:
        super().__init__(client)
        self.max_records = max_records
        self.batch_max_records = batch_max_records
        self.concurrency = concurrency
        self.executor = PagedSearchExecutor(client)

    async def search(
        self,
        table_name: str,
        criteria: list[dict[str, Any]],
        return_columns: list[str] | None = None,
    ) -> dict[str, Any]:
        """
        Multi-criteria AND search.

        Args:
            table_name: Table (sheet) name
            criteria: [{columnName, searchValue, op}]
            return_columns: Optional column projection

        Returns:
            Success: {tableName, criteriaCount, criteriaDescription, records,
                      totalCount, truncated, originalTotalCount, maxRecords, summary}
            Error: VALIDATION_ERROR / NOT_FOUND / TRANSPORT_ERROR / PARSE_ERROR / REMOTE_ERROR
        """
        op = "search"
        if not table_name:
            return bad_request(op, "tableName is required")
        if not criteria:
            return bad_request(op, "at least one search criterion is required")

        # Operator and value checks need no metadata: fail before any I/O
        try:
            compile_criteria(criteria)
        except QueryError as e:
            return e.to_response(op)

        target, err = await self.resolve_table(op, table_name)
        if err:
            return err

        try:
            compiled = compile_criteria(criteria, target["columns"])
            outcome = await self.executor.execute(
                target["sheet_id"], compiled, cap=self.max_records, table_name=table_name
            )
        except QueryError as e:
            return e.to_response(op)

        records = [project_record(r, return_columns) for r in outcome["records"]]
        result = dict(outcome)
        result["records"] = records
        return self._ok(op, {
            "tableName": table_name,
            "criteriaCount": len(compiled),
            "criteriaDescription": compiled.description,
            **result,
            "summary": search_summary(table_name, result),
        })

    async def batch_search(
        self,
        table_name: str,
        batch_criteria: list[dict[str, Any]],
    ) -> dict[str, Any]:
        """
        Batch search; one outcome per item, in input order.

        Args:
            table_name: Table (sheet) name
            batch_criteria: [{id, criteria}]

        Returns:
            {tableName, totalQueries, totalMatches, results: [{id, success, records?, error?}], summary}
        """
        op = "batch_search"
        if not table_name:
            return bad_request(op, "tableName is required")
        if not batch_criteria:
            return bad_request(op, "batchCriteria is required")

        target, err = await self.resolve_table(op, table_name)
        if err:
            return err

        coordinator = BatchQueryCoordinator(
            self.executor, concurrency=self.concurrency, cap=self.batch_max_records
        )
        batch = await coordinator.execute_batch(
            target["sheet_id"], batch_criteria, target["columns"], table_name=table_name
        )
        return self._ok(op, {
            "tableName": table_name,
            **batch,
            "summary": batch_summary(batch),
        })

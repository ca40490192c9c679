"""
Type definitions for the MCP server.
Shapes of criteria, compiled filters, search outcomes and parsed responses.
"""
from typing import TypedDict, Any, NotRequired


class ErrorDetail(TypedDict):
    """Error detail structure."""
    code: str
    message: str


class SuccessResponse(TypedDict):
    """Successful API response."""
    ok: bool
    op: str
    data: dict[str, Any]


class ErrorResponse(TypedDict):
    """Error API response."""
    ok: bool
    op: str
    error: ErrorDetail


# Union type for all API responses
Response = SuccessResponse | ErrorResponse


class SearchCriterion(TypedDict):
    """One caller-supplied column predicate."""
    columnName: str
    searchValue: NotRequired[Any]
    op: NotRequired[str]


class CompiledClause(TypedDict):
    """One predicate in the remote filter format. `values` is absent for Empty/NotEmpty."""
    field: str
    op: str
    values: NotRequired[list[str]]


class BatchItem(TypedDict):
    """One sub-query of a batch."""
    id: str
    criteria: list[SearchCriterion]


class SearchOutcome(TypedDict):
    records: list[dict[str, Any]]
    totalCount: int
    truncated: bool
    originalTotalCount: int | str
    maxRecords: int


class BatchOutcome(TypedDict):
    id: str
    success: bool
    records: NotRequired[list[dict[str, Any]]]
    truncated: NotRequired[bool]
    error: NotRequired[str]


class ParsedResult(TypedDict):
    """Output of the response parser."""
    success: bool
    data: NotRequired[dict[str, Any]]
    error: NotRequired[str]
    message: NotRequired[str]
    parse_failed: NotRequired[bool]


# Raw webhook envelope: {"data": {"result": ..., "logs": [{"args": [...]}]}}
RawResponse = dict[str, Any]

# A spreadsheet record as delivered by the remote side
Record = dict[str, Any]

"""
Utility libraries for the MCP server.
Pure functions and shared types with no I/O.
"""
from .common import log, ok, ng, to_text, is_blank
from .cell_values import ImageRef, CellValue, decode_cell, decode_record
from .types import (
    Response,
    SuccessResponse,
    ErrorResponse,
    ErrorDetail,
    SearchCriterion,
    CompiledClause,
    BatchItem,
    SearchOutcome,
    BatchOutcome,
    ParsedResult,
)

__all__ = [
    # Response types
    "Response",
    "SuccessResponse",
    "ErrorResponse",
    "ErrorDetail",
    # Query types
    "SearchCriterion",
    "CompiledClause",
    "BatchItem",
    "SearchOutcome",
    "BatchOutcome",
    "ParsedResult",
    # Cell values
    "ImageRef",
    "CellValue",
    "decode_cell",
    "decode_record",
    # Functions
    "log",
    "ok",
    "ng",
    "to_text",
    "is_blank",
]

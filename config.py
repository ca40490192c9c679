"""
Configuration constants for the MCP server.
Centralizes webhook action names, filter operators, log markers and limits.
"""
import re
from typing import Final

# Remote script actions
ACTION_GET_ALL: Final[str] = "getAll"
ACTION_DETAILS: Final[str] = "details"
ACTION_GET_RECORDS: Final[str] = "getRecords"
ACTION_GET_IMAGE_URL: Final[str] = "getImageUrl"

# Credential header expected by the webhook
TOKEN_HEADER: Final[str] = "AirScript-Token"

# Filter operators accepted by the remote record filter (closed set, in order)
VALID_OPERATORS: Final[tuple[str, ...]] = (
    "Equals",
    "NotEqu",
    "Greater",
    "GreaterEqu",
    "Less",
    "LessEqu",
    "BeginWith",
    "EndWith",
    "Contains",
    "NotContains",
    "Intersected",
    "Empty",
    "NotEmpty",
)

# Operators that take no value
VALUELESS_OPERATORS: Final[frozenset[str]] = frozenset({"Empty", "NotEmpty"})

DEFAULT_OPERATOR: Final[str] = "Contains"
FILTER_MODE: Final[str] = "AND"

# Result values that mean "nothing usable came back inline"
RESULT_SENTINELS: Final[frozenset[str]] = frozenset({"[Undefined]", "null", ""})

# Chunked result markers written to console logs by the remote script
RESULT_START_MARKER: Final[str] = "__RESULT_JSON_START__"
RESULT_END_MARKER: Final[str] = "__RESULT_JSON_END__"
CHUNK_PATTERN: Final[re.Pattern[str]] = re.compile(r"__CHUNK_(\d+)__:(.+)")

# Record caps
DEFAULT_MAX_RECORDS: Final[int] = 100
BATCH_MAX_RECORDS: Final[int] = 20

# Table details sample size bounds
DEFAULT_SAMPLE_SIZE: Final[int] = 5
MAX_SAMPLE_SIZE: Final[int] = 20

# Agent-facing summaries
SUMMARY_RECORD_LIMIT: Final[int] = 20
SUMMARY_BATCH_LIMIT: Final[int] = 10

# Remote call defaults
DEFAULT_TIMEOUT_SECONDS: Final[float] = 30.0
DEFAULT_BATCH_CONCURRENCY: Final[int] = 4

# Name given to the legacy single-webhook configuration
DEFAULT_CONFIG_NAME: Final[str] = "default"

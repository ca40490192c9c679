"""
WPS Sheets MCP Server

Connects an MCP agent to spreadsheet documents hosted in the office-suite
cloud through their script webhook (search, batch search, table metadata,
cell images).
"""
import hashlib
import hmac
import json
import time
from typing import Any

from mcp.server.fastmcp import FastMCP

from env_loader import get_batch_concurrency, get_hmac_secret, get_port, is_hmac_required
from handlers.tables import TablesHandler
from handlers.search import SearchHandler
from handlers.images import ImagesHandler
from lib.common import log
from lib.errors import ConfigError, bad_request
from lib.input_parser import (
    as_str_list,
    coerce_int,
    coerce_str,
    parse_batch_criteria,
    parse_criteria,
)
from webhook_client import WebhookClient, get_client, get_registry

mcp = FastMCP("wps-sheets")


def _client_or_error(op: str, token_name: Any) -> tuple[WebhookClient | None, dict | None]:
    name = coerce_str(token_name, ("tokenName", "name"))
    try:
        return get_client(name or None), None
    except ConfigError as e:
        return None, e.to_response(op)


# ===== Config Tools =====

@mcp.tool()
async def list_configs() -> dict:
    """List the available webhook configurations (values for tokenName).

    Returns (example):
    { ok:true, data:{ count:2, configs:[{"name":"parts","description":"Parts catalogue"}, {"name":"default"}] } }
    """
    registry = get_registry()
    configs = registry.configs()
    return {"ok": True, "op": "configs.list", "data": {"count": len(configs), "configs": configs}}


# ===== Table Tools =====

@mcp.tool()
async def get_table_list(token_name: Any = None) -> dict:
    """List every table/sheet in the document with its column names.

    Args:
    - token_name: Config name (optional, see list_configs). Default config is used when omitted.

    Returns (example):
    { ok:true, data:{ count:1, tables:[{"name":"Parts","id":3,"columns":["PartNo","Level"]}], summary:"..." } }
    """
    client, err = _client_or_error("tables.list", token_name)
    if err:
        return err
    return await TablesHandler(client).list()


@mcp.tool()
async def get_table_details(table_name: Any, sample_size: Any = None, token_name: Any = None) -> dict:
    """Get one table's columns plus a few sample records.

    Args:
    - table_name: Table/sheet name (required)
    - sample_size: Sample record count, 1-20 (default 5)
    - token_name: Config name (optional)
    """
    name = coerce_str(table_name, ("tableName", "sheetName", "name"))
    if not name:
        return bad_request("tables.details", "tableName is required")

    client, err = _client_or_error("tables.details", token_name)
    if err:
        return err
    return await TablesHandler(client).details(name, coerce_int(sample_size, ("sampleSize",)))


# ===== Search Tools =====

@mcp.tool()
async def search(
    table_name: Any,
    criteria: Any,
    return_columns: Any = None,
    token_name: Any = None,
) -> dict:
    """Multi-criteria AND search in one table (at most 100 records).

    Args:
    - table_name: Table/sheet name (required)
    - criteria: List of conditions, all must match (AND):
        [{"columnName":"PartNo","searchValue":"A100","op":"Contains"},
         {"columnName":"Level","searchValue":"F","op":"Equals"}]
      op is one of Equals, NotEqu, Greater, GreaterEqu, Less, LessEqu,
      BeginWith, EndWith, Contains, NotContains, Intersected, Empty, NotEmpty
      (default Contains). Empty/NotEmpty take no searchValue.
    - return_columns: Column names to return (optional; all columns by default)
    - token_name: Config name (optional)

    Returns (example):
    { ok:true, data:{ criteriaDescription:"PartNo Contains 'A100' AND Level Equals 'F'",
                      totalCount:3, truncated:false, originalTotalCount:3, maxRecords:100,
                      records:[...], summary:"..." } }
    """
    op = "search"
    name = coerce_str(table_name, ("tableName", "sheetName", "name"))
    if not name:
        return bad_request(op, "tableName is required")

    crits = parse_criteria(criteria)
    if not crits:
        return bad_request(op, "criteria must be a non-empty list of {columnName, searchValue, op}")

    client, err = _client_or_error(op, token_name)
    if err:
        return err
    handler = SearchHandler(client)
    return await handler.search(name, crits, as_str_list(return_columns) or None)


@mcp.tool()
async def batch_search(table_name: Any, batch_criteria: Any, token_name: Any = None) -> dict:
    """Run many independent searches against one table (e.g. one per pasted row).

    Args:
    - table_name: Table/sheet name (required)
    - batch_criteria: [{"id":"row1","criteria":[{"columnName":"PartNo","searchValue":"A100","op":"Equals"}]}, ...]
      Each item returns at most 20 records. A failing item does not affect the others.
    - token_name: Config name (optional)

    Returns (example):
    { ok:true, data:{ totalQueries:2, totalMatches:3,
                      results:[{"id":"row1","success":true,"records":[...]},
                               {"id":"row2","success":false,"error":"column not found: Foo"}] } }
    """
    op = "batch_search"
    name = coerce_str(table_name, ("tableName", "sheetName", "name"))
    if not name:
        return bad_request(op, "tableName is required")

    items = parse_batch_criteria(batch_criteria)
    if not items:
        return bad_request(op, "batchCriteria must be a non-empty list of {id, criteria}")

    client, err = _client_or_error(op, token_name)
    if err:
        return err
    handler = SearchHandler(client, concurrency=get_batch_concurrency())
    return await handler.batch_search(name, items)


# ===== Image Tools =====

@mcp.tool()
async def get_image_urls(table_name: Any, cells: Any, token_name: Any = None) -> dict:
    """Get temporary URLs of images embedded in cells.

    Args:
    - table_name: Sheet name (required)
    - cells: Cell addresses, e.g. ["A1", "B2"]
    - token_name: Config name (optional)
    """
    op = "images.get_urls"
    name = coerce_str(table_name, ("tableName", "sheetName", "name"))
    if not name:
        return bad_request(op, "tableName is required")
    addrs = as_str_list(cells)
    if not addrs:
        return bad_request(op, "cells is required")

    client, err = _client_or_error(op, token_name)
    if err:
        return err
    return await ImagesHandler(client).get_urls(name, addrs)


# ===== Utility Tools =====

@mcp.tool()
async def tools_help() -> dict:
    """List the tools exposed by this MCP server and their arguments."""
    tools = [
        {"name": "list_configs", "desc": "Available webhook configs", "args": {}},
        {"name": "get_table_list", "desc": "Tables and their columns", "args": {"token_name": "string"}},
        {"name": "get_table_details", "desc": "Columns and sample records of one table", "args": {"table_name": "string", "sample_size": "int"}},
        {"name": "search", "desc": "Multi-criteria AND search (max 100)", "args": {"table_name": "string", "criteria": "list", "return_columns": "string[]"}},
        {"name": "batch_search", "desc": "Many searches in one call (max 20 each)", "args": {"table_name": "string", "batch_criteria": "list"}},
        {"name": "get_image_urls", "desc": "Image URLs of cells", "args": {"table_name": "string", "cells": "string[]"}},
    ]
    return {"ok": True, "op": "tools.help", "data": {"tools": tools}}


# ===== HTTP Authentication =====

def verify_hmac(headers: list[tuple[bytes, bytes]], method: str, path: str) -> tuple[bool, str | None]:
    """Optional HMAC verification for inbound /mcp requests.

    Expected headers (if enabled):
      - X-MCP-TS: unix epoch seconds
      - X-MCP-Sign: hex(HMAC_SHA256(secret, f"{ts}.{method}.{path}"))
    """
    secret = get_hmac_secret()
    if not secret:
        return True, None
    ts_b = next((v for k, v in headers if k.lower() == b"x-mcp-ts"), None)
    sig_b = next((v for k, v in headers if k.lower() == b"x-mcp-sign"), None)
    if not ts_b or not sig_b:
        if is_hmac_required():
            return False, "missing headers"
        return True, None
    try:
        ts = int(ts_b.decode("utf-8"))
    except ValueError:
        return False, "bad timestamp"
    if abs(int(time.time()) - ts) > 300:
        return False, "timestamp skew"
    mac = hmac.new(secret.encode("utf-8"), f"{ts}.{method.upper()}.{path}".encode("utf-8"), hashlib.sha256)
    if not hmac.compare_digest(mac.hexdigest(), sig_b.decode("utf-8", "replace")):
        return False, "bad signature"
    return True, None


# ===== Server Entry Point =====

if __name__ == "__main__":
    import uvicorn
    from contextlib import asynccontextmanager
    from starlette.applications import Starlette
    from starlette.routing import Route
    from starlette.responses import JSONResponse

    async def healthz(request):
        return JSONResponse({"status": "ok", "configs": get_registry().names})

    async def root(request):
        return JSONResponse(
            {"error": "Use /mcp for the MCP endpoint or /healthz for health check"},
            status_code=406,
        )

    mcp_app = mcp.streamable_http_app()

    @asynccontextmanager
    async def lifespan(app):
        async with mcp.session_manager.run():
            yield

    starlette_app = Starlette(
        routes=[
            Route("/", root),
            Route("/healthz", healthz),
        ],
        lifespan=lifespan,
    )

    async def combined_app(scope, receive, send):
        path = scope.get("path", "/")
        if scope.get("type") == "http" and path.startswith("/mcp"):
            ok, reason = verify_hmac(scope.get("headers") or [], scope.get("method", "GET"), path)
            if not ok:
                body = json.dumps({"ok": False, "error": {"code": "UNAUTHENTICATED", "message": f"HMAC failed: {reason}"}})
                await send({"type": "http.response.start", "status": 401, "headers": [(b"content-type", b"application/json")]})
                await send({"type": "http.response.body", "body": body.encode("utf-8")})
                return
        if path.startswith("/mcp"):
            await mcp_app(scope, receive, send)
        else:
            await starlette_app(scope, receive, send)

    port = get_port()
    log(f"Starting server on port {port} with {len(get_registry())} webhook config(s)")
    uvicorn.run(combined_app, host="0.0.0.0", port=port, lifespan="on")

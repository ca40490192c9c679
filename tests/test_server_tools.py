"""
Tests for the MCP tool functions in server.py.
"""
import hashlib
import hmac
import json
import time

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from config import ACTION_GET_ALL, ACTION_GET_RECORDS
from lib.errors import ConfigError
from server import (
    batch_search,
    get_image_urls,
    get_table_details,
    get_table_list,
    list_configs,
    search,
    tools_help,
    verify_hmac,
)


class TestListConfigs:
    """Tests for list_configs tool"""

    @pytest.mark.asyncio
    async def test_lists_env_configs(self, monkeypatch):
        """Should list configured names without tokens"""
        monkeypatch.setenv("WPS_CONFIG", json.dumps([
            {"name": "parts", "webhookUrl": "https://wps.test/p", "token": "t1", "description": "Parts"},
        ]))
        result = await list_configs()
        assert result["ok"] is True
        assert result["data"]["configs"][0] == {"name": "parts", "description": "Parts"}
        assert "t1" not in json.dumps(result)


class TestSearchTool:
    """Tests for search tool"""

    @pytest.mark.asyncio
    async def test_search_success(self, scripted_client, sample_tables):
        """Should run a search against the resolved client"""
        scripted_client.ok(ACTION_GET_ALL, sample_tables)
        scripted_client.ok(ACTION_GET_RECORDS, {"records": [{"PartNo": "A100", "Level": "F"}]})
        with patch("server.get_client", return_value=scripted_client) as get_client:
            result = await search(
                table_name="Parts",
                criteria='[{"columnName": "Level", "searchValue": "F", "op": "Equals"}]',
                token_name="parts",
            )
        get_client.assert_called_once_with("parts")
        assert result["ok"] is True
        assert result["data"]["totalCount"] == 1

    @pytest.mark.asyncio
    async def test_search_requires_table(self):
        """Should return error when table_name is missing"""
        result = await search(table_name=None, criteria=[{"columnName": "A", "searchValue": "x"}])
        assert result["ok"] is False
        assert result["error"]["code"] == "BAD_REQUEST"

    @pytest.mark.asyncio
    async def test_search_requires_criteria(self):
        """Should return error when criteria is not a list of objects"""
        result = await search(table_name="Parts", criteria="Level=F")
        assert result["ok"] is False
        assert result["error"]["code"] == "BAD_REQUEST"

    @pytest.mark.asyncio
    async def test_search_unknown_config(self):
        """Should return CONFIG_ERROR for an unknown token name"""
        with patch("server.get_client", side_effect=ConfigError('no webhook config named "x"')):
            result = await search(table_name="Parts", criteria=[{"columnName": "A", "searchValue": "x"}], token_name="x")
        assert result["ok"] is False
        assert result["error"]["code"] == "CONFIG_ERROR"

    @pytest.mark.asyncio
    async def test_search_passes_return_columns(self, scripted_client):
        """Should hand parsed return columns to the handler"""
        mock_handler = MagicMock()
        mock_handler.search = AsyncMock(return_value={"ok": True, "op": "search", "data": {}})
        with patch("server.get_client", return_value=scripted_client), \
             patch("server.SearchHandler", return_value=mock_handler):
            await search(table_name="Parts", criteria=[{"columnName": "A", "searchValue": "x"}], return_columns="PartNo")
        args = mock_handler.search.await_args.args
        assert args[0] == "Parts"
        assert args[2] == ["PartNo"]


class TestBatchSearchTool:
    """Tests for batch_search tool"""

    @pytest.mark.asyncio
    async def test_batch_uses_env_concurrency(self, scripted_client, monkeypatch):
        """Should size the batch pool from WPS_BATCH_CONCURRENCY"""
        monkeypatch.setenv("WPS_BATCH_CONCURRENCY", "2")
        mock_handler = MagicMock()
        mock_handler.batch_search = AsyncMock(return_value={"ok": True, "op": "batch_search", "data": {}})
        with patch("server.get_client", return_value=scripted_client), \
             patch("server.SearchHandler", return_value=mock_handler) as handler_cls:
            result = await batch_search(
                table_name="Parts",
                batch_criteria=[{"criteria": [{"columnName": "PartNo", "searchValue": "A"}]}],
            )
        assert result["ok"] is True
        assert handler_cls.call_args.kwargs["concurrency"] == 2
        items = mock_handler.batch_search.await_args.args[1]
        assert items[0]["id"] == "q_0"

    @pytest.mark.asyncio
    async def test_batch_requires_items(self):
        """Should reject a non-list batch"""
        result = await batch_search(table_name="Parts", batch_criteria={"id": "a"})
        assert result["error"]["code"] == "BAD_REQUEST"


class TestTableTools:
    """Tests for table metadata tools"""

    @pytest.mark.asyncio
    async def test_get_table_list(self, scripted_client, sample_tables):
        scripted_client.ok(ACTION_GET_ALL, sample_tables)
        with patch("server.get_client", return_value=scripted_client):
            result = await get_table_list()
        assert result["ok"] is True
        assert result["data"]["count"] == 2

    @pytest.mark.asyncio
    async def test_get_table_details_requires_name(self):
        result = await get_table_details(table_name="")
        assert result["error"]["code"] == "BAD_REQUEST"

    @pytest.mark.asyncio
    async def test_get_table_details_sample_size(self, scripted_client):
        mock_handler = MagicMock()
        mock_handler.details = AsyncMock(return_value={"ok": True, "op": "tables.details", "data": {}})
        with patch("server.get_client", return_value=scripted_client), \
             patch("server.TablesHandler", return_value=mock_handler):
            await get_table_details(table_name="Parts", sample_size="3")
        mock_handler.details.assert_awaited_once_with("Parts", 3)


class TestImageTool:
    """Tests for get_image_urls tool"""

    @pytest.mark.asyncio
    async def test_requires_cells(self):
        result = await get_image_urls(table_name="Parts", cells=None)
        assert result["error"]["code"] == "BAD_REQUEST"


class TestToolsHelp:
    """Tests for tools_help tool"""

    @pytest.mark.asyncio
    async def test_lists_tools(self):
        result = await tools_help()
        names = [t["name"] for t in result["data"]["tools"]]
        assert "search" in names and "batch_search" in names


class TestVerifyHmac:
    """Tests for inbound HMAC verification"""

    def _sign(self, secret, ts, method="POST", path="/mcp"):
        return hmac.new(secret.encode(), f"{ts}.{method}.{path}".encode(), hashlib.sha256).hexdigest()

    def test_disabled_without_secret(self, monkeypatch):
        monkeypatch.delenv("MCP_HMAC_SECRET", raising=False)
        assert verify_hmac([], "POST", "/mcp") == (True, None)

    def test_valid_signature(self, monkeypatch):
        monkeypatch.setenv("MCP_HMAC_SECRET", "s3cret")
        ts = int(time.time())
        headers = [(b"x-mcp-ts", str(ts).encode()), (b"x-mcp-sign", self._sign("s3cret", ts).encode())]
        assert verify_hmac(headers, "post", "/mcp") == (True, None)

    def test_bad_signature(self, monkeypatch):
        monkeypatch.setenv("MCP_HMAC_SECRET", "s3cret")
        ts = int(time.time())
        headers = [(b"x-mcp-ts", str(ts).encode()), (b"x-mcp-sign", b"deadbeef")]
        assert verify_hmac(headers, "POST", "/mcp") == (False, "bad signature")

    def test_skew(self, monkeypatch):
        monkeypatch.setenv("MCP_HMAC_SECRET", "s3cret")
        ts = int(time.time()) - 1000
        headers = [(b"x-mcp-ts", str(ts).encode()), (b"x-mcp-sign", self._sign("s3cret", ts).encode())]
        assert verify_hmac(headers, "POST", "/mcp") == (False, "timestamp skew")

    def test_missing_headers_when_required(self, monkeypatch):
        monkeypatch.setenv("MCP_HMAC_SECRET", "s3cret")
        monkeypatch.setenv("MCP_HMAC_REQUIRED", "true")
        assert verify_hmac([], "POST", "/mcp") == (False, "missing headers")
        monkeypatch.setenv("MCP_HMAC_REQUIRED", "false")
        assert verify_hmac([], "POST", "/mcp") == (True, None)

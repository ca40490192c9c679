"""
Tests for WebhookClient (wire format, transport errors) and ClientRegistry.
"""
import json

import httpx
import pytest

from config import ACTION_GET_RECORDS
from handlers.search import SearchHandler
from lib.errors import ConfigError, ErrorCode, TransportError
from webhook_client import ClientRegistry, WebhookClient, WebhookConfig, get_client, get_registry

URL = "https://wps.test/api/v3/ide/file/f1/script/s1/sync_task"


@pytest.fixture
def client():
    return WebhookClient(WebhookConfig("test", URL, "secret-token"), timeout=5)


class TestInvoke:
    """Tests for the request envelope."""

    @pytest.mark.asyncio
    async def test_request_body_and_headers(self, httpx_mock, client):
        """Should POST {Context:{argv:{action,...}}} with the token header."""
        httpx_mock.add_response(url=URL, method="POST", json={"data": {"result": "{}"}})

        await client.invoke(ACTION_GET_RECORDS, {"sheetId": 3, "offset": None, "filter": {"mode": "AND", "criteria": []}})

        request = httpx_mock.get_request()
        assert request.headers["AirScript-Token"] == "secret-token"
        assert request.headers["Content-Type"] == "application/json"
        body = json.loads(request.content)
        assert body == {
            "Context": {
                "argv": {"action": "getRecords", "sheetId": 3, "filter": {"mode": "AND", "criteria": []}}
            }
        }

    @pytest.mark.asyncio
    async def test_call_parses_response(self, httpx_mock, client):
        """Should return the parsed logical result."""
        httpx_mock.add_response(json={"data": {"result": '{"records":[{"a":1}],"offset":"c2"}', "logs": []}})
        parsed = await client.call(ACTION_GET_RECORDS, {})
        assert parsed == {"success": True, "data": {"records": [{"a": 1}], "offset": "c2"}}

    @pytest.mark.asyncio
    async def test_non_json_body(self, httpx_mock, client):
        """Should treat a non-JSON body as an empty envelope."""
        httpx_mock.add_response(text="<html>gateway</html>")
        assert await client.invoke("getAll") == {}
        httpx_mock.add_response(text="<html>gateway</html>")
        parsed = await client.call("getAll")
        assert parsed["success"] is False


class TestTransportErrors:
    """Tests for transport failure mapping."""

    @pytest.mark.asyncio
    async def test_http_500(self, httpx_mock, client):
        """Should raise TransportError with status code and text."""
        httpx_mock.add_response(status_code=500)
        with pytest.raises(TransportError) as exc:
            await client.invoke("getAll")
        assert exc.value.code == ErrorCode.TRANSPORT_ERROR
        assert exc.value.status_code == 500
        assert exc.value.message == "HTTP 500: Internal Server Error"
        assert exc.value.extra == {"status_code": 500, "status_text": "Internal Server Error"}

    @pytest.mark.asyncio
    async def test_http_403(self, httpx_mock, client):
        """Should not parse the body of an error status."""
        httpx_mock.add_response(status_code=403, json={"data": {"result": "{}"}})
        with pytest.raises(TransportError, match="HTTP 403"):
            await client.call("getAll")

    @pytest.mark.asyncio
    async def test_timeout(self, httpx_mock, client):
        """Should map timeouts to TransportError."""
        httpx_mock.add_exception(httpx.ReadTimeout("timed out"))
        with pytest.raises(TransportError, match="timeout"):
            await client.invoke("getAll")

    @pytest.mark.asyncio
    async def test_connection_error(self, httpx_mock, client):
        """Should map network failures to TransportError."""
        httpx_mock.add_exception(httpx.ConnectError("refused"))
        with pytest.raises(TransportError, match="request failed"):
            await client.invoke("getAll")

    @pytest.mark.asyncio
    async def test_unfollowed_redirect(self, httpx_mock, client):
        """Should treat a 3xx that cannot be followed as a transport failure."""
        httpx_mock.add_response(status_code=302)
        with pytest.raises(TransportError, match="HTTP 302") as exc:
            await client.invoke("getAll")
        assert exc.value.status_code == 302

    @pytest.mark.asyncio
    async def test_invalid_url(self):
        """Should map a malformed webhook URL to TransportError."""
        bad = WebhookClient(WebhookConfig("bad", URL + "\n", "t"))
        with pytest.raises(TransportError, match="invalid webhook URL"):
            await bad.invoke("getAll")

    @pytest.mark.asyncio
    async def test_invalid_url_through_handlers(self, assertions):
        """Should return structured errors from search and batch search."""
        bad = WebhookClient(WebhookConfig("bad", URL + "\n", "t"))
        criteria = [{"columnName": "PartNo", "searchValue": "A100"}]

        result = await SearchHandler(bad).search("Parts", criteria)
        assertions.assert_error(result, "TRANSPORT_ERROR", "search")

        result = await SearchHandler(bad).batch_search("Parts", [{"id": "a", "criteria": criteria}])
        data = assertions.assert_success(result, "batch_search")
        assert data["results"][0]["success"] is False
        assert "invalid webhook URL" in data["results"][0]["error"]

    @pytest.mark.asyncio
    async def test_shared_client_redirect_status(self, httpx_mock):
        """Should apply the same status check through a caller-supplied AsyncClient."""
        httpx_mock.add_response(status_code=307)
        async with httpx.AsyncClient() as http:
            shared = WebhookClient(WebhookConfig("s", URL, "t"), http_client=http)
            with pytest.raises(TransportError, match="HTTP 307"):
                await shared.call("getAll")

    @pytest.mark.asyncio
    async def test_shared_http_client(self, httpx_mock):
        """Should reuse a caller-supplied AsyncClient."""
        httpx_mock.add_response(json={"data": {"result": '{"tables":[]}'}})
        async with httpx.AsyncClient() as http:
            shared = WebhookClient(WebhookConfig("s", URL, "t"), http_client=http)
            parsed = await shared.call("getAll")
        assert parsed["data"] == {"tables": []}


class TestClientRegistry:
    """Tests for named configurations."""

    def test_first_registered_is_default(self):
        """Should resolve the first config when no name is given."""
        registry = ClientRegistry()
        registry.register(WebhookConfig("parts", URL, "t1", "Parts catalogue"))
        registry.register(WebhookConfig("stock", URL, "t2"))
        assert registry.get().name == "parts"
        assert registry.get("stock").config.token == "t2"
        assert registry.names == ["parts", "stock"]
        assert registry.configs() == [{"name": "parts", "description": "Parts catalogue"}, {"name": "stock"}]

    def test_unknown_name(self):
        """Should raise ConfigError listing available names."""
        registry = ClientRegistry()
        registry.register(WebhookConfig("parts", URL, "t1"))
        with pytest.raises(ConfigError) as exc:
            registry.get("nope")
        assert exc.value.extra["available_configs"] == ["parts"]
        assert exc.value.to_response("search")["error"]["code"] == "CONFIG_ERROR"

    def test_empty_registry(self):
        """Should raise ConfigError when nothing is configured."""
        with pytest.raises(ConfigError):
            ClientRegistry().get()

    def test_describe_hides_token(self):
        """Should never expose the token."""
        assert "token" not in WebhookConfig("a", URL, "t").describe()

    def test_global_registry_from_env(self, monkeypatch):
        """Should build the global registry from the environment once."""
        monkeypatch.setenv("WPS_CONFIG", json.dumps([{"name": "parts", "webhookUrl": URL, "token": "t1"}]))
        monkeypatch.setenv("WPS_WEBHOOK_URL", URL)
        monkeypatch.setenv("WPS_TOKEN", "test-token")
        monkeypatch.setenv("WPS_TIMEOUT_SECONDS", "12")
        registry = get_registry()
        assert registry.names == ["parts", "default"]
        assert registry.timeout == 12.0
        assert get_registry() is registry
        assert get_client().name == "parts"
        assert get_client("default").config.webhook_url == URL

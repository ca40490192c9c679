"""
Pytest configuration and fixtures for MCP server tests.

Remote webhook calls are replaced either by pytest-httpx (transport tests)
or by a scripted client returning already-parsed results (everything above
the transport).
"""
import json
import os
import pytest
from typing import Any

# Set test environment variables before importing anything
os.environ.setdefault("WPS_WEBHOOK_URL", "https://wps.test/api/v3/ide/file/f1/script/s1/sync_task")
os.environ.setdefault("WPS_TOKEN", "test-token")

from lib.errors import QueryError  # noqa: E402
from webhook_client import reset_registry  # noqa: E402


# ========== Response Assertion Helpers ==========

class ResponseAssertions:
    """Helper class for asserting API response structures."""

    @staticmethod
    def assert_success(response: dict, op: str | None = None) -> dict:
        """Assert response is successful and return data.

        Args:
            response: The response dict to check
            op: Optional operation name to verify

        Returns:
            The data dict from the response
        """
        assert response.get("ok") is True, f"Expected success, got: {response}"
        if op:
            assert response.get("op") == op, f"Expected op={op}, got {response.get('op')}"
        return response.get("data", {})

    @staticmethod
    def assert_error(response: dict, code: str, op: str | None = None) -> dict:
        """Assert response is an error with given code.

        Returns:
            The error dict from the response
        """
        assert response.get("ok") is False, f"Expected error, got success: {response}"
        assert response.get("error", {}).get("code") == code, \
            f"Expected error code {code}, got {response.get('error', {}).get('code')}"
        if op:
            assert response.get("op") == op, f"Expected op={op}, got {response.get('op')}"
        return response.get("error", {})


@pytest.fixture
def assertions():
    """Fixture providing response assertion helpers."""
    return ResponseAssertions()


@pytest.fixture(autouse=True)
def _fresh_registry():
    """Every test sees a registry rebuilt from the current environment."""
    reset_registry()
    yield
    reset_registry()


# ========== Scripted Webhook Client ==========

class ScriptedClient:
    """
    Stand-in for WebhookClient.call().

    Results are queued per action and consumed in order. A queued
    QueryError is raised instead of returned. Every call is recorded in
    self.calls as (action, params).
    """

    def __init__(self, name: str = "test") -> None:
        self.name = name
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self._script: dict[str, list[Any]] = {}

    def ok(self, action: str, data: dict[str, Any]) -> "ScriptedClient":
        self._script.setdefault(action, []).append({"success": True, "data": data})
        return self

    def fail(self, action: str, error: str, message: str | None = None) -> "ScriptedClient":
        result: dict[str, Any] = {"success": False, "error": error}
        if message:
            result["message"] = message
        self._script.setdefault(action, []).append(result)
        return self

    def unparseable(self, action: str) -> "ScriptedClient":
        """Queue the result of a response no JSON object could be recovered from."""
        self._script.setdefault(action, []).append(
            {"success": False, "error": "Failed to parse response", "parse_failed": True}
        )
        return self

    def raises(self, action: str, exc: QueryError) -> "ScriptedClient":
        self._script.setdefault(action, []).append(exc)
        return self

    def calls_for(self, action: str) -> list[dict[str, Any]]:
        return [p for a, p in self.calls if a == action]

    async def call(self, action: str, params: dict[str, Any] | None = None, timeout: float | None = None):
        self.calls.append((action, dict(params or {})))
        queue = self._script.get(action)
        if not queue:
            raise AssertionError(f"unexpected webhook call: {action} {params}")
        result = queue.pop(0)
        if isinstance(result, QueryError):
            raise result
        return result


@pytest.fixture
def scripted_client():
    """Fixture providing an empty ScriptedClient."""
    return ScriptedClient()


# ========== Sample Data ==========

@pytest.fixture
def sample_tables():
    """getAll result for a database-style document."""
    return {
        "tables": [
            {
                "id": 3,
                "name": "Parts",
                "columns": [{"name": "PartNo"}, {"name": "Level"}, {"name": "Photo"}],
                "rowCount": 3,
            },
            {"id": 5, "name": "Suppliers", "columns": ["Name", "Country"]},
        ]
    }


@pytest.fixture
def sample_records():
    """Records as returned by getRecords."""
    return [
        {"id": "r1", "fields": {"PartNo": "A100", "Level": "F", "Photo": None}},
        {"id": "r2", "fields": {"PartNo": "A100-2", "Level": "F", "Photo": {"_type": "image", "value": "p.png", "imageUrl": "https://img.test/p.png"}}},
        {"id": "r3", "fields": {"PartNo": "A1000", "Level": "F", "Photo": '=DISPIMG("ID_9F",1)'}},
    ]


def envelope(payload: Any = None, logs: list[Any] | None = None) -> dict[str, Any]:
    """Raw webhook body whose result is the JSON text of payload."""
    result = json.dumps(payload) if payload is not None else "[Undefined]"
    return {"data": {"result": result, "logs": logs or []}, "status": "finished"}


@pytest.fixture
def make_envelope():
    """Fixture exposing envelope() to tests."""
    return envelope

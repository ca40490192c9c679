"""
Remote script webhook client.

The office-suite cloud exposes a single entrypoint: POST a script argument
object and receive the script's return value and console logs. Every other
module reaches the spreadsheet through WebhookClient.
"""
from dataclasses import dataclass
from typing import Any

import httpx

from config import DEFAULT_TIMEOUT_SECONDS, TOKEN_HEADER
from core.response_parser import parse_response
from lib.common import log
from lib.errors import ConfigError, TransportError
from lib.types import ParsedResult, RawResponse


@dataclass(frozen=True)
class WebhookConfig:
    """Credentials for one hosted document. Passed explicitly, never global."""
    name: str
    webhook_url: str
    token: str
    description: str | None = None

    def describe(self) -> dict[str, Any]:
        """Public view (no token)."""
        out: dict[str, Any] = {"name": self.name}
        if self.description:
            out["description"] = self.description
        return out


class WebhookClient:
    """Wrapper around one webhook endpoint. Does not retry."""

    def __init__(
        self,
        config: WebhookConfig,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            config: Webhook URL and token
            timeout: Default per-call timeout in seconds
            http_client: Optional shared AsyncClient (a short-lived one is
                         created per call otherwise)
        """
        self.config = config
        self.timeout = timeout
        self._http = http_client

    @property
    def name(self) -> str:
        return self.config.name

    async def invoke(
        self,
        action: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> RawResponse:
        """
        POST one action to the webhook and return the raw envelope.

        Raises:
            TransportError: non-2xx status, network failure or timeout.
        """
        argv: dict[str, Any] = {"action": action}
        argv.update({k: v for k, v in (params or {}).items() if v is not None})
        body = {"Context": {"argv": argv}}
        headers = {
            "Content-Type": "application/json",
            TOKEN_HEADER: self.config.token,
        }
        effective_timeout = timeout if timeout is not None else self.timeout

        log("WEBHOOK POST", self.config.name, self.config.webhook_url, action)
        try:
            if self._http is not None:
                r = await self._http.post(
                    self.config.webhook_url,
                    headers=headers,
                    json=body,
                    timeout=effective_timeout,
                    follow_redirects=True,
                )
            else:
                async with httpx.AsyncClient(timeout=effective_timeout, follow_redirects=True) as client:
                    r = await client.post(self.config.webhook_url, headers=headers, json=body)
        except httpx.TimeoutException as e:
            raise TransportError(f"timeout after {effective_timeout}s: {action}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"request failed: {e}") from e
        except httpx.InvalidURL as e:
            raise TransportError(f"invalid webhook URL for config {self.config.name}: {e}") from e

        if not r.is_success:
            raise TransportError(
                f"HTTP {r.status_code}: {r.reason_phrase}",
                status_code=r.status_code,
                status_text=r.reason_phrase,
            )

        try:
            data = r.json()
        except ValueError:
            log("WEBHOOK non-JSON body:", r.text[:200])
            return {}
        return data if isinstance(data, dict) else {}

    async def call(
        self,
        action: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> ParsedResult:
        """invoke() followed by parse_response(). Transport errors still raise."""
        raw = await self.invoke(action, params, timeout=timeout)
        return parse_response(raw)


class ClientRegistry:
    """Named webhook clients; the first registered is the default."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self.timeout = timeout
        self._clients: dict[str, WebhookClient] = {}
        self._default: str | None = None

    def register(self, config: WebhookConfig) -> WebhookClient:
        client = WebhookClient(config, timeout=self.timeout)
        self._clients[config.name] = client
        if self._default is None:
            self._default = config.name
        return client

    def __contains__(self, name: str) -> bool:
        return name in self._clients

    def __len__(self) -> int:
        return len(self._clients)

    @property
    def names(self) -> list[str]:
        return list(self._clients)

    def configs(self) -> list[dict[str, Any]]:
        return [c.config.describe() for c in self._clients.values()]

    def get(self, name: str | None = None) -> WebhookClient:
        """
        Get a client by config name, or the default one.

        Raises:
            ConfigError: unknown name, or nothing configured.
        """
        if name:
            client = self._clients.get(name)
            if client is None:
                raise ConfigError(
                    f'no webhook config named "{name}"',
                    {"available_configs": self.names},
                )
            return client
        if self._default is not None:
            return self._clients[self._default]
        raise ConfigError(
            "no webhook configured; set WPS_CONFIG (JSON array) or WPS_WEBHOOK_URL + WPS_TOKEN"
        )


# Singleton registry for the application
_registry: ClientRegistry | None = None


def get_registry() -> ClientRegistry:
    """
    Get the global ClientRegistry instance.
    Initializes from environment variables on first call.
    """
    global _registry
    if _registry is None:
        from env_loader import get_timeout_seconds, load_webhook_configs
        registry = ClientRegistry(timeout=get_timeout_seconds())
        for cfg in load_webhook_configs():
            registry.register(cfg)
        log(f"Loaded {len(registry)} webhook config(s)")
        _registry = registry
    return _registry


def get_client(name: str | None = None) -> WebhookClient:
    """Get a named (or the default) client from the global registry."""
    return get_registry().get(name)


def reset_registry() -> None:
    """Reset the global registry (useful for testing)."""
    global _registry
    _registry = None

"""
Environment variable loader for the MCP server.
Handles loading webhook configurations from .env file or environment.
"""
import os
import json
from pathlib import Path

# Load .env file if it exists
from dotenv import load_dotenv

from config import DEFAULT_BATCH_CONCURRENCY, DEFAULT_CONFIG_NAME, DEFAULT_TIMEOUT_SECONDS
from lib.common import log
from webhook_client import WebhookConfig


# Find .env file (look in current dir and parent dirs)
def _find_env_file() -> Path | None:
    current = Path(__file__).parent
    for _ in range(3):  # Check up to 3 levels up
        env_path = current / ".env"
        if env_path.exists():
            return env_path
        current = current.parent
    return None


_env_file = _find_env_file()
if _env_file:
    load_dotenv(_env_file)


def load_webhook_configs() -> list[WebhookConfig]:
    """
    Read webhook configurations.

    Sources, in order:
    1. WPS_CONFIG: JSON array of {name, webhookUrl, token, description?}
    2. WPS_WEBHOOK_URL + WPS_TOKEN: registered as "default" unless a config
       with that name already exists

    Invalid entries and malformed JSON are logged and skipped.

    Returns:
        list: Configurations in registration order (first is the default)
    """
    configs: list[WebhookConfig] = []
    seen: set[str] = set()

    raw = os.environ.get("WPS_CONFIG")
    if raw:
        try:
            entries = json.loads(raw)
        except json.JSONDecodeError as e:
            log(f"Invalid WPS_CONFIG: {e}")
            entries = []
        if isinstance(entries, list):
            for entry in entries:
                if not isinstance(entry, dict):
                    continue
                name = str(entry.get("name") or "").strip()
                url = str(entry.get("webhookUrl") or "").strip()
                token = str(entry.get("token") or "").strip()
                if not (name and url and token):
                    log("Skipping incomplete WPS_CONFIG entry:", name or "(unnamed)")
                    continue
                if name in seen:
                    continue
                log(f"Loading config: {name}" + (f" ({entry['description']})" if entry.get("description") else ""))
                configs.append(WebhookConfig(name, url, token, entry.get("description")))
                seen.add(name)

    url = os.environ.get("WPS_WEBHOOK_URL", "").strip()
    token = os.environ.get("WPS_TOKEN", "").strip()
    if url and token and DEFAULT_CONFIG_NAME not in seen:
        log("Loading default config (WPS_WEBHOOK_URL)")
        configs.append(WebhookConfig(DEFAULT_CONFIG_NAME, url, token, "default config"))

    return configs


def get_timeout_seconds() -> float:
    """Per-call webhook timeout."""
    try:
        return float(os.environ.get("WPS_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS))
    except ValueError:
        return DEFAULT_TIMEOUT_SECONDS


def get_batch_concurrency() -> int:
    """Maximum batch items in flight at once (at least 1)."""
    try:
        return max(1, int(os.environ.get("WPS_BATCH_CONCURRENCY", DEFAULT_BATCH_CONCURRENCY)))
    except ValueError:
        return DEFAULT_BATCH_CONCURRENCY


def get_port() -> int:
    """Get server port from environment."""
    return int(os.environ.get("PORT", "8080"))


def is_hmac_required() -> bool:
    """Check if HMAC authentication is required."""
    return os.environ.get("MCP_HMAC_REQUIRED", "false").lower() in {"1", "true", "yes", "on"}


def get_hmac_secret() -> str | None:
    """Get HMAC secret if configured."""
    secret = os.environ.get("MCP_HMAC_SECRET")
    return secret if secret else None

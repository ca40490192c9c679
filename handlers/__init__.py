"""
Handler packages for the MCP server.

Each handler wraps one WebhookClient and returns {ok, op, data|error} dicts.
"""
from handlers.tables import TablesHandler
from handlers.search import SearchHandler
from handlers.images import ImagesHandler

__all__ = ["TablesHandler", "SearchHandler", "ImagesHandler"]

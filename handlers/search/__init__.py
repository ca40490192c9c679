"""
Search handler package.

Exports SearchHandler class for single and batch search.
"""
from handlers.search.handler import SearchHandler, project_record

__all__ = ["SearchHandler", "project_record"]

"""
Tables handler package.

Exports TablesHandler class for table metadata operations.
"""
from handlers.tables.handler import TablesHandler, clamp_sample_size

__all__ = ["TablesHandler", "clamp_sample_size"]

"""
Images handler class.
Looks up temporary URLs of images embedded in cells.
"""
from typing import Any

from config import ACTION_GET_IMAGE_URL
from core.base_handler import BaseHandler
from lib.errors import ErrorCode, bad_request


class ImagesHandler(BaseHandler):
    """Handler for cell image lookups."""

    async def get_urls(self, table_name: str, cells: list[str]) -> dict[str, Any]:
        """
        Get image URLs for cell addresses.

        Args:
            table_name: Sheet name
            cells: Cell addresses, e.g. ["A1", "B2"]

        Returns:
            {tableName, requestedCount, successCount, imageUrls: {cell: url|None}}
        """
        op = "images.get_urls"
        if not table_name:
            return bad_request(op, "tableName is required")
        if not cells:
            return bad_request(op, "cells is required")

        data, err = await self.call(op, ACTION_GET_IMAGE_URL, {"sheetName": table_name, "cells": cells})
        if err:
            return err

        urls = data.get("imageUrls")
        if not isinstance(urls, dict):
            return self._error(op, ErrorCode.PARSE_ERROR, "no image data returned")

        success_count = data.get("successCount")
        if success_count is None:
            success_count = sum(1 for v in urls.values() if v)
        lines = [f"{cell}: {url or '(no image)'}" for cell, url in urls.items()]
        return self._ok(op, {
            "tableName": table_name,
            "requestedCount": data.get("requestedCount", len(cells)),
            "successCount": success_count,
            "imageUrls": urls,
            "summary": f"Got {success_count}/{data.get('requestedCount', len(cells))} image URLs:\n\n" + "\n".join(lines),
        })

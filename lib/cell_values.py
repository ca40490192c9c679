"""
Cell value decoding for spreadsheet records.

Records have no fixed schema. Each cell is decoded into a small tagged union
so callers match on the type instead of probing dict keys:

    str | int | float | bool | None | ImageRef
"""
import json
import re
from dataclasses import dataclass
from typing import Any

DISPIMG_PATTERN = re.compile(r'^=DISPIMG\("([^"]+)",\s*\d+\)$', re.IGNORECASE)

IMAGE_KIND = "image"
DISPIMG_KIND = "dispimg"


@dataclass(frozen=True)
class ImageRef:
    """
    An image embedded in a cell.

    kind is "image" when the remote resolved a URL, "dispimg" when the cell
    only holds a =DISPIMG(...) formula with an image id.
    """
    kind: str
    value: Any = None
    image_url: str | None = None
    image_id: str | None = None
    cell_address: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"_type": self.kind, "value": self.value}
        if self.kind == IMAGE_KIND:
            out["imageUrl"] = self.image_url
        else:
            out["imageId"] = self.image_id
            out["cellAddress"] = self.cell_address
        return out


CellValue = str | int | float | bool | None | ImageRef


def parse_dispimg(value: Any) -> str | None:
    """Return the image id of a =DISPIMG("ID",1) formula, else None."""
    if not isinstance(value, str):
        return None
    m = DISPIMG_PATTERN.match(value)
    return m.group(1) if m else None


def decode_cell(raw: Any) -> CellValue:
    """Decode one raw cell into the tagged union. Unknown objects keep their JSON form."""
    if raw is None or isinstance(raw, (str, int, float, bool)):
        image_id = parse_dispimg(raw)
        if image_id:
            return ImageRef(kind=DISPIMG_KIND, value=raw, image_id=image_id)
        return raw
    if isinstance(raw, dict):
        kind = raw.get("_type")
        if kind == IMAGE_KIND:
            return ImageRef(kind=IMAGE_KIND, value=raw.get("value"), image_url=raw.get("imageUrl"))
        if kind == DISPIMG_KIND:
            return ImageRef(
                kind=DISPIMG_KIND,
                value=raw.get("value"),
                image_id=raw.get("imageId"),
                cell_address=raw.get("cellAddress"),
            )
    # Lists, attachments and other structured cells: render as text
    return json.dumps(raw, ensure_ascii=False)


def record_fields(record: dict[str, Any]) -> dict[str, Any]:
    """Database-style records wrap cells as {"id": ..., "fields": {...}}."""
    fields = record.get("fields")
    if isinstance(fields, dict):
        return fields
    return record


def decode_record(record: dict[str, Any]) -> dict[str, CellValue]:
    """Decode every cell of a record, preserving column order."""
    return {name: decode_cell(v) for name, v in record_fields(record).items()}


def encode_cell(value: CellValue) -> Any:
    """Inverse of decode_cell for JSON output."""
    if isinstance(value, ImageRef):
        return value.to_dict()
    return value

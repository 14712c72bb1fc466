from datetime import date, datetime
from typing import Any

from bson import ObjectId


def serialize(obj: Any) -> Any:
    """
    Recursively turn raw Mongo output (aggregation rows, nested lookups) into
    JSON-safe values: ObjectId -> str, date/datetime -> ISO string.
    """
    if isinstance(obj, ObjectId):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {k: serialize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [serialize(v) for v in obj]
    return obj


def document_out(doc, exclude=None) -> dict:
    """Dump a Beanie document with its ``_id`` key, as the aggregation rows have."""
    data = doc.model_dump(mode="json", exclude=exclude)
    data.pop("id", None)
    return {"_id": str(doc.id), **data}

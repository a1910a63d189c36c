"""
Firestore query helpers.

NOTE: For firebase_admin SDK, we use positional arguments which still work.
The deprecation warning is just a warning - the functionality is still supported.
"""

from datetime import datetime
from typing import Dict, Iterable, Iterator, List

# Firestore caps the value list of an "in" filter
FIRESTORE_IN_LIMIT = 30


def where_filter(query, field_path: str, op_string: str, value):
    """
    Helper function for Firestore queries.

    Usage:
        query = where_filter(collection, "type", "==", "LINE")
        query = where_filter(query, "hidden", "==", False)
    """
    return query.where(field_path, op_string, value)


def chunked(values: Iterable[str], size: int = FIRESTORE_IN_LIMIT) -> Iterator[List[str]]:
    """Split values into lists small enough for one "in" filter."""
    batch: List[str] = []
    for value in values:
        batch.append(value)
        if len(batch) == size:
            yield batch
            batch = []
    if batch:
        yield batch


def snapshot_to_dict(doc) -> Dict:
    """
    Convert a document snapshot to a plain dict carrying its ID.

    Firestore returns DatetimeWithNanoseconds (a datetime subclass) for
    timestamps; anything else in a timestamp field is left for pydantic.
    """
    data = doc.to_dict() or {}
    data["id"] = doc.id
    for key, value in list(data.items()):
        if isinstance(value, datetime):
            continue
        if hasattr(value, "to_datetime"):
            data[key] = value.to_datetime()
    return data

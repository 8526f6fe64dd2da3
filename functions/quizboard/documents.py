"""
Conversions between dataclasses in ``shared.types`` and stored documents.
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from typing import Type, TypeVar

from dacite import Config, from_dict

from shared.json_utils import convert_keys

T = TypeVar("T")


def to_document(obj, *, exclude: tuple[str, ...] = ()) -> dict:
    data = asdict(obj)
    for key in exclude:
        data.pop(key, None)
    return convert_keys(data, "snake_to_camel")


def from_document(data_class: Type[T], data: dict) -> T:
    return from_dict(
        data_class=data_class,
        data=convert_keys(data, "camel_to_snake"),
        config=Config(check_types=False),
    )


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def timestamp_text(value) -> str:
    """
    Returns a stored timestamp as ISO-8601 text.

    Documents written by earlier releases hold native timestamps, which
    Firestore reads back as ``datetime`` values.
    """
    if isinstance(value, datetime):
        return value.isoformat()
    return value or ""

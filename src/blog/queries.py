import re
from datetime import datetime, timezone
from typing import Optional

import pymongo
from bson import ObjectId
from dateutil import parser as date_parser

from src.utils.errors import ValidationError

DEFAULT_LIMIT = 10

# BSON encodes limit/skip as signed 64-bit integers
MAX_WINDOW = 2 ** 63 - 1

_LEADING_INT = re.compile(r"^\s*([+-]?[0-9]+)", re.ASCII)


def parse_int(value: Optional[str], default: int) -> int:
    """Read the leading decimal integer of ``value``; ``default`` if there is none or it is 0.

    A ``0x`` prefix is not read as hex: ``"0x10"`` parses as 0, so the default applies.
    """
    if value is None:
        return default
    match = _LEADING_INT.match(value)
    if not match:
        return default
    return int(match.group(1)) or default


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """Parse a date or date-time into naive UTC, or None if unparseable.

    Accepts ISO-8601, slash-separated dates, space-separated date-times,
    month names (``March 1, 2024``) and RFC 2822. Values without an offset
    are taken as UTC.
    """
    if not value or not value.strip():
        return None
    try:
        parsed = date_parser.parse(value.strip())
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def page_window(limit: Optional[str], skip: Optional[str]) -> tuple[int, int]:
    return (
        min(max(parse_int(limit, DEFAULT_LIMIT), 1), MAX_WINDOW),
        min(max(parse_int(skip, 0), 0), MAX_WINDOW),
    )


def sort_direction(sort: Optional[str]) -> int:
    return pymongo.ASCENDING if sort == "oldest" else pymongo.DESCENDING


def build_post_filter(
    tag: Optional[str] = None,
    author: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
) -> dict:
    query = {}

    if tag:
        query["tags"] = {"$in": [tag.lower()]}

    if author:
        if not ObjectId.is_valid(author):
            raise ValidationError("Invalid author id")
        query["author"] = ObjectId(author)

    created_at = {}
    start = parse_date(date_from)
    if start is not None:
        created_at["$gte"] = start
    end = parse_date(date_to)
    if end is not None:
        created_at["$lte"] = end
    if created_at:
        query["createdAt"] = created_at

    return query

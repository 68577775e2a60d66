from datetime import datetime

import pymongo
import pytest
from bson import ObjectId

from src.blog.queries import (
    MAX_WINDOW,
    build_post_filter,
    page_window,
    parse_date,
    parse_int,
    sort_direction,
)
from src.utils.errors import ValidationError


@pytest.mark.parametrize("value,expected", [
    (None, 7),
    ("", 7),
    ("12", 12),
    ("  5", 5),
    ("5.9", 5),
    ("-2", -2),
    ("0", 7),
    ("ten", 7),
])
def test_parse_int(value, expected):
    assert parse_int(value, 7) == expected


def test_page_window_defaults():
    assert page_window(None, None) == (10, 0)


def test_page_window_clamps():
    assert page_window("-10", "-10") == (1, 0)


def test_parse_date_variants():
    assert parse_date("2024-01-02") == datetime(2024, 1, 2)
    assert parse_date("2024-01-02T03:04:05Z") == datetime(2024, 1, 2, 3, 4, 5)
    assert parse_date("2024-01-02T03:04:05-01:00") == datetime(2024, 1, 2, 4, 4, 5)


@pytest.mark.parametrize("value", [None, "", "not a date", "2024-13-40"])
def test_parse_date_invalid(value):
    assert parse_date(value) is None


def test_sort_direction():
    assert sort_direction("oldest") == pymongo.ASCENDING
    assert sort_direction("newest") == pymongo.DESCENDING
    assert sort_direction(None) == pymongo.DESCENDING


def test_build_filter_empty():
    assert build_post_filter() == {}


def test_build_filter_all_criteria():
    author = ObjectId()
    query = build_post_filter(
        tag="News", author=str(author), date_from="2024-01-01", date_to="2024-02-01"
    )
    assert query == {
        "tags": {"$in": ["news"]},
        "author": author,
        "createdAt": {"$gte": datetime(2024, 1, 1), "$lte": datetime(2024, 2, 1)},
    }


def test_build_filter_drops_unparseable_bounds():
    assert build_post_filter(date_from="bad", date_to="worse") == {}
    assert build_post_filter(date_from="bad", date_to="2024-02-01") == {
        "createdAt": {"$lte": datetime(2024, 2, 1)}
    }


def test_build_filter_rejects_malformed_author():
    with pytest.raises(ValidationError) as exc_info:
        build_post_filter(author="12345")
    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Invalid author id"


@pytest.mark.parametrize("value", ["٣", "0x10", "٤٢"])
def test_parse_int_only_reads_ascii_decimal(value):
    assert parse_int(value, 7) == 7


@pytest.mark.parametrize("value,expected", [
    ("2024/03/01", datetime(2024, 3, 1)),
    ("2024/03/01 13:00:00", datetime(2024, 3, 1, 13, 0, 0)),
    ("2024-03-01 13:00:00", datetime(2024, 3, 1, 13, 0, 0)),
    ("March 1, 2024", datetime(2024, 3, 1)),
    ("Fri, 01 Mar 2024 15:00:00 +0200", datetime(2024, 3, 1, 13, 0, 0)),
])
def test_parse_date_common_formats(value, expected):
    assert parse_date(value) == expected


def test_parse_date_overflowing_number():
    assert parse_date("99999999999999999999999") is None


def test_page_window_caps_at_int64():
    huge = "99999999999999999999"
    assert page_window(huge, huge) == (MAX_WINDOW, MAX_WINDOW)
    assert MAX_WINDOW == 2 ** 63 - 1


def test_build_filter_applies_slash_date():
    assert build_post_filter(date_from="2024/03/01 13:00:00") == {
        "createdAt": {"$gte": datetime(2024, 3, 1, 13, 0, 0)}
    }

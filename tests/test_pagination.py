"""
Pagination clamping and page arithmetic
"""
import pytest

from socialnet.services.pagination import Pagination, lenient_int


def test_defaults_when_missing():
    pg = Pagination.from_request(None, None)
    assert pg.page == 1
    assert pg.limit == 10
    assert pg.offset == 0


def test_out_of_range_input_is_clamped():
    assert Pagination.from_request(0, 0) == Pagination(page=1, limit=10)
    assert Pagination.from_request(-3, 101) == Pagination(page=1, limit=10)
    assert Pagination.from_request(2, 100) == Pagination(page=2, limit=100)


def test_offset():
    assert Pagination.from_request(3, 20).offset == 40


def test_total_pages():
    pg = Pagination.from_request(1, 10)
    assert pg.total_pages(25) == 3
    assert pg.total_pages(20) == 2
    assert pg.total_pages(1) == 1
    assert pg.total_pages(0) == 0


@pytest.mark.parametrize(
    "raw,expected",
    [("3", 3), (" 7 ", 7), ("-2", -2), ("x", 0), ("abc", 0), ("1.5", 0), ("", 0), (None, 0)],
)
def test_lenient_int(raw, expected):
    assert lenient_int(raw) == expected


def test_unparsable_query_values_fall_back_to_defaults():
    assert Pagination.from_request(lenient_int("x"), lenient_int("abc")) == Pagination(page=1, limit=10)

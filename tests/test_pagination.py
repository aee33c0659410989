import pytest

from fxrates.core.errors import InvalidPagination
from fxrates.services.pagination import paginate

ITEMS = list(range(25))


def test_pages_partition_the_items():
    pages = [paginate(ITEMS, p, 10) for p in (1, 2, 3)]
    assert [len(p.data) for p in pages] == [10, 10, 5]
    assert sum((p.data for p in pages), []) == ITEMS
    meta = pages[2].meta
    assert (meta.page, meta.limit, meta.total, meta.total_pages) == (3, 10, 25, 3)


def test_page_past_the_end_is_empty():
    result = paginate(ITEMS, 4, 10)
    assert result.data == []
    assert result.meta.total == 25


def test_empty_input():
    result = paginate([], 1, 10)
    assert result.data == []
    assert result.meta.total_pages == 0


def test_repeated_calls_are_identical():
    assert paginate(ITEMS, 2, 7) == paginate(ITEMS, 2, 7)


@pytest.mark.parametrize("page,limit", [(0, 10), (-1, 10), (1, 0), (1, -3)])
def test_invalid_parameters(page, limit):
    with pytest.raises(InvalidPagination):
        paginate(ITEMS, page, limit)


def test_limit_cap():
    with pytest.raises(InvalidPagination):
        paginate(ITEMS, 1, 101, max_limit=100)
    assert len(paginate(ITEMS, 1, 100, max_limit=100).data) == 25

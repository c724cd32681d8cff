"""
Unit tests for split_batches.
"""

import pytest

from partition_sink import MAX_REQUEST_SIZE, InvalidInputError, split_batches


def test_max_request_size_is_1000():
    assert MAX_REQUEST_SIZE == 1000


@pytest.mark.parametrize(
    "n,max_size,expected",
    [
        (0, 3, []),
        (1, 3, [1]),
        (3, 3, [3]),
        (7, 3, [3, 3, 1]),
        (2500, 1000, [1000, 1000, 500]),
        (2000, 1000, [1000, 1000]),
    ],
)
def test_batch_sizes(n, max_size, expected):
    """Every batch is 1..max_size and only the last may be short."""
    batches = split_batches(list(range(n)), max_size)
    assert [len(b) for b in batches] == expected


def test_batches_cover_input_exactly_once_in_order():
    items = list(range(2345))
    batches = split_batches(items)
    assert [x for b in batches for x in b] == items
    assert all(1 <= len(b) <= MAX_REQUEST_SIZE for b in batches)


def test_batch_i_covers_expected_slice():
    items = list(range(10))
    batches = split_batches(items, 4)
    for i, batch in enumerate(batches):
        assert batch == items[i * 4 : min((i + 1) * 4, len(items))]


def test_batches_are_independent_lists():
    items = [1, 2, 3]
    batches = split_batches(items, 2)
    batches[0].append(99)
    assert items == [1, 2, 3]


@pytest.mark.parametrize("max_size", [0, -1])
def test_non_positive_max_size_rejected(max_size):
    with pytest.raises(InvalidInputError):
        split_batches([1, 2], max_size)


def test_empty_input_with_bad_size_still_rejected():
    with pytest.raises(InvalidInputError):
        split_batches([], 0)

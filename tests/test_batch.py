import math

import pytest

from twinmodels import plan_batches


def test_empty_input_has_no_batches() -> None:
    assert plan_batches([]) == []


@pytest.mark.parametrize("count", [1, 40, 41, 249])
def test_below_api_limit_is_a_single_batch(count: int) -> None:
    items = list(range(count))

    batches = plan_batches(items)

    assert batches == [items]


@pytest.mark.parametrize("count", [250, 251, 280, 1001])
def test_at_or_above_api_limit_is_split(count: int) -> None:
    items = list(range(count))

    batches = plan_batches(items)

    assert len(batches) == math.ceil(count / 40)
    assert all(len(batch) == 40 for batch in batches[:-1])
    assert 0 < len(batches[-1]) <= 40
    assert [item for batch in batches for item in batch] == items


def test_custom_limits() -> None:
    batches = plan_batches(list("abcdefg"), api_limit=5, batch_size=3)

    assert batches == [["a", "b", "c"], ["d", "e", "f"], ["g"]]


def test_invalid_batch_size() -> None:
    with pytest.raises(ValueError, match="must be positive"):
        plan_batches([1, 2], batch_size=0)
    with pytest.raises(ValueError, match="exceeds the per-request limit"):
        plan_batches([1, 2], api_limit=10, batch_size=20)

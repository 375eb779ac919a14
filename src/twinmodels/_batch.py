import math
from collections.abc import Sequence
from typing import TypeVar

MAX_MODELS_PER_REQUEST = 250
MAX_MODELS_PER_BATCH = 40

T = TypeVar("T")


def plan_batches(
    items: Sequence[T],
    *,
    api_limit: int = MAX_MODELS_PER_REQUEST,
    batch_size: int = MAX_MODELS_PER_BATCH,
) -> list[list[T]]:
    """Split an ordered sequence into batches for sequential submission.

    Fewer than ``api_limit`` items go out as a single request. Larger sets are
    cut into contiguous chunks of ``batch_size``, the last chunk holding the remainder.
    """
    if batch_size <= 0:
        msg = f"Batch size must be positive. Got: {batch_size}"
        raise ValueError(msg)
    if batch_size > api_limit:
        msg = f"Batch size {batch_size} exceeds the per-request limit of {api_limit}."
        raise ValueError(msg)

    count = len(items)
    if count == 0:
        return []
    if count < api_limit:
        return [list(items)]

    batch_count = math.ceil(count / batch_size)
    return [list(items[i * batch_size : (i + 1) * batch_size]) for i in range(batch_count)]

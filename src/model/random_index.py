"""Contains the weighted random index sampling used when collapsing a cell."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray


def random_index(distribution: Sequence[float] | NDArray[np.double], r: float) -> int:
    """Picks an index with a probability proportional to its weight.

    The uniform sample 'r' is scaled by the total weight and the cumulative weights are walked until they reach it.
    Indices with a weight of zero are never returned unless every weight is zero, in which case 0 is returned.

    Args:
        distribution: The non-negative weight of each index.
        r: A uniform sample in [0, 1).

    Returns:
        The sampled index.

    Raises:
        ValueError: If the distribution contains a negative weight.
    """
    weights = np.asarray(distribution, dtype=np.double)
    if (weights < 0).any():
        raise ValueError("Weights of a distribution must not be negative.")

    total = weights.sum()
    if total <= 0:
        return 0

    threshold = r * total
    cumulative = 0.0
    for i in range(len(weights)):
        weight = weights[i]
        if weight <= 0:
            continue
        cumulative += weight
        if threshold <= cumulative:
            return i

    # Floating point rounding can leave the threshold marginally above the total, so fall back to the last candidate.
    return int(np.flatnonzero(weights > 0)[-1])

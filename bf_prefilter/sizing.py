"""Optimal Bloom filter dimensions for a target capacity and error rate.

    m = ceil(-n * ln(p) / ln(2)^2)
    k = ceil(m / n * ln(2))

Both are rounded up and floored at 1 so degenerate inputs (``p`` close to 1,
a single item) never produce an empty structure.
"""
from __future__ import annotations

import logging
import math
from typing import Tuple

from .errors import InvalidParameterError


logger = logging.getLogger(__name__)

LN2 = math.log(2)


def _check_tolerance(false_positive_tolerance: float) -> None:
    if not 0.0 < false_positive_tolerance < 1.0:
        raise InvalidParameterError(
            "false positive tolerance must be between 0.0 and 1.0 (exclusive)"
        )


def optimal_num_bits(num_items: int, false_positive_tolerance: float) -> int:
    if num_items <= 0:
        raise InvalidParameterError("num_items must be positive")
    _check_tolerance(false_positive_tolerance)

    bits = -num_items * math.log(false_positive_tolerance) / (LN2 * LN2)
    return max(1, math.ceil(bits))


def optimal_num_hashes(num_bits: int, num_items: int) -> int:
    if num_items <= 0:
        raise InvalidParameterError("num_items must be positive")
    if num_bits <= 0:
        raise InvalidParameterError("num_bits must be positive")

    return max(1, math.ceil((num_bits / num_items) * LN2))


def optimal_parameters(num_items: int, false_positive_tolerance: float) -> Tuple[int, int]:
    """Return ``(num_bits, num_hashes)`` for ``num_items`` at the given tolerance."""
    num_bits = optimal_num_bits(num_items, false_positive_tolerance)
    num_hashes = optimal_num_hashes(num_bits, num_items)
    logger.debug(
        "sized filter for %d items at p=%g: %d bits, %d hashes",
        num_items, false_positive_tolerance, num_bits, num_hashes,
    )
    return num_bits, num_hashes

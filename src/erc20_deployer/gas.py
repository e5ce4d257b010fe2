"""Gas pricing policy."""

import math
from decimal import Decimal
from fractions import Fraction
from typing import Union

from .constants import GAS_MULTIPLIER

__all__ = ["pad"]


def pad(raw_estimate: Union[int, str], multiplier: Decimal = GAS_MULTIPLIER) -> str:
    """Pad a raw gas estimate for safety margin.

    Returns ``ceil(raw_estimate * multiplier)`` as a decimal integer string.
    Arithmetic is exact rational math, so large estimates survive
    re-serialization.

    Example:
        >>> pad(21000)
        '25200'
    """
    return str(math.ceil(int(raw_estimate) * Fraction(multiplier)))

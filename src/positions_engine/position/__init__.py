"""Position algebra.

Public API:
- NaivePosition: true-form (price, size, value) with the merge rule.
- Reversed / reverse: the reversed-quoting adapter.
- Position: a NaivePosition bound to an Instrument.
"""

from .naive import NaivePosition, as_naive_position
from .position import Position
from .reversed import Reversed, reverse

__all__ = ["NaivePosition", "Position", "Reversed", "as_naive_position", "reverse"]

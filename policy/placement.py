from __future__ import annotations
from enum import Enum
from typing import Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from memory.allocator import Region

class Strategy(str, Enum):
    FIRST_FIT = 'F'
    BEST_FIT = 'B'
    WORST_FIT = 'W'

    @classmethod
    def parse(cls, token: str) -> Strategy:
        if isinstance(token, cls):
            return token
        if not token:
            return cls.FIRST_FIT
        return cls(token[0].upper())

def select_hole(regions: Sequence[Region], size: int, strategy: Strategy) -> Optional[int]:
    """Single left-to-right scan over the free regions that can hold `size`.

    Best/worst fit only replace the running candidate on a strict
    improvement, so equal-sized holes resolve to the lowest address.
    """
    selected: Optional[int] = None
    for i, r in enumerate(regions):
        if not r.is_free or r.size < size:
            continue
        if strategy is Strategy.FIRST_FIT:
            return i
        if selected is None:
            selected = i
        elif strategy is Strategy.BEST_FIT and r.size < regions[selected].size:
            selected = i
        elif strategy is Strategy.WORST_FIT and r.size > regions[selected].size:
            selected = i
    return selected

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from memory.errors import InvalidOwner, InvalidSize, OutOfMemory, OwnerNotFound
from policy.placement import Strategy, select_hole

log = logging.getLogger(__name__)

@dataclass(frozen=True)
class Region:
    start: int
    end: int
    owner: Optional[str] = None   # None means free

    def __post_init__(self):
        if self.start < 0 or self.end < self.start:
            raise InvalidSize(f"bad region [{self.start}:{self.end}]")
        if self.owner is not None and not self.owner:
            raise InvalidOwner("allocated region needs a non-empty owner")

    @property
    def size(self) -> int:
        return self.end - self.start + 1

    @property
    def is_free(self) -> bool:
        return self.owner is None

class AddressSpaceAllocator:
    """Contiguous allocator over the simulated range [0, total_size-1].

    The address space is an ordered list of regions with no gaps, and no
    two neighbouring regions are both free.
    """
    def __init__(self, total_size: int):
        if total_size <= 0:
            raise InvalidSize(f"total size must be positive, got {total_size}")
        self.total_size = total_size
        self._regions: List[Region] = [Region(0, total_size-1)]

    def __len__(self) -> int:
        return len(self._regions)

    def allocate(self, owner: str, size: int,
                 strategy: Union[Strategy, str] = Strategy.FIRST_FIT) -> Region:
        if not owner:
            raise InvalidOwner("owner id must be non-empty")
        if size <= 0:
            raise InvalidSize(f"requested size must be positive, got {size}")
        strategy = Strategy.parse(strategy)
        idx = select_hole(self._regions, size, strategy)
        if idx is None:
            log.info("out of memory: %s wants %d bytes (%s)", owner, size, strategy.name)
            raise OutOfMemory(owner, size)
        hole = self._regions[idx]
        placed = Region(hole.start, hole.start+size-1, owner)
        if hole.size == size:
            self._regions[idx] = placed
        else:
            # remainder stays free and keeps the hole's end
            self._regions[idx:idx+1] = [placed, Region(placed.end+1, hole.end)]
        log.debug("%s: %s -> [%d:%d] from hole [%d:%d]",
                  strategy.name, owner, placed.start, placed.end, hole.start, hole.end)
        return placed

    def release(self, owner: str) -> List[Region]:
        freed=[]
        for i, r in enumerate(self._regions):
            if owner and r.owner == owner:
                freed.append(r)
                self._regions[i] = Region(r.start, r.end)
        if not freed:
            log.info("release of unknown owner %s", owner)
            raise OwnerNotFound(owner)
        log.debug("released %d region(s) of %s", len(freed), owner)
        self._merge_free()
        return freed

    def _merge_free(self):
        i = 0
        while i < len(self._regions) - 1:
            a, b = self._regions[i], self._regions[i+1]
            if a.is_free and b.is_free:
                # stay on i: the merged hole may touch another free region
                self._regions[i:i+2] = [Region(a.start, b.end)]
            else:
                i += 1

    def compact(self) -> int:
        moved=0
        cursor=0
        packed: List[Region] = []
        for r in self._regions:
            if r.is_free:
                continue
            if r.start != cursor:
                moved += r.size
            packed.append(Region(cursor, cursor+r.size-1, r.owner))
            cursor += r.size
        if cursor < self.total_size:
            packed.append(Region(cursor, self.total_size-1))
        self._regions = packed
        log.debug("compacted to %d bytes at the bottom, %d bytes moved", cursor, moved)
        return moved

    def snapshot(self) -> List[Region]:
        return list(self._regions)

    def owns(self, owner: str) -> bool:
        return any(r.owner == owner for r in self._regions)

    def owners(self) -> List[str]:
        seen: List[str] = []
        for r in self._regions:
            if r.owner is not None and r.owner not in seen:
                seen.append(r.owner)
        return seen

    def used(self) -> int:
        return sum(r.size for r in self._regions if not r.is_free)

    def free_bytes(self) -> int:
        return self.total_size - self.used()

    def extents_free(self) -> List[Tuple[int,int]]:
        return [(r.start, r.size) for r in self._regions if r.is_free]

    def largest_free_extent(self) -> int:
        return max((s for _,s in self.extents_free()), default=0)

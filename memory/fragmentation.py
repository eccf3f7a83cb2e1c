from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List
import math

from memory.allocator import Region

@dataclass
class FragMetrics:
    total_free: int
    used: int
    lfe: int
    external_frag: float
    entropy: float
    hole_count: int

def _entropy(hole_sizes: List[int]) -> float:
    total = sum(hole_sizes)
    if total <= 0:
        return 0.0
    ps = [s/total for s in hole_sizes]
    return max(0.0, -sum(p*math.log2(p) for p in ps))

def compute_metrics(regions: Iterable[Region]) -> FragMetrics:
    holes=[]
    used=0
    for r in regions:
        if r.is_free:
            holes.append(r.size)
        else:
            used += r.size
    total_free=sum(holes)
    lfe=max(holes, default=0)
    external = 0.0 if total_free==0 else 1.0 - (lfe/total_free)
    return FragMetrics(total_free, used, lfe, external, _entropy(holes), len(holes))

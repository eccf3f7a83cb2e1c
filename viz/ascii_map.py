from __future__ import annotations
from typing import Sequence

from memory.allocator import Region

def render_map(regions: Sequence[Region], total_size: int, width: int=80) -> str:
    """One character per address bin: '.' free, otherwise the owner's first letter."""
    buf=['.']*width
    for r in regions:
        if r.is_free:
            continue
        s=int((r.start/total_size)*width)
        e=int(((r.end+1)/total_size)*width)
        ch=r.owner[0].upper()
        for i in range(max(0,s), min(width, max(s+1,e))):
            buf[i]=ch
    return ''.join(buf)

"""
Contiguous Allocator - Visualizer

Replays an allocator command script and draws a Matplotlib heatmap of
address-space occupancy over time. Compaction commands are marked as
horizontal lines.

How to run (recommended, from repo root):
    python -m tools.visualize_fragmentation --script traces/compaction_demo.txt --memory 1 --out out_fragmentation.png

Notes:
- Commands go through AllocatorShell, so rejected requests are simply
  recorded as unchanged frames.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running as a script:
# (python -m tools.visualize_fragmentation already works without this,
#  but this makes `python tools/visualize_fragmentation.py ...` work too.)
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from memory.allocator import AddressSpaceAllocator
from memory.fragmentation import compute_metrics
from shell.parser import BYTES_PER_MB
from shell.session import AllocatorShell, load_script


def render_state(alloc: AddressSpaceAllocator, width: int) -> np.ndarray:
    """
    Return a 1D occupancy array over the address space, binned to 'width'.
    A bin is 1.0 when any allocated region touches it.
    """
    bins = np.zeros(width, dtype=np.float32)
    scale = alloc.total_size / width

    for r in alloc.snapshot():
        if r.is_free:
            continue
        a = int(r.start / scale)
        b = int(r.end / scale)
        a = max(0, min(width - 1, a))
        b = max(0, min(width - 1, b))
        bins[a : b + 1] = 1.0

    return bins


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--script", required=True, help="Path to a command script")
    ap.add_argument("--memory", type=int, default=1, help="Memory size in MB")
    ap.add_argument("--out", default="out_fragmentation.png", help="Output image file")
    ap.add_argument("--width", type=int, default=140, help="Heatmap width (bins)")
    args = ap.parse_args()

    script_path = Path(args.script)
    if not script_path.exists():
        raise SystemExit(f"Script not found: {script_path}")

    shell = AllocatorShell(args.memory * BYTES_PER_MB)

    frames: list[np.ndarray] = [render_state(shell.alloc, args.width)]
    compact_marks: list[int] = []

    for line in load_script(str(script_path)):
        _, done = shell.execute(line)
        if done:
            break
        if line.split()[0].upper() == "C":
            compact_marks.append(len(frames))
        frames.append(render_state(shell.alloc, args.width))

    H = np.stack(frames, axis=0)  # (time, width)

    fig = plt.figure(figsize=(10.5, 4.6))
    ax = fig.add_subplot(111)
    ax.imshow(H, aspect="auto", interpolation="nearest")
    ax.set_title("Address Space Occupancy (script replay)")
    ax.set_xlabel("address (binned)")
    ax.set_ylabel("time (commands)")

    for t in compact_marks:
        ax.axhline(t, linewidth=1)

    m = compute_metrics(shell.alloc.snapshot())
    caption = (
        f"Final fragmentation: LFE={m.lfe}, holes={m.hole_count}, "
        f"external_frag={m.external_frag:.3f}, entropy={m.entropy:.3f}"
    )
    fig.text(0.01, 0.01, caption, fontsize=9)

    fig.tight_layout()
    out_path = Path(args.out)
    fig.savefig(str(out_path), dpi=220)
    print(f"Wrote: {out_path.resolve()}")


if __name__ == "__main__":
    main()

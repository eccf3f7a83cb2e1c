from __future__ import annotations
import argparse
import subprocess
import sys
import re
import tempfile
from pathlib import Path
from typing import List

import numpy as np

PY = sys.executable  # respects venv if activated, otherwise uses current python
HERE = Path(__file__).resolve().parent

STRATEGIES = [
    ("F", "first fit"),
    ("B", "best fit"),
    ("W", "worst fit"),
]

PATTERNS = {
    "requests": re.compile(r"Requests:\s+(\d+)"),
    "failed": re.compile(r"Failed requests:\s+(\d+)"),
    "used": re.compile(r"Used:\s+(\d+)"),
    "regions": re.compile(r"Regions:\s+(\d+)"),
    "lfe": re.compile(r"Fragmentation: LFE=(\d+)"),
    "holes": re.compile(r"holes=(\d+)"),
    "external_frag": re.compile(r"external_frag=([0-9\.]+)"),
}

def make_workload(n_ops: int, memory_mb: int, seed: int=0) -> List[tuple]:
    """Random RQ/RL mix as (op, owner, size) tuples; the strategy is filled in per run."""
    rng = np.random.default_rng(seed)
    total = memory_mb * 1024 * 1024
    live: List[str] = []
    ops = []
    for i in range(n_ops):
        if live and rng.random() < 0.4:
            owner = live.pop(int(rng.integers(len(live))))
            ops.append(("RL", owner, 0))
        else:
            owner = f"P{i}"
            size = int(rng.integers(total // 64, total // 8))
            live.append(owner)
            ops.append(("RQ", owner, size))
    return ops

def write_script(ops: List[tuple], strategy: str, path: Path):
    with open(path, "w", encoding="utf-8") as f:
        for op, owner, size in ops:
            if op == "RQ":
                f.write(f"RQ {owner} {size} {strategy}\n")
            else:
                f.write(f"RL {owner}\n")

def run(script: Path, memory_mb: int) -> str:
    cmd = [PY, str(HERE / "run_allocator.py"), "--memory", str(memory_mb), "--script", str(script), "--summary"]
    return subprocess.check_output(cmd, stderr=subprocess.STDOUT, text=True)

def parse(out: str):
    def get(key, default=None):
        m = PATTERNS[key].search(out)
        return m.group(1) if m else default
    return {
        "requests": int(get("requests", 0)),
        "failed": int(get("failed", 0)),
        "used": int(get("used", 0)),
        "regions": int(get("regions", 0)),
        "lfe": int(get("lfe", 0)),
        "holes": int(get("holes", 0)),
        "external_frag": float(get("external_frag", 0.0)),
    }

def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--ops", type=int, default=400)
    ap.add_argument("--memory", type=int, default=16, help="MB")
    ap.add_argument("--seed", type=int, default=0)
    args = ap.parse_args()

    ops = make_workload(args.ops, args.memory, args.seed)
    rows = []
    with tempfile.TemporaryDirectory() as tmp:
        for letter, name in STRATEGIES:
            script = Path(tmp) / f"workload_{letter}.txt"
            write_script(ops, letter, script)
            rows.append((name, parse(run(script, args.memory))))

    header = ["strategy","requests","failed","MB_used","regions","LFE","holes","ext_frag"]
    print("="*86)
    print(f"Contiguous Allocator - Strategy Comparison ({args.ops} ops, {args.memory} MB, seed={args.seed})")
    print("="*86)
    print("{:<10} {:>9} {:>7} {:>9} {:>8} {:>10} {:>6} {:>9}".format(*header))
    for name, m in rows:
        print("{:<10} {:>9} {:>7} {:>9.3f} {:>8} {:>10} {:>6} {:>9.3f}".format(
            name, m["requests"], m["failed"], m["used"]/2**20, m["regions"], m["lfe"], m["holes"], m["external_frag"]
        ))
    print("="*86)
    print("Tip: replay a script by hand with an ASCII map on every STAT:")
    print("  python run_allocator.py --memory 1 --script traces/compaction_demo.txt --show-map --summary")

if __name__ == "__main__":
    main()

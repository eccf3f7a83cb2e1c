from __future__ import annotations
import argparse, logging, sys

from memory.fragmentation import compute_metrics
from shell.parser import BYTES_PER_MB
from shell.session import AllocatorShell, load_script
from viz.ascii_map import render_map

def print_summary(shell: AllocatorShell, show_map: bool=False):
    alloc=shell.alloc
    st=shell.stats
    m=compute_metrics(alloc.snapshot())
    print("="*72)
    print("Contiguous Allocator - Session Summary")
    print("="*72)
    print(f"Memory: {alloc.total_size}  Used: {alloc.used()}  Free: {alloc.free_bytes()}  Regions: {len(alloc)}")
    print(f"Requests: {st['requests']}  Failed requests: {st['failed_requests']}")
    print(f"Releases: {st['releases']}  Failed releases: {st['failed_releases']}  Bad commands: {st['bad_commands']}")
    print(f"Compactions: {st['compactions']}  Bytes moved: {st['bytes_moved']}")
    print("-"*72)
    print(f"Fragmentation: LFE={m.lfe} holes={m.hole_count} external_frag={m.external_frag:.3f} entropy={m.entropy:.3f}")
    if show_map:
        print("-"*72)
        print("Memory map (ASCII):")
        print(render_map(alloc.snapshot(), alloc.total_size))
    print("="*72)

def main(argv=None):
    ap=argparse.ArgumentParser(description="Contiguous memory allocation simulator (first/best/worst fit).")
    ap.add_argument('--memory', type=int, default=None,
                    help="Memory size in MB; prompts for it when omitted.")
    ap.add_argument('--script', default=None,
                    help="Replay commands from a file instead of reading stdin.")
    ap.add_argument('--compact-on-fail', action='store_true',
                    help="On an out-of-memory request, compact once and retry.")
    ap.add_argument('--show-map', action='store_true',
                    help="Append an ASCII memory map to STAT output.")
    ap.add_argument('--summary', action='store_true')
    ap.add_argument('--log-level', default='WARNING',
                    choices=['DEBUG','INFO','WARNING','ERROR'])
    args=ap.parse_args(argv)

    logging.basicConfig(level=args.log_level, stream=sys.stderr,
                        format="%(levelname)s %(name)s: %(message)s")

    if args.memory is not None and args.memory <= 0:
        ap.error("--memory must be a positive integer")
    total = args.memory*BYTES_PER_MB if args.memory is not None else None
    shell=AllocatorShell(total, compact_on_fail=args.compact_on_fail, show_map=args.show_map)

    if args.script:
        if shell.alloc is None:
            ap.error("--script needs --memory")
        shell.replay(load_script(args.script), sys.stdout)
    else:
        shell.run(sys.stdin, sys.stdout)

    if args.summary and shell.alloc is not None:
        print_summary(shell, args.show_map)
    return 0

if __name__=='__main__':
    sys.exit(main())

from __future__ import annotations
import logging
from typing import Dict, Iterable, List, Optional, TextIO, Tuple

from memory.allocator import AddressSpaceAllocator
from memory.errors import InvalidSize, OutOfMemory, OwnerNotFound
from shell.parser import CommandError, format_region, parse_command, parse_megabytes
from viz.ascii_map import render_map

log = logging.getLogger(__name__)

MEMORY_PROMPT = "Enter the initial amount of memory: "
COMMAND_PROMPT = "allocator>"

def load_script(path: str) -> Iterable[str]:
    """Yield command lines from a script file, skipping blanks and # comments."""
    with open(path,'r',encoding='utf-8') as f:
        for line in f:
            line=line.strip()
            if line and not line.startswith('#'):
                yield line

class AllocatorShell:
    def __init__(self, total_size: Optional[int]=None, compact_on_fail: bool=False,
                 show_map: bool=False):
        self.alloc: Optional[AddressSpaceAllocator] = None
        if total_size is not None:
            self.alloc = AddressSpaceAllocator(total_size)
        self.compact_on_fail = compact_on_fail
        self.show_map = show_map
        self.stats: Dict[str,int] = {
            'requests':0,'failed_requests':0,
            'releases':0,'failed_releases':0,
            'compactions':0,'bytes_moved':0,'bad_commands':0,
        }

    def _try_compact_then_alloc(self, cmd) -> None:
        try:
            self.alloc.allocate(cmd.owner, cmd.size, cmd.strategy)
            return
        except OutOfMemory:
            if not self.compact_on_fail:
                raise
        log.info("compacting before retrying %s (%d bytes)", cmd.owner, cmd.size)
        self._compact()
        self.alloc.allocate(cmd.owner, cmd.size, cmd.strategy)

    def _compact(self) -> None:
        self.stats['bytes_moved'] += self.alloc.compact()
        self.stats['compactions'] += 1

    def execute(self, line: str) -> Tuple[List[str], bool]:
        """Run one command line; return (output lines, quit requested)."""
        if self.alloc is None:
            raise RuntimeError("memory size has not been set")
        try:
            cmd = parse_command(line)
        except CommandError as e:
            self.stats['bad_commands'] += 1
            return [str(e)], False

        if cmd.kind == 'X':
            return [], True

        if cmd.kind == 'RQ':
            self.stats['requests'] += 1
            try:
                self._try_compact_then_alloc(cmd)
            except InvalidSize:
                self.stats['failed_requests'] += 1
                return ["Requested size must be greater than zero."], False
            except OutOfMemory:
                self.stats['failed_requests'] += 1
                return [f"Error: Not enough memory for process {cmd.owner}."], False
            return [], False

        if cmd.kind == 'RL':
            self.stats['releases'] += 1
            try:
                self.alloc.release(cmd.owner)
            except OwnerNotFound:
                self.stats['failed_releases'] += 1
                return [f"Error: Process {cmd.owner} not found."], False
            return [], False

        if cmd.kind == 'C':
            self._compact()
            return [], False

        regions = self.alloc.snapshot()
        out = [format_region(r) for r in regions]
        if self.show_map:
            out.append(render_map(regions, self.alloc.total_size))
        return out, False

    def read_memory_size(self, stdin: TextIO, stdout: TextIO) -> bool:
        while True:
            stdout.write(MEMORY_PROMPT)
            stdout.flush()
            line = stdin.readline()
            if not line:
                return False
            try:
                total = parse_megabytes(line)
            except CommandError as e:
                print(e, file=stdout)
                continue
            self.alloc = AddressSpaceAllocator(total)
            return True

    def run(self, stdin: TextIO, stdout: TextIO, prompt: bool=True) -> None:
        """Interactive loop: ends on X or end of input."""
        if self.alloc is None and not self.read_memory_size(stdin, stdout):
            return
        while True:
            if prompt:
                stdout.write(COMMAND_PROMPT)
                stdout.flush()
            line = stdin.readline()
            if not line:
                break
            if not line.strip():
                continue
            out, done = self.execute(line)
            for text in out:
                print(text, file=stdout)
            if done:
                break

    def replay(self, lines: Iterable[str], stdout: TextIO) -> None:
        for line in lines:
            out, done = self.execute(line)
            for text in out:
                print(text, file=stdout)
            if done:
                break

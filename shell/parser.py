"""Text surface of the allocator: command lines in, status lines out.

Commands (the command word is case-insensitive):

    RQ <owner> <bytes> <F|B|W>   request memory with first/best/worst fit
    RL <owner>                   release every region held by <owner>
    C                            compact
    STAT                         one status line per region
    X                            quit
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from memory.allocator import Region
from policy.placement import Strategy

BYTES_PER_MB = 1024 * 1024

class CommandError(ValueError):
    pass

class InvalidCommandSyntax(CommandError):
    pass

class InvalidStrategy(CommandError):
    pass

@dataclass
class Command:
    kind: str   # RQ/RL/C/STAT/X
    owner: Optional[str] = None
    size: Optional[int] = None
    strategy: Optional[Strategy] = None

def parse_command(line: str) -> Command:
    tokens = line.split()
    if not tokens:
        raise InvalidCommandSyntax("empty command")
    word = tokens[0].upper()

    if word == 'RQ':
        if len(tokens) != 4:
            raise InvalidCommandSyntax("Invalid RQ command. Usage: RQ <ProcessId> <Bytes> <F|B|W>")
        try:
            size = int(tokens[2])
        except ValueError:
            raise InvalidCommandSyntax("Invalid size value. Please enter an integer number of bytes.") from None
        try:
            strategy = Strategy.parse(tokens[3])
        except ValueError:
            raise InvalidStrategy("Invalid strategy. Use F, B, or W.") from None
        return Command('RQ', tokens[1], size, strategy)

    if word == 'RL':
        if len(tokens) != 2:
            raise InvalidCommandSyntax("Invalid RL command. Usage: RL <ProcessId>")
        return Command('RL', tokens[1])

    if word in ('C', 'STAT', 'X'):
        return Command(word)

    raise InvalidCommandSyntax("Invalid command. Please enter RQ, RL, C, STAT, or X.")

def parse_megabytes(text: str) -> int:
    """Convert the first token of `text` (a positive MB count) to bytes."""
    tokens = text.split()
    if not tokens:
        raise CommandError("Invalid input. Please enter a positive integer value.")
    try:
        mb = int(tokens[0])
    except ValueError:
        raise CommandError("Invalid input. Please enter a positive integer value.") from None
    if mb <= 0:
        raise CommandError("Invalid amount. Please enter a positive integer value.")
    return mb * BYTES_PER_MB

def format_region(r: Region) -> str:
    if r.is_free:
        return f"Addresses [{r.start}:{r.end}] Unused"
    return f"Addresses [{r.start}:{r.end}] Process {r.owner}"

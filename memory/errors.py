from __future__ import annotations

class AllocatorError(Exception):
    """Base class for every recoverable allocator failure."""

class InvalidSize(AllocatorError, ValueError):
    pass

class InvalidOwner(AllocatorError, ValueError):
    pass

class OutOfMemory(AllocatorError):
    def __init__(self, owner: str, size: int):
        super().__init__(f"no free region of {size} bytes for {owner}")
        self.owner = owner
        self.size = size

class OwnerNotFound(AllocatorError, LookupError):
    def __init__(self, owner: str):
        super().__init__(f"{owner} holds no allocated region")
        self.owner = owner

"""Tests for the contiguous address-space allocator."""

import random

import pytest

from memory.allocator import AddressSpaceAllocator, Region
from memory.errors import AllocatorError, InvalidOwner, InvalidSize, OutOfMemory, OwnerNotFound
from policy.placement import Strategy

ONE_MB = 1024 * 1024


def assert_well_formed(alloc: AddressSpaceAllocator) -> None:
    regions = alloc.snapshot()
    assert regions[0].start == 0
    assert regions[-1].end == alloc.total_size - 1
    for r in regions:
        assert r.size >= 1
    for a, b in zip(regions, regions[1:]):
        assert a.end + 1 == b.start
        assert not (a.is_free and b.is_free)


def layout(alloc: AddressSpaceAllocator):
    return [(r.start, r.end, r.owner) for r in alloc.snapshot()]


def with_holes(total: int, sizes, spacer: int = 10) -> AddressSpaceAllocator:
    """Allocator whose free holes have the given sizes, separated by small allocations."""
    alloc = AddressSpaceAllocator(total)
    for i, size in enumerate(sizes):
        alloc.allocate(f"hole{i}", size)
        alloc.allocate(f"keep{i}", spacer)
    alloc.allocate("rest", alloc.free_bytes())
    for i in range(len(sizes)):
        alloc.release(f"hole{i}")
    return alloc


class TestRegion:
    def test_size_is_inclusive(self) -> None:
        assert Region(0, 0).size == 1
        assert Region(10, 19, "P1").size == 10

    def test_free_when_unowned(self) -> None:
        assert Region(0, 5).is_free
        assert not Region(0, 5, "P1").is_free

    def test_rejects_inverted_range(self) -> None:
        with pytest.raises(InvalidSize):
            Region(5, 4)

    def test_rejects_negative_start(self) -> None:
        with pytest.raises(InvalidSize):
            Region(-1, 4)

    def test_rejects_empty_owner(self) -> None:
        with pytest.raises(InvalidOwner):
            Region(0, 4, "")


class TestConstruction:
    def test_single_free_region(self) -> None:
        alloc = AddressSpaceAllocator(1000)
        assert layout(alloc) == [(0, 999, None)]
        assert alloc.free_bytes() == 1000
        assert alloc.used() == 0

    @pytest.mark.parametrize("size", [0, -1])
    def test_non_positive_size(self, size) -> None:
        with pytest.raises(InvalidSize):
            AddressSpaceAllocator(size)

    def test_errors_share_a_base(self) -> None:
        with pytest.raises(AllocatorError):
            AddressSpaceAllocator(0)


class TestAllocate:
    def test_split_leaves_free_remainder(self) -> None:
        alloc = AddressSpaceAllocator(1000)
        placed = alloc.allocate("P1", 100)
        assert placed == Region(0, 99, "P1")
        assert layout(alloc) == [(0, 99, "P1"), (100, 999, None)]

    def test_exact_fit_consumes_hole(self) -> None:
        alloc = AddressSpaceAllocator(1000)
        alloc.allocate("P1", 1000)
        assert layout(alloc) == [(0, 999, "P1")]
        assert alloc.free_bytes() == 0

    def test_strategy_letter_accepted(self) -> None:
        alloc = with_holes(1000, [300, 100, 200])
        placed = alloc.allocate("X", 150, "b")
        assert placed.start == 420

    def test_first_fit_takes_lowest_address(self) -> None:
        alloc = with_holes(1000, [100, 50, 100])
        assert alloc.allocate("X", 40, Strategy.FIRST_FIT).start == 0

    def test_best_fit_takes_smallest_hole(self) -> None:
        alloc = with_holes(1000, [300, 100, 200])
        placed = alloc.allocate("X", 150, Strategy.BEST_FIT)
        assert (placed.start, placed.end) == (420, 569)
        assert_well_formed(alloc)

    def test_worst_fit_takes_largest_hole(self) -> None:
        alloc = with_holes(1000, [300, 100, 200])
        placed = alloc.allocate("X", 150, Strategy.WORST_FIT)
        assert (placed.start, placed.end) == (0, 149)

    def test_best_fit_tie_goes_to_lowest_address(self) -> None:
        alloc = with_holes(1000, [100, 50, 100])
        assert alloc.allocate("X", 60, Strategy.BEST_FIT).start == 0

    def test_worst_fit_tie_goes_to_lowest_address(self) -> None:
        alloc = with_holes(1000, [100, 50, 100])
        assert alloc.allocate("X", 40, Strategy.WORST_FIT).start == 0

    def test_out_of_memory_leaves_state(self) -> None:
        alloc = with_holes(1000, [300, 100, 200])
        before = layout(alloc)
        with pytest.raises(OutOfMemory) as exc:
            alloc.allocate("big", 301, Strategy.WORST_FIT)
        assert exc.value.owner == "big"
        assert exc.value.size == 301
        assert layout(alloc) == before

    @pytest.mark.parametrize("size", [0, -5])
    def test_non_positive_request(self, size) -> None:
        alloc = AddressSpaceAllocator(1000)
        with pytest.raises(InvalidSize):
            alloc.allocate("P1", size)
        assert layout(alloc) == [(0, 999, None)]

    def test_empty_owner(self) -> None:
        alloc = AddressSpaceAllocator(1000)
        with pytest.raises(InvalidOwner):
            alloc.allocate("", 10)

    def test_same_owner_many_regions(self) -> None:
        alloc = AddressSpaceAllocator(1000)
        alloc.allocate("P1", 100)
        alloc.allocate("P2", 100)
        alloc.allocate("P1", 100)
        assert layout(alloc) == [(0, 99, "P1"), (100, 199, "P2"), (200, 299, "P1"), (300, 999, None)]
        assert alloc.owners() == ["P1", "P2"]


class TestRelease:
    def test_releases_every_region_of_owner(self) -> None:
        alloc = AddressSpaceAllocator(1000)
        alloc.allocate("P1", 100)
        alloc.allocate("P2", 100)
        alloc.allocate("P1", 100)
        freed = alloc.release("P1")
        assert [(r.start, r.end) for r in freed] == [(0, 99), (200, 299)]
        assert layout(alloc) == [(0, 99, None), (100, 199, "P2"), (200, 999, None)]
        assert not alloc.owns("P1")

    def test_merges_chain_of_holes(self) -> None:
        alloc = AddressSpaceAllocator(1000)
        for owner in ("A", "B", "C"):
            alloc.allocate(owner, 100)
        alloc.release("A")
        alloc.release("C")
        assert layout(alloc) == [(0, 99, None), (100, 199, "B"), (200, 999, None)]
        alloc.release("B")
        assert layout(alloc) == [(0, 999, None)]

    def test_unknown_owner_leaves_state(self) -> None:
        alloc = AddressSpaceAllocator(1000)
        alloc.allocate("P1", 100)
        before = layout(alloc)
        with pytest.raises(OwnerNotFound):
            alloc.release("P9")
        assert layout(alloc) == before

    def test_release_twice_fails_second_time(self) -> None:
        alloc = AddressSpaceAllocator(1000)
        alloc.allocate("P1", 100)
        alloc.release("P1")
        with pytest.raises(OwnerNotFound):
            alloc.release("P1")

    def test_allocate_then_release_restores_layout(self) -> None:
        alloc = AddressSpaceAllocator(1000)
        alloc.allocate("P1", 100)
        before = alloc.snapshot()
        alloc.allocate("X", 50, Strategy.BEST_FIT)
        alloc.release("X")
        assert alloc.snapshot() == before


class TestCompact:
    def test_compaction_scenario(self) -> None:
        alloc = AddressSpaceAllocator(ONE_MB)
        alloc.allocate("P1", 300000)
        alloc.allocate("P2", 200000)
        alloc.release("P1")
        alloc.allocate("P3", 100000)
        assert layout(alloc) == [
            (0, 99999, "P3"),
            (100000, 299999, None),
            (300000, 499999, "P2"),
            (500000, ONE_MB - 1, None),
        ]
        moved = alloc.compact()
        assert moved == 200000
        assert layout(alloc) == [
            (0, 99999, "P3"),
            (100000, 299999, "P2"),
            (300000, ONE_MB - 1, None),
        ]

    def test_full_memory_has_no_trailing_hole(self) -> None:
        alloc = AddressSpaceAllocator(300)
        alloc.allocate("A", 100)
        alloc.allocate("B", 200)
        assert alloc.compact() == 0
        assert layout(alloc) == [(0, 99, "A"), (100, 299, "B")]

    def test_compacts_after_release_to_full(self) -> None:
        alloc = AddressSpaceAllocator(300)
        alloc.allocate("A", 100)
        alloc.allocate("B", 100)
        alloc.allocate("C", 100)
        alloc.release("B")
        alloc.compact()
        assert layout(alloc) == [(0, 99, "A"), (100, 199, "C"), (200, 299, None)]

    def test_empty_space_is_unchanged(self) -> None:
        alloc = AddressSpaceAllocator(1000)
        assert alloc.compact() == 0
        assert layout(alloc) == [(0, 999, None)]

    def test_idempotent(self) -> None:
        alloc = with_holes(1000, [300, 100, 200])
        alloc.compact()
        once = alloc.snapshot()
        assert alloc.compact() == 0
        assert alloc.snapshot() == once

    def test_keeps_owner_order_and_sizes(self) -> None:
        alloc = with_holes(1000, [300, 100, 200])
        before = [(r.owner, r.size) for r in alloc.snapshot() if not r.is_free]
        alloc.compact()
        after = [(r.owner, r.size) for r in alloc.snapshot() if not r.is_free]
        assert after == before
        assert alloc.extents_free() == [(alloc.used(), alloc.free_bytes())]


class TestQueries:
    def test_snapshot_is_a_copy(self) -> None:
        alloc = AddressSpaceAllocator(1000)
        snap = alloc.snapshot()
        snap.clear()
        assert len(alloc) == 1

    def test_free_extents(self) -> None:
        alloc = with_holes(1000, [300, 100, 200])
        assert alloc.extents_free() == [(0, 300), (310, 100), (420, 200)]
        assert alloc.largest_free_extent() == 300

    def test_largest_free_extent_when_full(self) -> None:
        alloc = AddressSpaceAllocator(10)
        alloc.allocate("P1", 10)
        assert alloc.largest_free_extent() == 0


class TestRandomSequences:
    @pytest.mark.parametrize("seed", range(5))
    def test_invariants_hold(self, seed) -> None:
        rng = random.Random(seed)
        alloc = AddressSpaceAllocator(4096)
        owners = [f"P{i}" for i in range(8)]
        for _ in range(400):
            op = rng.random()
            if op < 0.55:
                try:
                    alloc.allocate(rng.choice(owners), rng.randint(1, 700), rng.choice(list(Strategy)))
                except OutOfMemory:
                    pass
            elif op < 0.9:
                try:
                    alloc.release(rng.choice(owners))
                except OwnerNotFound:
                    pass
            else:
                alloc.compact()
                assert len(alloc.extents_free()) <= 1
            assert_well_formed(alloc)
            assert alloc.used() + alloc.free_bytes() == 4096


class TestReleaseEdgeCases:
    @pytest.mark.parametrize("owner", [None, ""])
    def test_blank_owner_never_matches_free_space(self, owner) -> None:
        alloc = AddressSpaceAllocator(1000)
        with pytest.raises(OwnerNotFound):
            alloc.release(owner)
        assert layout(alloc) == [(0, 999, None)]

"""Search for the first key not less than a value in a fixed-size node."""

from __future__ import annotations

import bisect
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field

from bplusnodes.ints import IntKind

BlockSearch = Callable[[Sequence[int], int], int]


def _is_power_of_two(n: int) -> bool:
    return n > 0 and n & (n - 1) == 0


@dataclass(frozen=True)
class SearchBackend:
    """A search strategy: per-kind block widths, key biases and block kernels.

    A kernel receives a block of ``width`` keys and returns how many of them
    are less than the searched value. Kinds without an entry use a width of
    one, no bias, and no kernel.
    """

    name: str
    widths: Mapping[IntKind, int] = field(default_factory=dict)
    biases: Mapping[IntKind, int] = field(default_factory=dict)
    kernels: Mapping[IntKind, BlockSearch] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for kind, width in self.widths.items():
            if not _is_power_of_two(width):
                raise ValueError(f"width for {kind.name} must be a power of 2, got {width}")
            if width != 1 and kind not in self.kernels:
                raise ValueError(f"width {width} for {kind.name} needs a block kernel")
        for kind in self.kernels:
            if self.width(kind) == 1:
                raise ValueError(f"kernel for {kind.name} needs a width above 1")

    def width(self, kind: IntKind) -> int:
        """Number of keys the block kernel processes at once."""
        return self.widths.get(kind, 1)

    def bias(self, kind: IntKind) -> int:
        """Value added to keys before storing them so comparisons stay ordered."""
        return kind.wrap(self.biases.get(kind, 0))

    def bias_cmp(self, kind: IntKind, a: int, b: int) -> int:
        """Compare two stored keys, returning -1, 0 or 1."""
        bias = self.bias(kind)
        left = kind.wrapping_add(a, bias)
        right = kind.wrapping_add(b, bias)
        return (left > right) - (left < right)

    def block_search(self, kind: IntKind, keys: Sequence[int], search: int) -> int:
        """Index of the first key in a block of ``width`` keys not less than ``search``."""
        width = self.width(kind)
        if len(keys) != width:
            raise ValueError(f"block must hold {width} keys, got {len(keys)}")
        kernel = self.kernels.get(kind)
        if kernel is not None:
            return kernel(keys, search)
        if self.bias_cmp(kind, search, keys[0]) > 0:
            raise ValueError("searched value is above the last key of the block")
        return 0

    def search(self, kind: IntKind, keys: Sequence[int], search: int) -> int:
        """Index of the first key not less than ``search``.

        The last key must hold the maximum value, so the result is always
        below ``len(keys)``.
        """
        length = len(keys)
        width = self.width(kind)
        if length < 2:
            raise ValueError("at least 2 keys are required")
        if not _is_power_of_two(length):
            raise ValueError(f"key count must be a power of 2, got {length}")
        if length < width:
            raise ValueError(f"key count {length} is below the block width {width}")

        base = 0
        # Checking the last key of the first half works because the length is
        # a power of two and the final key is the maximum value.
        while length > width:
            mid = base + length // 2
            if self.bias_cmp(kind, search, keys[mid - 1]) > 0:
                base = mid
            length //= 2

        return base + self.block_search(kind, keys[base : base + width], search)


def fallback() -> SearchBackend:
    """The portable backend: plain binary search down to a single key."""
    return SearchBackend("fallback")


def generic_search(
    backend: SearchBackend, kind: IntKind, keys: Sequence[int], search: int
) -> int:
    """Reference partition-point search over all keys but the last."""
    bias = backend.bias(kind)
    target = kind.wrapping_add(search, bias)
    return bisect.bisect_left(
        keys, target, 0, len(keys) - 1, key=lambda k: kind.wrapping_add(k, bias)
    )
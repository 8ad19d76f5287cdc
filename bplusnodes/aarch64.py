"""Search backends matching the AArch64 vector extensions.

Both compare in the key's own signedness, so no key bias is needed. NEON
reduces its comparison mask to the position of the first key that is not
less than the searched value. SVE counts the keys below it.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from bplusnodes.ints import IntKind
from bplusnodes.search import BlockSearch, SearchBackend

# Block widths per key width in bits: four 128-bit vectors per block.
_WIDTHS_BY_BITS = {8: 64, 16: 32, 32: 16, 64: 8}


def _first_not_less_kernel(kind: IntKind) -> BlockSearch:
    """Kernel returning the index of the first key not below the searched value."""

    def kernel(keys: Sequence[int], search: int) -> int:
        target = kind.wrap(search)
        return next(
            (index for index, key in enumerate(keys) if kind.wrap(key) >= target),
            len(keys),
        )

    return kernel


def _counting_kernel(kind: IntKind) -> BlockSearch:
    """Kernel counting every key in the block below the searched value."""

    def kernel(keys: Sequence[int], search: int) -> int:
        target = kind.wrap(search)
        return sum(1 for key in keys if kind.wrap(key) < target)

    return kernel


def _backend(name: str, make_kernel: Callable[[IntKind], BlockSearch]) -> SearchBackend:
    widths = {
        kind: _WIDTHS_BY_BITS[kind.bits] for kind in IntKind if kind.bits in _WIDTHS_BY_BITS
    }
    kernels = {kind: make_kernel(kind) for kind in widths}
    return SearchBackend(name, widths=widths, kernels=kernels)


def neon() -> SearchBackend:
    """NEON backend: greater-or-equal mask reduced to its first set lane."""
    return _backend("neon", _first_not_less_kernel)


def sve() -> SearchBackend:
    """SVE backend: less-than predicates whose active lanes are counted."""
    return _backend("sve", _counting_kernel)
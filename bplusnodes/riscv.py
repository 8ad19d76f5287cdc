"""Search backend matching the RISC-V vector extension.

The vector unit compares in the key's own signedness and counts the keys
below the searched value, so no key bias is needed.
"""

from __future__ import annotations

from collections.abc import Sequence

from bplusnodes.ints import KEYS_BYTES, IntKind
from bplusnodes.search import BlockSearch, SearchBackend


def _counting_kernel(kind: IntKind) -> BlockSearch:
    """Kernel counting every key in the block below the searched value."""

    def kernel(keys: Sequence[int], search: int) -> int:
        target = kind.wrap(search)
        return sum(1 for key in keys if kind.wrap(key) < target)

    return kernel


def rvv() -> SearchBackend:
    """RVV backend: a whole node's keys compared in one vector pass."""
    widths = {kind: KEYS_BYTES // kind.size for kind in IntKind if kind.bits <= 64}
    kernels = {kind: _counting_kernel(kind) for kind in widths}
    return SearchBackend("rvv", widths=widths, kernels=kernels)
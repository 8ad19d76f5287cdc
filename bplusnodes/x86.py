"""Search backends matching the x86 vector instruction set levels.

Each backend fixes how many keys a block kernel compares at once and
whether unsigned keys are stored with a bias. The bias lets a signed
comparison order unsigned keys correctly.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from itertools import takewhile

from bplusnodes.ints import IntKind
from bplusnodes.search import BlockSearch, SearchBackend

_SIGNED_BY_BITS = {
    8: IntKind.I8,
    16: IntKind.I16,
    32: IntKind.I32,
    64: IntKind.I64,
    128: IntKind.I128,
}

_UNSIGNED_BY_BITS = {
    8: IntKind.U8,
    16: IntKind.U16,
    32: IntKind.U32,
    64: IntKind.U64,
    128: IntKind.U128,
}


def _converter(kind: IntKind, signed_compare: bool) -> Callable[[int], int]:
    """Reinterpret stored bits as signed, or as the kind's own type."""
    target = _SIGNED_BY_BITS[kind.bits] if signed_compare else kind
    return target.wrap


def _counting_kernel(kind: IntKind, signed_compare: bool) -> BlockSearch:
    """Kernel that counts every key in the block below the searched value."""
    convert = _converter(kind, signed_compare)

    def kernel(keys: Sequence[int], search: int) -> int:
        target = convert(search)
        return sum(1 for key in keys if target > convert(key))

    return kernel


def _half_run_kernel(kind: IntKind, signed_compare: bool) -> BlockSearch:
    """Kernel that counts the leading run of smaller keys in each half block."""
    convert = _converter(kind, signed_compare)

    def leading(keys: Iterable[int], target: int) -> int:
        return sum(1 for _ in takewhile(lambda key: target > convert(key), keys))

    def kernel(keys: Sequence[int], search: int) -> int:
        target = convert(search)
        half = len(keys) // 2
        return leading(keys[:half], target) + leading(keys[half:], target)

    return kernel


def _backend(
    name: str,
    widths_by_bits: dict[int, int],
    biased: bool,
    signed_compare: bool,
    make_kernel: Callable[[IntKind, bool], BlockSearch],
) -> SearchBackend:
    widths: dict[IntKind, int] = {}
    biases: dict[IntKind, int] = {}
    kernels: dict[IntKind, BlockSearch] = {}
    for bits, width in widths_by_bits.items():
        for kind in (_UNSIGNED_BY_BITS[bits], _SIGNED_BY_BITS[bits]):
            widths[kind] = width
            # Signed comparisons on unsigned kinds only hold with a bias.
            compare_signed = signed_compare or kind.signed
            kernels[kind] = make_kernel(kind, compare_signed)
            if biased and not kind.signed:
                biases[kind] = _SIGNED_BY_BITS[bits].min
    return SearchBackend(name, widths=widths, biases=biases, kernels=kernels)


def avx512() -> SearchBackend:
    """AVX-512 backend: unsigned compares, so no key bias is needed."""
    return _backend(
        "avx512",
        {8: 128, 16: 64, 32: 32, 64: 16},
        biased=False,
        signed_compare=False,
        make_kernel=_counting_kernel,
    )


def avx2() -> SearchBackend:
    """AVX2 backend: signed compares with biased unsigned keys."""
    return _backend(
        "avx2",
        {8: 128, 16: 64, 32: 32, 64: 16},
        biased=True,
        signed_compare=True,
        make_kernel=_counting_kernel,
    )


def sse2_popcnt(sse42: bool = False) -> SearchBackend:
    """SSE2 with population count; 64-bit keys need SSE4.2 compares."""
    widths = {8: 64, 16: 32, 32: 16}
    if sse42:
        widths[64] = 8
    return _backend(
        "sse2_popcnt",
        widths,
        biased=True,
        signed_compare=True,
        make_kernel=_counting_kernel,
    )


def sse2(sse42: bool = False) -> SearchBackend:
    """Plain SSE2: two vector compares, each reduced by its leading run."""
    widths = {8: 32, 16: 16, 32: 8}
    if sse42:
        widths[64] = 4
    return _backend(
        "sse2",
        widths,
        biased=True,
        signed_compare=True,
        make_kernel=_half_run_kernel,
    )
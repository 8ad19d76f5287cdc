import pytest

from bplusnodes.ints import KEYS_BYTES, IntKind
from bplusnodes.search import SearchBackend, fallback, generic_search


def _counting_kernel(kind, backend_bias):
    def kernel(keys, search):
        adjusted = kind.wrapping_add(search, backend_bias)
        return sum(1 for k in keys if kind.wrapping_add(k, backend_bias) < adjusted)

    return kernel


def _biased_backend():
    widths = {}
    biases = {}
    kernels = {}
    for kind in IntKind:
        if kind.bits == 128:
            continue
        widths[kind] = KEYS_BYTES // kind.size // 4
        bias = kind.wrap(1 << (kind.bits - 1)) if not kind.signed else 0
        biases[kind] = bias
        kernels[kind] = _counting_kernel(kind, kind.wrap(bias))
    return SearchBackend("test", widths=widths, biases=biases, kernels=kernels)


def _run_search_case(backend, kind):
    bias = backend.bias(kind)

    def encode(i):
        return kind.wrapping_add(kind.wrap(i), bias)

    length = KEYS_BYTES // kind.size
    keys = [encode(i & ~1) for i in range(length)]
    keys[length - 1] = kind.wrapping_add(kind.max, bias)
    for i in range(length):
        expected = generic_search(backend, kind, keys, encode(i))
        assert backend.search(kind, keys, encode(i)) == expected


@pytest.mark.parametrize("kind", list(IntKind))
def test_search_fallback(kind):
    _run_search_case(fallback(), kind)


@pytest.mark.parametrize("kind", list(IntKind))
def test_search_with_blocks_and_bias(kind):
    _run_search_case(_biased_backend(), kind)


def test_search_pinned_positions():
    backend = fallback()
    kind = IntKind.U32
    keys = [i & ~1 for i in range(32)]
    keys[31] = kind.max
    assert backend.search(kind, keys, 3) == 4
    assert backend.search(kind, keys, 4) == 4
    assert backend.search(kind, keys, 0) == 0
    assert backend.search(kind, keys, kind.max) == 31


def test_fallback_defaults():
    backend = fallback()
    assert backend.width(IntKind.U16) == 1
    assert backend.bias(IntKind.U16) == 0


def test_bias_cmp_orders_biased_values():
    backend = _biased_backend()
    kind = IntKind.U8
    bias = backend.bias(kind)
    low = kind.wrapping_add(1, bias)
    high = kind.wrapping_add(200, bias)
    assert backend.bias_cmp(kind, low, high) == -1
    assert backend.bias_cmp(kind, high, low) == 1
    assert backend.bias_cmp(kind, low, low) == 0


def test_search_rejects_non_power_of_two():
    with pytest.raises(ValueError):
        fallback().search(IntKind.U32, [0, 1, IntKind.U32.max], 1)


def test_search_rejects_too_few_keys():
    with pytest.raises(ValueError):
        fallback().search(IntKind.U32, [IntKind.U32.max], 1)


def test_search_rejects_keys_shorter_than_width():
    backend = _biased_backend()
    with pytest.raises(ValueError):
        backend.search(IntKind.U8, [0, IntKind.U8.max], 0)


def test_wide_block_without_kernel_is_rejected():
    with pytest.raises(ValueError):
        SearchBackend("broken", widths={IntKind.U32: 8})


def test_width_must_be_power_of_two():
    with pytest.raises(ValueError):
        SearchBackend("broken", widths={IntKind.U32: 3}, kernels={IntKind.U32: len})


def test_block_search_rejects_wrong_block_size():
    with pytest.raises(ValueError):
        fallback().block_search(IntKind.U32, [1, 2], 1)


def test_generic_search_ignores_last_key():
    backend = fallback()
    kind = IntKind.I16
    keys = [-5, -1, 3, kind.max]
    assert generic_search(backend, kind, keys, kind.max) == 3
    assert generic_search(backend, kind, keys, -1) == 1
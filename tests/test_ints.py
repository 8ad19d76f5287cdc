import pytest

from bplusnodes.ints import KEYS_BYTES, IntKind
from bplusnodes.search import fallback


@pytest.mark.parametrize("kind", list(IntKind))
def test_wrap_keeps_values_in_range(kind):
    for value in (kind.min, kind.max, 0, 1, kind.max // 2):
        assert IntKind.wrap(kind, value) == value


@pytest.mark.parametrize("kind", list(IntKind))
def test_wrap_overflow_goes_round(kind):
    assert IntKind.wrap(kind, kind.max + 1) == kind.min
    assert IntKind.wrap(kind, kind.min - 1) == kind.max


@pytest.mark.parametrize("kind", list(IntKind))
def test_wrap_is_idempotent(kind):
    for value in (-(1 << 200), -5, 7, 1 << 130, kind.max * 3):
        once = IntKind.wrap(kind, value)
        assert IntKind.wrap(kind, once) == once
        assert kind.min <= once <= kind.max


@pytest.mark.parametrize("kind", list(IntKind))
def test_wrapping_add_overflow(kind):
    assert IntKind.wrapping_add(kind, kind.max, 1) == kind.min
    assert IntKind.wrapping_add(kind, kind.min, -1) == kind.max


@pytest.mark.parametrize("kind", list(IntKind))
def test_adding_half_range_twice_is_identity(kind):
    half = IntKind.wrap(kind, 1 << (kind.bits - 1))
    for value in (kind.min, kind.max, 0, 3):
        once = IntKind.wrapping_add(kind, value, half)
        assert IntKind.wrapping_add(kind, once, half) == value


@pytest.mark.parametrize("kind", list(IntKind))
def test_wrapping_add_commutes(kind):
    a, b = kind.max - 2, IntKind.wrap(kind, 9)
    assert IntKind.wrapping_add(kind, a, b) == IntKind.wrapping_add(kind, b, a)


@pytest.mark.parametrize("kind", list(IntKind))
def test_keys_per_node_fills_key_array(kind):
    assert kind.keys_per_node * kind.size == KEYS_BYTES
    keys = [kind.max] * kind.keys_per_node
    assert fallback().search(kind, keys, kind.min) == 0


def test_known_limits():
    assert IntKind.U8.max == 255
    assert IntKind.I8.min == -128
    assert IntKind.U64.size == 8
    assert IntKind.wrap(IntKind.U8, 256) == 0
    assert IntKind.wrap(IntKind.I8, 128) == -128


def test_wrap_rejects_non_integers():
    with pytest.raises(TypeError):
        IntKind.U32.wrap(1.5)
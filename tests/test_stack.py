import pytest

from bplusnodes.ints import IntKind
from bplusnodes.node import NodePos, NodeRef
from bplusnodes.stack import Height, Stack, max_height


def test_max_height_positive():
    for kind in IntKind:
        assert max_height(kind) >= 1


def test_max_height_default_node_size():
    assert max_height(IntKind.U16) == max_height(IntKind.U16, IntKind.U16.keys_per_node)


def test_max_height_shrinks_with_wider_nodes():
    heights = [max_height(IntKind.U32, b) for b in (4, 8, 16, 32)]
    assert heights == sorted(heights, reverse=True)
    assert heights[0] > heights[-1]


def test_height_max_matches_function():
    assert Height.max(IntKind.U64, 16).height == max_height(IntKind.U64, 16)


def test_leaf_has_no_level_below():
    assert Height.leaf().down() is None


def test_up_and_down_round_trip():
    limit = Height.max(IntKind.U32)
    up = Height.leaf().up(limit)
    assert up == Height(1)
    assert up.down() == Height.leaf()


def test_up_stops_at_limit():
    limit = Height(2)
    assert Height(2).up(limit) is None
    assert Height(3).up(limit) is None
    assert Height(1).up(limit) == limit


def test_negative_height_raises():
    with pytest.raises(ValueError):
        Height(-1)


def test_stack_length_is_max_height():
    stack = Stack(IntKind.U32, 32)
    assert len(stack) == max_height(IntKind.U32, 32)


def test_stack_default_entries():
    stack = Stack(IntKind.U32, 32)
    assert stack[Height.leaf()] == (NodeRef(0), NodePos(0, 32))


def test_stack_set_and_get():
    stack = Stack(IntKind.U32, 32)
    stack[Height(1)] = (NodeRef(64), NodePos(3, 32))
    assert stack[Height(1)] == (NodeRef(64), NodePos(3, 32))
    assert stack[Height.leaf()] == (NodeRef(0), NodePos(0, 32))


def test_stack_index_at_max_raises():
    stack = Stack(IntKind.U32, 32)
    with pytest.raises(IndexError):
        stack[Height.max(IntKind.U32, 32)]


def test_stack_rejects_plain_int_index():
    with pytest.raises(TypeError):
        Stack(IntKind.U32, 32)[0]


def test_stack_rejects_position_of_other_node_size():
    stack = Stack(IntKind.U32, 32)
    with pytest.raises(ValueError):
        stack[Height.leaf()] = (NodeRef(0), NodePos(0, 8))


def test_stack_copy_is_independent():
    stack = Stack(IntKind.U8)
    clone = stack.copy()
    clone[Height.leaf()] = (NodeRef(8), NodePos(1, stack.b))
    assert stack[Height.leaf()] == (NodeRef(0), NodePos(0, stack.b))
    assert clone[Height.leaf()] == (NodeRef(8), NodePos(1, stack.b))
    assert len(clone) == len(stack)
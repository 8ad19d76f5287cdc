"""Positions, references and memory layout of tree nodes.

Every node holds ``b`` keys and ``b`` value slots. A leaf node additionally
holds a reference to the next leaf, stored in the space of its last value
slot, which is only ever used temporarily during insertion.
"""

from __future__ import annotations

from dataclasses import dataclass

# Largest size a node pool may reach. References are stored as 32-bit
# offsets, with the all-ones value reserved as an absent marker.
MAX_POOL_SIZE = (1 << 32) - 1

# Size and alignment of a stored node reference.
NODE_REF_SIZE = 4
NODE_REF_ALIGN = 4


class PoolCapacityError(MemoryError):
    """Raised when a node pool would grow beyond its maximum size."""

    def __init__(self, message: str = "exceeded maximum node pool size") -> None:
        super().__init__(message)


@dataclass(frozen=True, order=True)
class NodePos:
    """A position within a node holding ``b`` keys, always below ``b``."""

    index: int
    b: int

    def __post_init__(self) -> None:
        if self.b <= 0:
            raise ValueError(f"node size must be positive, got {self.b}")
        if not 0 <= self.index < self.b:
            raise IndexError(f"position {self.index} outside node of {self.b} keys")

    def __index__(self) -> int:
        return self.index

    def next(self) -> NodePos:
        """The position after this one."""
        if self.index + 1 >= self.b:
            raise IndexError("no position after the last slot of a node")
        return NodePos(self.index + 1, self.b)

    def prev(self) -> NodePos:
        """The position before this one."""
        if self.index == 0:
            raise IndexError("no position before the first slot of a node")
        return NodePos(self.index - 1, self.b)

    def split_right_half(self) -> NodePos | None:
        """The matching position in the new node if this one moves on a split."""
        half = self.b // 2
        if self.index >= half:
            return NodePos(self.index - half, self.b)
        return None


@dataclass(frozen=True)
class NodeRef:
    """A byte offset of a node within the pool it was allocated from."""

    offset: int

    def __post_init__(self) -> None:
        if not isinstance(self.offset, int) or isinstance(self.offset, bool):
            raise TypeError(f"offset must be an int, got {type(self.offset).__name__}")
        if not 0 <= self.offset < MAX_POOL_SIZE:
            raise ValueError(f"offset {self.offset} outside the pool range")


@dataclass(frozen=True)
class NodeLayout:
    """Size and alignment of a node and where its parts start."""

    size: int
    align: int
    values_offset: int
    next_leaf_offset: int


def _is_power_of_two(n: int) -> bool:
    return n > 0 and n & (n - 1) == 0


def _round_up(n: int, align: int) -> int:
    return -(-n // align) * align


def node_layout(b: int, key_size: int, value_size: int, value_align: int) -> NodeLayout:
    """Compute the layout of a node with ``b`` keys and values.

    The key array is aligned to its own size, as block searches require.
    Values follow it, and the last value slot is widened to also hold the
    next-leaf reference. The whole node is aligned to at least 4 bytes so a
    freed node can hold a free-list link.
    """
    if b < 4 or b % 2 != 0:
        raise ValueError(f"nodes need an even number of at least 4 keys, got {b}")
    if not _is_power_of_two(key_size):
        raise ValueError(f"key size must be a power of 2, got {key_size}")
    if value_size < 0:
        raise ValueError(f"value size must not be negative, got {value_size}")
    if not _is_power_of_two(value_align):
        raise ValueError(f"value alignment must be a power of 2, got {value_align}")
    if value_size % value_align != 0:
        raise ValueError("value size must be a multiple of its alignment")

    keys_size = b * key_size
    keys_align = keys_size if _is_power_of_two(keys_size) else key_size

    values_offset = _round_up(keys_size, value_align)
    size = values_offset + value_size * (b - 1)
    align = max(keys_align, value_align)

    last_align = max(value_align, NODE_REF_ALIGN)
    last_size = max(value_size, NODE_REF_SIZE)
    next_leaf_offset = _round_up(size, last_align)
    size = next_leaf_offset + last_size
    align = max(align, last_align, 4)

    size = _round_up(size, align)
    if size > MAX_POOL_SIZE:
        raise PoolCapacityError("node layout exceeds maximum node pool size")
    return NodeLayout(size, align, values_offset, next_leaf_offset)
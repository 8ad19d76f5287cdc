"""Heights in a tree and the stack recording a path from root to leaf."""

from __future__ import annotations

from dataclasses import dataclass

from bplusnodes.ints import IntKind
from bplusnodes.node import MAX_POOL_SIZE, NodePos, NodeRef, node_layout


def max_height(kind: IntKind, b: int | None = None) -> int:
    """Worst-case height of a tree whose nodes hold ``b`` keys of ``kind``."""
    b = kind.keys_per_node if b is None else b
    # The most leaves a pool can hold, assuming values take no space.
    nodes = MAX_POOL_SIZE // node_layout(b, kind.size, 0, 1).size
    height = 0
    while nodes > 1:
        height += 1
        # Fewer than b nodes fit under a single root that never splits.
        if nodes < b:
            break
        # Otherwise assume every internal node is only half full.
        nodes = -(-nodes // (b // 2))
    return height


@dataclass(frozen=True, order=True)
class Height:
    """A level in the tree, counted up from the leaves at zero."""

    height: int

    def __post_init__(self) -> None:
        if self.height < 0:
            raise ValueError(f"height must not be negative, got {self.height}")

    @classmethod
    def leaf(cls) -> Height:
        """The height of leaf nodes."""
        return cls(0)

    @classmethod
    def max(cls, kind: IntKind, b: int | None = None) -> Height:
        """The greatest height a tree of this kind can reach."""
        return cls(max_height(kind, b))

    def down(self) -> Height | None:
        """One level towards the leaves, or None at the leaves."""
        return None if self.height == 0 else Height(self.height - 1)

    def up(self, limit: Height) -> Height | None:
        """One level towards the root, or None once ``limit`` is reached."""
        return None if self.height >= limit.height else Height(self.height + 1)


Entry = tuple[NodeRef, NodePos]


class Stack:
    """The node and position visited at each height on a path through a tree."""

    def __init__(self, kind: IntKind, b: int | None = None) -> None:
        self.kind = kind
        self.b = kind.keys_per_node if b is None else b
        self._entries: list[Entry] = [
            (NodeRef(0), NodePos(0, self.b)) for _ in range(max_height(kind, self.b))
        ]

    def __len__(self) -> int:
        return len(self._entries)

    def _index(self, height: Height) -> int:
        if not isinstance(height, Height):
            raise TypeError(f"stacks are indexed by Height, not {type(height).__name__}")
        if height.height >= len(self._entries):
            raise IndexError(f"height {height.height} beyond stack of {len(self._entries)}")
        return height.height

    def __getitem__(self, height: Height) -> Entry:
        return self._entries[self._index(height)]

    def __setitem__(self, height: Height, entry: Entry) -> None:
        index = self._index(height)
        node, pos = entry
        if not isinstance(node, NodeRef) or not isinstance(pos, NodePos):
            raise TypeError("stack entries are (NodeRef, NodePos) pairs")
        if pos.b != self.b:
            raise ValueError(f"position belongs to nodes of {pos.b} keys, not {self.b}")
        self._entries[index] = (node, pos)

    def copy(self) -> Stack:
        """An independent copy of this stack."""
        clone = Stack.__new__(Stack)
        clone.kind = self.kind
        clone.b = self.b
        clone._entries = list(self._entries)
        return clone
"""Pools that hand out tree nodes as offsets within one growing region."""

from __future__ import annotations

import operator
from dataclasses import dataclass

from bplusnodes.ints import IntKind
from bplusnodes.node import MAX_POOL_SIZE, NodeLayout, NodePos, NodeRef, PoolCapacityError, node_layout
from bplusnodes.search import SearchBackend, fallback


class _Uninit:
    """Marker for a value slot that has never been written."""

    def __repr__(self) -> str:
        return "<uninit>"


_UNINIT = _Uninit()


@dataclass(frozen=True)
class _LeafLink:
    """Next-leaf reference stored in the last value slot of a leaf."""

    target: NodeRef | None


class _Node:
    __slots__ = ("keys", "values")

    def __init__(self, b: int) -> None:
        self.keys: list[int | None] = [None] * b
        self.values: list[object] = [_UNINIT] * b


class NodePool:
    """Allocator for nodes holding ``b`` raw keys of one kind and ``b`` values.

    Nodes are referred to by their byte offset in the pool. The pool grows by
    doubling, starting with room for two nodes, and keeps freed nodes in a
    last-in first-out free list.
    """

    def __init__(
        self,
        kind: IntKind,
        b: int | None = None,
        value_size: int = 8,
        value_align: int = 8,
        backend: SearchBackend | None = None,
    ) -> None:
        self.kind = kind
        self.b = kind.keys_per_node if b is None else b
        self.backend = fallback() if backend is None else backend
        self.layout: NodeLayout = node_layout(self.b, kind.size, value_size, value_align)
        if self.b & (self.b - 1) or self.b < self.backend.width(kind):
            raise ValueError(
                f"node size {self.b} must be a power of 2 no smaller than the search width"
            )
        self.max_key = kind.wrapping_add(kind.max, self.backend.bias(kind))
        self._capacity = 0
        self._used = 0
        self._free: list[int] = []
        self._freed: set[int] = set()
        self._nodes: dict[int, _Node] = {}

    @property
    def capacity(self) -> int:
        """Size of the pool's region in bytes."""
        return self._capacity

    @property
    def used(self) -> int:
        """Bytes of the region handed out so far, a multiple of the node size."""
        return self._used

    def _grow(self) -> None:
        size = self.layout.size * 2 if self._capacity == 0 else self._capacity * 2
        if size > MAX_POOL_SIZE:
            raise PoolCapacityError()
        self._capacity = size

    def alloc_node(self) -> NodeRef:
        """Allocate a node whose keys and values are not yet initialized."""
        if self._free:
            offset = self._free.pop()
            self._freed.discard(offset)
        else:
            if self._used == self._capacity:
                self._grow()
            offset = self._used
            self._used += self.layout.size
        self._nodes[offset] = _Node(self.b)
        return NodeRef(offset)

    def free_node(self, node: NodeRef) -> None:
        """Return a node to the pool for reuse."""
        self._node(node)
        self._nodes[node.offset] = _Node(self.b)
        self._free.append(node.offset)
        self._freed.add(node.offset)

    def clear(self) -> None:
        """Release every node while keeping the region."""
        self._used = 0
        self._free.clear()
        self._freed.clear()
        self._nodes.clear()

    def clear_and_alloc_node(self) -> NodeRef:
        """Release every node, then allocate the node at offset zero."""
        self.clear()
        if self._capacity < self.layout.size:
            self._grow()
        self._used = self.layout.size
        self._nodes[0] = _Node(self.b)
        return NodeRef(0)

    def clear_and_free(self) -> None:
        """Release every node and the region itself."""
        self.clear()
        self._capacity = 0

    def _node(self, node: NodeRef) -> _Node:
        if not isinstance(node, NodeRef):
            raise TypeError(f"expected a NodeRef, got {type(node).__name__}")
        if node.offset % self.layout.size != 0 or node.offset >= self._used:
            raise ValueError(f"{node} was not allocated from this pool")
        if node.offset in self._freed:
            raise ValueError(f"{node} has been freed")
        return self._nodes[node.offset]

    def _index(self, pos: NodePos | int) -> int:
        index = operator.index(pos)
        if not 0 <= index < self.b:
            raise IndexError(f"position {index} outside node of {self.b} keys")
        return index

    def _check_key(self, key: int) -> int:
        if not isinstance(key, int) or isinstance(key, bool) or self.kind.wrap(key) != key:
            raise ValueError(f"{key!r} is not a raw {self.kind.name} key")
        return key

    def _initialized_keys(self, node: NodeRef) -> list[int]:
        keys = self._node(node).keys
        if any(key is None for key in keys):
            raise ValueError(f"keys of {node} are not initialized")
        return keys  # type: ignore[return-value]

    def init_keys(self, node: NodeRef) -> NodeRef:
        """Fill every key of the node with the maximum raw key."""
        self._node(node).keys[:] = [self.max_key] * self.b
        return node

    def keys(self, node: NodeRef) -> tuple[int, ...]:
        """All raw keys of the node."""
        return tuple(self._initialized_keys(node))

    def key(self, node: NodeRef, pos: NodePos | int) -> int:
        """The raw key at ``pos``."""
        key = self._node(node).keys[self._index(pos)]
        if key is None:
            raise ValueError(f"key {operator.index(pos)} of {node} is not initialized")
        return key

    def set_key(self, node: NodeRef, key: int, pos: NodePos | int) -> None:
        """Store a raw key at ``pos``."""
        self._node(node).keys[self._index(pos)] = self._check_key(key)

    def value(self, node: NodeRef, pos: NodePos | int) -> object:
        """The value at ``pos``."""
        slot = self._node(node).values[self._index(pos)]
        if slot is _UNINIT or isinstance(slot, _LeafLink):
            raise ValueError(f"no value at position {operator.index(pos)} of {node}")
        return slot

    def set_value(self, node: NodeRef, value: object, pos: NodePos | int) -> None:
        """Store a value at ``pos``."""
        self._node(node).values[self._index(pos)] = value

    def next_leaf(self, node: NodeRef) -> NodeRef | None:
        """The leaf after this one, kept in the last value slot."""
        slot = self._node(node).values[-1]
        if not isinstance(slot, _LeafLink):
            raise ValueError(f"next-leaf slot of {node} does not hold a link")
        return slot.target

    def set_next_leaf(self, node: NodeRef, next_leaf: NodeRef | None) -> None:
        """Link this leaf to the one after it, or mark it as the last."""
        if next_leaf is not None and not isinstance(next_leaf, NodeRef):
            raise TypeError(f"expected a NodeRef or None, got {type(next_leaf).__name__}")
        self._node(node).values[-1] = _LeafLink(next_leaf)

    def leaf_end(self, node: NodeRef) -> NodePos:
        """Position just past the last element of a leaf node."""
        keys = self._initialized_keys(node)
        return NodePos(self.backend.search(self.kind, keys, self.max_key), self.b)

    def internal_end(self, node: NodeRef) -> NodePos:
        """Position just past the last element of an internal node."""
        return self.leaf_end(node).next()

    def _check_size(self, index: int, node_size: int) -> None:
        if not index < node_size <= self.b:
            raise ValueError(
                f"node size {node_size} must exceed position {index} and not exceed {self.b}"
            )

    def insert_key(self, node: NodeRef, key: int, pos: NodePos | int, node_size: int) -> None:
        """Insert a key at ``pos``, shifting keys up to ``node_size`` and dropping the last."""
        index = self._index(pos)
        self._check_size(index, node_size)
        keys = self._node(node).keys
        keys[index + 1 : node_size] = keys[index : node_size - 1]
        keys[index] = self._check_key(key)

    def insert_value(
        self, node: NodeRef, value: object, pos: NodePos | int, node_size: int
    ) -> None:
        """Insert a value at ``pos``, shifting values up to ``node_size``.

        With ``node_size`` equal to ``b`` this overwrites the next-leaf link.
        """
        index = self._index(pos)
        self._check_size(index, node_size)
        values = self._node(node).values
        values[index + 1 : node_size] = values[index : node_size - 1]
        values[index] = value

    def remove_key(self, node: NodeRef, pos: NodePos | int) -> None:
        """Remove the key at ``pos``; the last slot becomes the maximum key."""
        index = self._index(pos)
        keys = self._node(node).keys
        keys[index : self.b - 1] = keys[index + 1 :]
        keys[-1] = self.max_key

    def remove_value(self, node: NodeRef, pos: NodePos | int) -> None:
        """Remove the value at ``pos``; the last slot keeps its contents."""
        index = self._index(pos)
        values = self._node(node).values
        values[index : self.b - 1] = values[index + 1 :]

    def split_into(self, node: NodeRef, dest: NodeRef) -> NodeRef:
        """Move the upper half of ``node`` into ``dest``.

        The moved keys of ``node`` and the upper half of ``dest`` become the
        maximum key.
        """
        if node == dest:
            raise ValueError("cannot split a node into itself")
        half = self.b // 2
        source = self._node(node)
        target = self._node(dest)
        target.keys[:half] = source.keys[half:]
        target.values[:half] = source.values[half:]
        source.keys[half:] = [self.max_key] * half
        target.keys[half:] = [self.max_key] * half
        return dest

    def merge_from(
        self, node: NodeRef, src: NodeRef, offset: NodePos | int, count: int
    ) -> None:
        """Copy the first ``count`` elements of ``src`` into ``node`` at ``offset``."""
        index = self._index(offset)
        if count < 0 or index + count > self.b:
            raise ValueError(f"cannot copy {count} elements to position {index}")
        if node == src:
            raise ValueError("cannot merge a node into itself")
        target = self._node(node)
        source = self._node(src)
        target.keys[index : index + count] = source.keys[:count]
        target.values[index : index + count] = source.values[:count]
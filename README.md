# bplusnodes

Building blocks for a B+ tree keyed by fixed-width integers: integer kinds,
key search inside a node, node layout, a node pool and a root-to-leaf path
stack.

## Modules

### `bplusnodes.ints`

`IntKind` is an enum of the integer kinds `U8` … `U128` and `I8` … `I128`.
Each kind has `bits`, `signed`, `size` (bytes), `min`, `max` and
`keys_per_node` (how many keys fill the 128-byte key array, `KEYS_BYTES`).
`wrap(value)` truncates any integer to the kind the way a cast would, and
`wrapping_add(a, b)` adds with wrap-around.

### `bplusnodes.search`

A `SearchBackend` finds the index of the first key in a node that is not less
than a searched value. The node's length must be a power of two, at least 2
and at least the backend's block width, and its last key must hold the
maximum value. A fixed-size binary search narrows the node to one block, and
the backend's block kernel finishes the search inside that block.

- `width(kind)` – keys per block (1 when the backend has no kernel for the kind)
- `bias(kind)` – value added to stored keys so that the comparison the
  backend uses keeps unsigned keys in order (0 when none is needed)
- `bias_cmp(kind, a, b)` – compare two stored keys, returning -1, 0 or 1
- `block_search(kind, keys, search)` – search one block of `width` keys
- `search(kind, keys, search)` – search a whole node

Bad input raises `ValueError`: a node of the wrong length, a block of the
wrong size, or, with no kernel, a searched value above the last key of the
block.

`fallback()` returns the portable backend, a plain binary search down to a
single key. `generic_search(backend, kind, keys, search)` is a reference
partition-point search over all keys but the last; every backend gives the
same answer as it on well-formed nodes.

### Backends

- `bplusnodes.x86`: `sse2(sse42=False)`, `sse2_popcnt(sse42=False)`,
  `avx2()`, `avx512()`. All but `avx512()` compare as signed and bias
  unsigned keys; 64-bit keys get a block kernel from the SSE backends only
  with `sse42=True`. No x86 backend has a kernel for 128-bit keys.
- `bplusnodes.aarch64`: `neon()` and `sve()`, comparing in the key's own
  signedness with no bias, for kinds up to 64 bits.
- `bplusnodes.riscv`: `rvv()`, which compares a whole node's keys in one
  block, for kinds up to 64 bits.

These are pure Python models of each strategy's block width, bias and
reduction; they do not use any processor instructions.

### `bplusnodes.node`

- `NodePos(index, b)` – a position below `b` inside a node, with `next()`,
  `prev()` (both raise `IndexError` at the edges) and `split_right_half()`,
  which gives the matching position in the new node when the position moves
  on a split, or `None`.
- `NodeRef(offset)` – a node's byte offset within its pool.
- `node_layout(b, key_size, value_size, value_align)` – returns a
  `NodeLayout` with the node's `size`, `align`, `values_offset` and
  `next_leaf_offset`. The last value slot is widened to also hold the
  next-leaf reference.
- `PoolCapacityError` – a `MemoryError` raised when a layout or a pool would
  exceed the maximum pool size (`MAX_POOL_SIZE`, 2³² − 1 bytes).

### `bplusnodes.pool`

`NodePool(kind, b=None, value_size=8, value_align=8, backend=None)` hands out
nodes as `NodeRef` offsets. `b` defaults to `kind.keys_per_node` and the
backend to `fallback()`; the maximum raw key (`max_key`) is the kind's
maximum plus the backend's bias. The pool starts with room for two nodes,
doubles when full (`capacity`, `used`), and reuses freed nodes last in, first
out.

- Allocation: `alloc_node()`, `free_node(node)`, `clear()`,
  `clear_and_alloc_node()` (returns the node at offset 0),
  `clear_and_free()`.
- Keys and values: `init_keys(node)`, `keys(node)`, `key(node, pos)`,
  `set_key(node, key, pos)`, `value(node, pos)`,
  `set_value(node, value, pos)`.
- Leaf links: `next_leaf(node)`, `set_next_leaf(node, next_leaf)`.
- Ends: `leaf_end(node)` and `internal_end(node)` (one past the leaf end).
- Editing: `insert_key`, `insert_value`, `remove_key`, `remove_value`,
  `split_into(node, dest)` and `merge_from(node, src, offset, count)`.

Positions may be `NodePos` values or plain integers. Using a node that was
not allocated from the pool, or has been freed, raises `ValueError`; reading
an unwritten key or value raises `ValueError` too.

### `bplusnodes.stack`

`max_height(kind, b=None)` is the worst-case height of a tree whose pool is
full of half-empty nodes. `Height` is a level counted up from the leaves,
with `Height.leaf()`, `Height.max(kind, b=None)`, `down()` and `up(limit)`
(both return `None` at the ends). `Stack(kind, b=None)` holds a
`(NodeRef, NodePos)` entry for every height below `max_height`, is indexed
by `Height`, and has `copy()`.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
from bplusnodes.ints import IntKind
from bplusnodes.search import generic_search
from bplusnodes.x86 import avx2

kind = IntKind.U32
backend = avx2()

# Keys are stored biased; the final slot always holds the (biased) maximum.
bias = backend.bias(kind)
keys = [kind.wrapping_add(k, bias) for k in (1, 4, 9, 16)]
keys += [kind.wrapping_add(kind.max, bias)] * (32 - len(keys))

search = kind.wrapping_add(5, bias)
assert backend.search(kind, keys, search) == 2
assert generic_search(backend, kind, keys, search) == 2
```

A node pool in use:

```python
from bplusnodes.ints import IntKind
from bplusnodes.pool import NodePool
from bplusnodes.search import fallback

pool = NodePool(IntKind.U32, 16, 4, 4, fallback())
leaf = pool.init_keys(pool.alloc_node())
pool.set_next_leaf(leaf, None)
assert pool.leaf_end(leaf).index == 0
```

## What this package does not do

It provides the parts a tree is built from, not the tree itself. There is no
map type with insert, lookup and remove, no cursor that seeks through a tree,
and no iterator over its entries; those have to be built on top of
`NodePool`, `Stack` and a `SearchBackend`.
"""Fixed-width integer kinds used as raw node keys."""

from __future__ import annotations

from enum import Enum

# Size in bytes of the key array of a node. Every key kind fills the same
# number of bytes, so narrower kinds get more keys per node.
KEYS_BYTES = 128


class IntKind(Enum):
    """A fixed-width integer type with two's-complement wrapping arithmetic."""

    U8 = (8, False)
    U16 = (16, False)
    U32 = (32, False)
    U64 = (64, False)
    U128 = (128, False)
    I8 = (8, True)
    I16 = (16, True)
    I32 = (32, True)
    I64 = (64, True)
    I128 = (128, True)

    @property
    def bits(self) -> int:
        """Width of the integer in bits."""
        return self.value[0]

    @property
    def signed(self) -> bool:
        """Whether the integer is signed."""
        return self.value[1]

    @property
    def size(self) -> int:
        """Width of the integer in bytes."""
        return self.bits // 8

    @property
    def min(self) -> int:
        """Smallest representable value."""
        return -(1 << (self.bits - 1)) if self.signed else 0

    @property
    def max(self) -> int:
        """Largest representable value."""
        return (1 << (self.bits - 1)) - 1 if self.signed else (1 << self.bits) - 1

    @property
    def keys_per_node(self) -> int:
        """Number of keys of this kind that fit in a node's key array."""
        return KEYS_BYTES // self.size

    def wrap(self, value: int) -> int:
        """Truncate an arbitrary integer to this kind, as a cast would."""
        if not isinstance(value, int):
            raise TypeError(f"expected an int, got {type(value).__name__}")
        truncated = value & ((1 << self.bits) - 1)
        if self.signed and truncated >= 1 << (self.bits - 1):
            truncated -= 1 << self.bits
        return truncated

    def wrapping_add(self, a: int, b: int) -> int:
        """Add two values, wrapping around on overflow."""
        return self.wrap(a + b)
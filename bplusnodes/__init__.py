"""Integer kinds, node key search, node layout, node pools and path stacks for B+ trees."""

__version__ = "0.1.0"
__all__ = ["ints", "search", "x86", "aarch64", "riscv", "node", "pool", "stack"]
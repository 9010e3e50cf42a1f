"""Per-user memory and context assembly."""

from javali.memory.assembler import MemoryAssembler

__all__ = ["MemoryAssembler"]

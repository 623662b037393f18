"""Exception types raised by NNet."""

from __future__ import annotations


class NNetError(Exception):
    """Base class for all NNet errors."""


class AllocationError(NNetError, MemoryError):
    """A layer array could not be allocated."""


class DimensionError(NNetError, ValueError):
    """Operands of a linear-algebra primitive have incompatible shapes."""


class DataFormatError(NNetError, ValueError):
    """Input data is malformed or inconsistent."""


__all__ = ["NNetError", "AllocationError", "DimensionError", "DataFormatError"]

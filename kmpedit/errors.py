"""
Exception types raised by the KMP/KCL codecs and the path topology engine.

Fatal load errors (InvalidFormat, UnexpectedEnd) abort the load.
OutOfRangeIndex is recovered locally by the decoders and reported as a warning.
Save-time errors (PathGroupError, TooManyGroupLinks) are raised to the caller.
"""


class KmpError(Exception):
    """Base class for all kmpedit errors."""


class InvalidFormat(KmpError, ValueError):
    """Bad magic, wrong section count, unparseable name or invalid tag."""


class UnexpectedEnd(InvalidFormat, EOFError):
    """The stream ended in the middle of a record."""

    def __init__(self, offset: int, wanted: int, available: int):
        self.offset = offset
        self.wanted = wanted
        self.available = available
        super().__init__(
            f"Unexpected end of data at offset 0x{offset:X}: "
            f"needed {wanted} bytes, {available} available"
        )


class OutOfRangeIndex(KmpError, IndexError):
    """A path group or KCL prism index points outside its array."""


class PathGroupError(KmpError):
    """The graph cannot be expressed as path group tables."""


class TooManyGroupLinks(PathGroupError):
    """A run would need more than 6 next/prev group slots."""

    def __init__(self, group_index: int, direction: str, count: int, limit: int):
        self.group_index = group_index
        self.direction = direction
        self.count = count
        self.limit = limit
        super().__init__(
            f"Group {group_index} has {count} {direction} groups (limit {limit})"
        )


class DanglingRouteReference(KmpError, RuntimeError):
    """A route holder points at a node that no longer exists (engine bug)."""


class PairedNodeError(KmpError, TypeError):
    """A checkpoint node was mutated without its paired node."""

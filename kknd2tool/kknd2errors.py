class ArchiveError(Exception):
    """Base class for everything that can go wrong reading a KKND2 archive."""


class TruncatedStream(ArchiveError):
    pass


class TruncatedInput(TruncatedStream):
    """A compressed chunk ended in the middle of a coded unit."""


class SizeMismatch(ArchiveError):
    pass


class InvalidBackReference(ArchiveError):
    pass


class OutOfBounds(ArchiveError):
    pass


class MalformedTableEntry(ArchiveError):
    pass


__all__ = [
    "ArchiveError",
    "TruncatedStream",
    "TruncatedInput",
    "SizeMismatch",
    "InvalidBackReference",
    "OutOfBounds",
    "MalformedTableEntry",
]

from construct import *

FileHeader = Struct(
    "magic" / Int32ul,
    Padding(4),
)

def _region(size):
    return Struct(
        "total_size" / size,
        Padding(4),
    )

# The archive region stores its size big endian, the metadata region doesn't
ArchiveRegionHeader  = _region(Int32ub)
MetadataRegionHeader = _region(Int32ul)

Chunk = Struct(
    "uncompressed_size" / Int32ul,
    "compressed_size"   / Int32ul,
    "data"              / Bytes(this.compressed_size),
)

TocGroup = Struct(
    "kind"         / Int32ul,
    "table_offset" / Int32ul,
)

TocRoot = Int32ul

# Written by kknd2tool, not part of the archive format
ExtractedHeader = Struct(
    Const(0xDEADC0DE, Int32ul),
    "offset" / Int32ul,
)

DecompressedHeader = Struct(
    Const(b"DATA"),
    "archive_size" / Int32ul,
)

__all__ = [
    "FileHeader",
    "ArchiveRegionHeader",
    "MetadataRegionHeader",
    "Chunk",
    "TocGroup",
    "TocRoot",
    "ExtractedHeader",
    "DecompressedHeader",
]

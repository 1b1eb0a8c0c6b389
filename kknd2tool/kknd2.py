import logging
from collections import namedtuple
from io import BytesIO

import numpy as np
from construct import StreamError

from kknd2errors import TruncatedStream, OutOfBounds, MalformedTableEntry
from kknd2structs import FileHeader, ArchiveRegionHeader, MetadataRegionHeader, Chunk, TocGroup, TocRoot
from lzdecode import decompress_chunk

log = logging.getLogger(__name__)

int32ul = np.dtype("<u4")

# root: up to 7 x (kind, table_offset), each table zero terminated
MAX_GROUPS = 7

Archive = namedtuple("Archive", "archive metadata")


def kind_to_string(kind):
    return kind.to_bytes(4, "little").decode("ascii")


class FileEntry(namedtuple("FileEntry", "kind offset size")):
    __slots__ = ()

    @property
    def kind_name(self):
        return kind_to_string(self.kind)


def _parse_stream(con, fd, what):
    try:
        return con.parse_stream(fd)
    except StreamError as e:
        raise TruncatedStream("%s: %s" % (what, e)) from e


def read_region(fd, big_endian):
    header = ArchiveRegionHeader if big_endian else MetadataRegionHeader
    total_size = _parse_stream(header, fd, "region header").total_size

    out = BytesIO()
    produced = 0
    while produced < total_size:
        chunk = _parse_stream(Chunk, fd, "chunk at region offset %d" % produced)
        log.debug("chunk %d -> %d bytes", chunk.compressed_size, chunk.uncompressed_size)
        produced += out.write(decompress_chunk(chunk.data, chunk.uncompressed_size))

    if produced != total_size:
        log.warning("region declares %d bytes, chunks produced %d", total_size, produced)

    return out.getvalue()


def decompress_stream(fd):
    _parse_stream(FileHeader, fd, "file header")
    archive = read_region(fd, big_endian=True)
    metadata = read_region(fd, big_endian=False)
    log.debug("archive region %d bytes, metadata region %d bytes", len(archive), len(metadata))
    return Archive(archive, metadata)


def decompress(path):
    with open(path, "rb") as fd:
        return decompress_stream(fd)


def _read(con, data, offset, what):
    size = con.sizeof()
    if offset >= len(data):
        raise OutOfBounds("%s at 0x%x is past the end of a 0x%x byte region" % (what, offset, len(data)))
    if offset + size > len(data):
        raise MalformedTableEntry("%s at 0x%x is truncated" % (what, offset))
    return con.parse(bytes(data[offset:offset + size]))


def _file_offsets(data, table_offset, count):
    if count == 0:
        return
    if table_offset >= len(data):
        raise OutOfBounds("file table at 0x%x is past the end of the region" % table_offset)

    # only what the region holds, the table may end early on a zero
    readable = min(count, (len(data) - table_offset) // 4)
    for offset in np.frombuffer(data, dtype=int32ul, count=readable, offset=table_offset):
        if offset == 0:
            return
        yield int(offset)

    if readable < count:
        raise MalformedTableEntry("file table at 0x%x is truncated" % table_offset)


def unpack(archive):
    """Walk the table of contents, returning FileEntry records in file order."""
    root = _read(TocRoot, archive, 0, "table of contents offset")

    found = []
    for i in range(MAX_GROUPS):
        group = _read(TocGroup, archive, root + i * 8, "group %d" % i)
        if group.kind == 0:
            break

        following = _read(TocGroup, archive, root + (i + 1) * 8, "group %d" % (i + 1))
        end = following.table_offset or root
        if end < group.table_offset:
            raise OutOfBounds("group %d table ends at 0x%x before it starts at 0x%x"
                              % (i, end, group.table_offset))

        count = (end - group.table_offset) // 4
        log.debug("group 0x%08x: table 0x%x, %d slots", group.kind, group.table_offset, count)
        for offset in _file_offsets(archive, group.table_offset, count):
            found.append((group.kind, offset))

    bounds = np.array([offset for _, offset in found] + [root], dtype=np.int64)
    sizes = np.diff(bounds)
    if (sizes < 0).any():
        bad = int(np.argmax(sizes < 0))
        raise OutOfBounds("file at 0x%x lies past the next bound 0x%x" % (int(bounds[bad]), int(bounds[bad + 1])))

    return [FileEntry(kind, offset, int(size)) for (kind, offset), size in zip(found, sizes)]


def extract_file(archive, entry):
    start, end = entry.offset, entry.offset + entry.size
    if start < 0 or entry.size < 0 or end > len(archive):
        raise OutOfBounds("file 0x%x+0x%x outside 0x%x byte region" % (entry.offset, entry.size, len(archive)))
    return bytes(archive[start:end])


__all__ = [
    "Archive",
    "FileEntry",
    "MAX_GROUPS",
    "kind_to_string",
    "read_region",
    "decompress_stream",
    "decompress",
    "unpack",
    "extract_file",
]

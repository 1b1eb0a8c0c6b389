import struct

import pytest


def tag(name):
    return int.from_bytes(name, "little")


def encode(units):
    """Build a coded chunk from ints (literal bytes) and (distance, length) pairs."""
    out = bytearray()
    for i in range(0, len(units), 16):
        control = 0
        body = bytearray()
        for bit, unit in enumerate(units[i:i + 16]):
            if isinstance(unit, int):
                body.append(unit)
            else:
                distance, length = unit
                control |= 1 << bit
                body += bytes([(distance >> 8 & 0xF) << 4 | (length - 1), distance & 0xFF])
        out += struct.pack("<H", control) + body
    return bytes(out)


def region(chunks, total=None, big_endian=True):
    """chunks are (uncompressed_size, data) pairs."""
    if total is None:
        total = sum(size for size, _ in chunks)
    out = struct.pack(">I" if big_endian else "<I", total) + b"\xff" * 4
    for size, data in chunks:
        out += struct.pack("<II", size, len(data)) + data
    return out


def layout(size, **fields):
    """Zero filled region with u32 lists written at the given offsets (keys like at_0x10)."""
    buf = bytearray(size)
    for key, values in fields.items():
        offset = int(key[3:], 16)
        struct.pack_into("<%dI" % len(values), buf, offset, *values)
    return bytes(buf)


@pytest.fixture
def lz_encode():
    return encode


@pytest.fixture
def make_region():
    return region


@pytest.fixture
def make_layout():
    return layout


@pytest.fixture
def sample_archive():
    """Archive region with two groups and three files.

    0x00  root = 0x40
    0x08  AAAA table: 0x18, 0x24
    0x10  BBBB table: 0x30, 0
    0x18  files ...
    0x40  groups
    """
    data = bytearray(layout(
        0x58,
        at_0x0=[0x40],
        at_0x8=[0x18, 0x24],
        at_0x10=[0x30, 0],
        at_0x40=[tag(b"AAAA"), 0x8, tag(b"BBBB"), 0x10, 0, 0],
    ))
    data[0x18:0x24] = b"first file.."
    data[0x24:0x30] = b"second file."
    data[0x30:0x40] = b"third file......"
    return bytes(data)


@pytest.fixture
def archive_file(tmp_path, lz_encode, sample_archive):
    metadata = b"metadata" * 4
    archive_chunks = [
        (0x20, lz_encode(list(sample_archive[:0x20]))),
        (0x38, sample_archive[0x20:]),
    ]
    data = b"KKND" + b"\x00" * 4
    data += region(archive_chunks, big_endian=True)
    data += region([(len(metadata), lz_encode([0x6D, 0x65, 0x74, 0x61, 0x64, 0x61, 0x74, 0x61, (8, 16), (16, 8)]))],
                   big_endian=False)
    path = tmp_path / "DATA.LPK"
    path.write_bytes(data)
    return path

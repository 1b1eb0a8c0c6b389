#!/usr/bin/env python3
import sys
import logging
from pathlib import Path
from argparse import ArgumentParser

from kknd2 import decompress, unpack, extract_file
from kknd2errors import ArchiveError
from kknd2structs import ExtractedHeader, DecompressedHeader

__version__ = "0.1.0"


def named_entries(archive):
    # every kind is decoded before anything is written or printed
    return [(entry.kind_name, entry) for entry in unpack(archive)]


def unpack_command(args):
    archive = decompress(args.file).archive
    entries = named_entries(archive)
    args.out.mkdir(parents=True, exist_ok=True)

    for idx, (kind, entry) in enumerate(entries):
        data = extract_file(archive, entry)
        path = args.out / ("%s_%d.%s" % (args.file.stem, idx, kind))
        with path.open("wb") as fd:
            fd.write(ExtractedHeader.build(dict(offset=entry.offset)))
            fd.write(data)


def decompress_command(args):
    archive, metadata = decompress(args.file)
    with args.out.open("wb") as fd:
        fd.write(DecompressedHeader.build(dict(archive_size=len(archive))))
        fd.write(archive)
        fd.write(metadata)


def list_command(args):
    archive = decompress(args.file).archive
    for kind, entry in named_entries(archive):
        print("%s: offset = %#x, size = %#x" % (kind, entry.offset, entry.size))


argparser = ArgumentParser(description="Unpack KKND2 archives")
argparser.add_argument("-v", "--verbose", action="store_true")
argparser.add_argument("--version", action="version", version="%(prog)s " + __version__)
commands = argparser.add_subparsers(dest="command", required=True)

cmd = commands.add_parser("unpack", help="decompress and extract every file")
cmd.add_argument("file", type=Path)
cmd.add_argument("out", type=Path)
cmd.set_defaults(func=unpack_command)

cmd = commands.add_parser("decompress", help="decompress without extracting files")
cmd.add_argument("file", type=Path)
cmd.add_argument("out", type=Path)
cmd.set_defaults(func=decompress_command)

cmd = commands.add_parser("list", help="list the files in an archive")
cmd.add_argument("file", type=Path)
cmd.set_defaults(func=list_command)


def main(argv=None):
    args = argparser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    try:
        args.func(args)
    except (ArchiveError, UnicodeDecodeError) as e:
        sys.stderr.write("%s: %s\n" % (type(e).__name__, e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

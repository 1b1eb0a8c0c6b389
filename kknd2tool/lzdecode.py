import logging
from struct import unpack_from

from kknd2errors import TruncatedInput, SizeMismatch, InvalidBackReference, OutOfBounds

log = logging.getLogger(__name__)

# control word bits, lowest first: 0 literal, 1 back-reference (DDDDLLLL DDDDDDDD)
CONTROL_BITS = 16


def decompress_chunk(data, output_size):
    # Chunks that didn't compress are stored as is
    if len(data) == output_size:
        return bytes(data)

    out = bytearray(output_size)
    end = len(data)
    inpos = 0
    outpos = 0
    control = 0
    remaining = 0

    while inpos < end:
        if remaining == 0:
            if inpos + 2 > end:
                raise TruncatedInput("control word cut short at input offset %d" % inpos)
            control, = unpack_from("<H", data, inpos)
            inpos += 2
            remaining = CONTROL_BITS

        if control & 1:
            if inpos + 2 > end:
                raise TruncatedInput("back-reference cut short at input offset %d" % inpos)
            code = data[inpos]
            distance = (code & 0xF0) << 4 | data[inpos + 1]
            length = (code & 0x0F) + 1
            inpos += 2

            if distance > outpos:
                raise InvalidBackReference(
                    "distance %d at output offset %d" % (distance, outpos))
            if outpos + length > output_size:
                raise OutOfBounds(
                    "back-reference of %d bytes at output offset %d overruns %d byte chunk"
                    % (length, outpos, output_size))

            # byte at a time, source and destination may overlap
            src = outpos - distance
            for _ in range(length):
                out[outpos] = out[src]
                outpos += 1
                src += 1
        else:
            if inpos >= end or outpos >= output_size:
                raise TruncatedInput(
                    "literal at input offset %d, output offset %d" % (inpos, outpos))
            out[outpos] = data[inpos]
            outpos += 1
            inpos += 1

        control >>= 1
        remaining -= 1

    if outpos != output_size:
        raise SizeMismatch("chunk decoded to %d bytes, expected %d" % (outpos, output_size))

    log.debug("decoded %d -> %d bytes", end, output_size)
    return bytes(out)


__all__ = ["decompress_chunk", "CONTROL_BITS"]

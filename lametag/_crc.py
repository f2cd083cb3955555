# Copyright 2011 Bert Muennich
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 2 of the License, or
# (at your option) any later version.

"""CRC-16/ARC as used by the LAME tag.

Reflected polynomial 0xA001 (0x8005), initial value 0, no final xor.
The music CRC is computed over a potentially large byte range, so the
checksum can be folded in chunk by chunk::

    crc = 0
    for chunk in chunks[:-1]:
        crc = process_block(crc, chunk)
    crc = process_final(crc, chunks[-1])
"""

POLYNOMIAL = 0xA001


def _make_table(poly):
    table = []
    for i in range(256):
        crc = i
        for _ in range(8):
            if crc & 1:
                crc = (crc >> 1) ^ poly
            else:
                crc >>= 1
        table.append(crc)
    return tuple(table)


CRC16_TABLE = _make_table(POLYNOMIAL)


def process_block(crc: int, data: bytes) -> int:
    """Folds `data` into the running checksum `crc` and returns the new
    checksum.
    """

    table = CRC16_TABLE
    for byte in bytearray(data):
        crc = table[(crc ^ byte) & 0xFF] ^ (crc >> 8)
    return crc


def process_final(crc: int, data: bytes) -> int:
    """Like process_block(), for the last chunk of a stream.

    There is no final transformation, the result is the same.
    """

    return process_block(crc, data)


def checksum(data: bytes) -> int:
    """CRC-16/ARC of `data`"""

    return process_final(0, data)

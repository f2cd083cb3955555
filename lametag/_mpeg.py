# Copyright (C) 2006  Joe Wreschnig
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 2 of the License, or
# (at your option) any later version.

"""Locating the first MPEG audio frame of a file.

Only as much of the frame header is parsed as is needed to know the
position and length of the frame which may hold a Xing/Info header.

http://mpgedit.org/mpgedit/mpeg_format/mpeghdr.htm
"""

import logging
import struct
from typing import NamedTuple

from lametag._util import syncsafe_int

logger = logging.getLogger(__name__)


SYNC_SEARCH_SIZE = 32768
"""Bytes searched for a frame sync after the start of the audio data"""

# Map (version, layer) tuples to bitrates.
_BITRATE = {
    (1, 1): [0, 32, 64, 96, 128, 160, 192, 224,
             256, 288, 320, 352, 384, 416, 448],
    (1, 2): [0, 32, 48, 56, 64, 80, 96, 112, 128,
             160, 192, 224, 256, 320, 384],
    (1, 3): [0, 32, 40, 48, 56, 64, 80, 96, 112,
             128, 160, 192, 224, 256, 320],
    (2, 1): [0, 32, 48, 56, 64, 80, 96, 112, 128,
             144, 160, 176, 192, 224, 256],
    (2, 2): [0, 8, 16, 24, 32, 40, 48, 56, 64,
             80, 96, 112, 128, 144, 160],
}

_BITRATE[(2, 3)] = _BITRATE[(2, 2)]
for i in range(1, 4):
    _BITRATE[(2.5, i)] = _BITRATE[(2, i)]
del i

# Map version to sample rates.
_RATES = {
    1: [44100, 48000, 32000],
    2: [22050, 24000, 16000],
    2.5: [11025, 12000, 8000]
}


class FrameLocation(NamedTuple):

    offset: int
    """File offset of the frame including the sync word"""

    length: int
    """Frame length in bytes"""

    version: float
    """MPEG version: 1, 2 or 2.5"""

    layer: int
    bitrate: int
    """Bitrate in bits per second"""

    sample_rate: int


def id3v2_size(header: bytes) -> int:
    """Returns the full size of the ID3v2 tag starting with `header`,
    0 if there is none.
    """

    try:
        id3, flags, size = struct.unpack(">3sxxB4s", header[:10])
    except struct.error:
        return 0
    if id3 != b"ID3":
        return 0

    size = syncsafe_int(size) + 10
    if flags & 0x10:
        # footer present
        size += 10
    return size


def parse_frame_header(frame_data: int, offset: int) -> FrameLocation | None:
    """Returns the location of the frame with the 32 bit header
    `frame_data` or None if the header isn't valid.
    """

    if ((frame_data >> 16) & 0xFFE0) != 0xFFE0:
        return None

    version = (frame_data >> 19) & 0x3
    layer = (frame_data >> 17) & 0x3
    bitrate = (frame_data >> 12) & 0xF
    sample_rate = (frame_data >> 10) & 0x3
    padding = (frame_data >> 9) & 0x1

    if (version == 1 or layer == 0 or sample_rate == 0x3 or
            bitrate == 0 or bitrate == 0xF):
        return None

    # many flags in an MPEG header are backwards
    version = [2.5, None, 2, 1][version]
    layer = 4 - layer

    bitrate = _BITRATE[(version, layer)][bitrate] * 1000
    sample_rate = _RATES[version][sample_rate]

    if layer == 1:
        length = ((12 * bitrate // sample_rate) + padding) * 4
    elif version >= 2 and layer == 3:
        length = (72 * bitrate // sample_rate) + padding
    else:
        length = (144 * bitrate // sample_rate) + padding

    return FrameLocation(offset, length, version, layer, bitrate, sample_rate)


def find_first_frame(reader, offset: int | None = None) -> \
        FrameLocation | None:
    """Finds the first MPEG audio frame. If `offset` is None a leading
    ID3v2 tag gets skipped. Returns None if no frame was found.
    """

    if offset is None:
        offset = id3v2_size(reader.read_range(0, 10))

    data = reader.read_range(offset, SYNC_SEARCH_SIZE)

    frame_1 = data.find(b"\xff")
    while 0 <= frame_1 <= (len(data) - 4):
        frame_data = struct.unpack(">I", data[frame_1:frame_1 + 4])[0]
        location = parse_frame_header(frame_data, offset + frame_1)
        if location is not None:
            logger.debug("MPEG frame at %d, %d bytes",
                         location.offset, location.length)
            return location
        frame_1 = data.find(b"\xff", frame_1 + 1)

    logger.debug("No MPEG frame sync after offset %d", offset)
    return None

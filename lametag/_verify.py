# Copyright 2011 Bert Muennich
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 2 of the License, or
# (at your option) any later version.

"""Verification of the two CRC16 checksums stored in a LAME tag."""

import logging
from typing import NamedTuple

from lametag._crc import checksum, process_block, process_final
from lametag._header import LameTagInfo
from lametag._util import AudioReadError

logger = logging.getLogger(__name__)


FILE_BUF_SIZE = 2 ** 16
"""Default number of bytes read at once while checking the music CRC"""


class VerifyResult(NamedTuple):

    header_crc: int
    """CRC16 computed over the start of the frame"""

    header_crc_ok: bool
    """If `header_crc` matches the stored info tag CRC"""

    audio_crc: int | None = None
    """CRC16 computed over the audio data, None if not computed"""

    audio_crc_ok: bool | None = None
    """If `audio_crc` matches the stored music CRC. None if the check
    was skipped or aborted.
    """

    audio_error: AudioReadError | None = None
    """Set if reading the audio data failed"""


class Verifier:
    """Recomputes the checksums of LAME tags.

    A Verifier reads through one reader and keeps no state between
    calls besides its chunk size, use one per thread.
    """

    def __init__(self, reader, chunk_size: int = FILE_BUF_SIZE):
        if chunk_size <= 0:
            raise ValueError("chunk_size has to be positive")
        self._reader = reader
        self._chunk_size = chunk_size

    def header_crc(self, info: LameTagInfo) -> int:
        return checksum(info.header_data)

    def audio_crc(self, info: LameTagInfo) -> int:
        """CRC16 of the audio data following the tag frame.

        The range is cut at the end of the file as reported by the
        reader's size(). Raises AudioReadError if the data can't be read
        or there is no audio data at all.
        """

        offset = info.frame_offset + info.frame_length
        size = max(info.music_length - info.frame_length, 0)

        try:
            available = max(self._reader.size() - offset, 0)
        except OSError as e:
            raise AudioReadError(
                "Could not determine the file size: %s" % e) from e

        if size > available:
            if not available:
                raise AudioReadError("No audio data at %d" % offset)
            logger.debug("Audio data ends %d bytes early", size - available)
            size = available

        crc = 0
        while size > 0:
            block_size = min(size, self._chunk_size)
            try:
                data = self._reader.read_range(offset, block_size)
            except OSError as e:
                raise AudioReadError(
                    "Could not read audio data at %d: %s" % (offset, e)) \
                    from e

            # short reads are fine, an empty one means the data ended early
            if not data:
                raise AudioReadError(
                    "Unexpected end of audio data at %d" % offset)

            offset += len(data)
            size -= len(data)
            if size > 0:
                crc = process_block(crc, data)
            else:
                crc = process_final(crc, data)

        return crc

    def verify(self, info: LameTagInfo,
               check_audio: bool = True) -> VerifyResult:
        if not info.valid:
            raise ValueError("can't verify an invalid LAME tag")

        header_crc = self.header_crc(info)
        header_crc_ok = header_crc == info.tag_crc
        if not check_audio:
            return VerifyResult(header_crc, header_crc_ok)

        try:
            audio_crc = self.audio_crc(info)
        except AudioReadError as e:
            logger.warning("%s", e)
            return VerifyResult(header_crc, header_crc_ok, audio_error=e)

        return VerifyResult(header_crc, header_crc_ok, audio_crc,
                            audio_crc == info.music_crc)


def verify(info: LameTagInfo, reader, check_audio: bool = True,
           chunk_size: int = FILE_BUF_SIZE) -> VerifyResult:
    """Checks the info tag CRC and, if `check_audio` is set, the music
    CRC of `info` by reading from `reader`, which has to provide
    read_range(offset, length) and size().

    I/O errors while reading the audio data are not raised but returned
    in `VerifyResult.audio_error`.
    """

    return Verifier(reader, chunk_size).verify(info, check_audio)

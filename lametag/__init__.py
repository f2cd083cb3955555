# Copyright (C) 2005  Michael Urman
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 2 of the License, or
# (at your option) any later version.

"""lametag reads and verifies the LAME info tag of MP3 files.

::

    import lametag
    mp3 = lametag.File("song.mp3", check_crc=True)
    print(mp3.pprint())

The lower level functions work on any object providing
read_range(offset, length)::

    info = lametag.decode(frame_offset, frame_length, reader)
    if info.valid:
        result = lametag.verify(info, reader)
"""

import os

from lametag._crc import checksum, process_block, process_final
from lametag._filething import FileRangeReader, FileThing, open_filething
from lametag._header import (
    EncodingFlags,
    EncodingMethod,
    LameTagInfo,
    SourceRate,
    StereoMode,
    decode,
    replay_gain,
)
from lametag._mpeg import FrameLocation, find_first_frame
from lametag._util import (
    AudioReadError,
    FrameNotFoundError,
    LameTagError,
    convert_error,
)
from lametag._verify import FILE_BUF_SIZE, Verifier, VerifyResult, verify


version = (1, 0, 0)
"""Version tuple."""

version_string = ".".join(map(str, version))
"""Version string."""


class LameFile:
    """LameFile(filething, check_crc=False)

    The LAME tag of an MP3 file.

    Arguments:
        filething (filething): a filename or a `FileThing`
        check_crc (bool): verify both checksums, reads the whole file

    Attributes:
        frame (`FrameLocation`): the first MPEG frame
        info (`LameTagInfo`): the decoded tag, check `info.valid`
        result (`VerifyResult` or None): the checksums, if checked

    Raises:
        LameTagError: the file can't be read
        FrameNotFoundError: the file contains no MPEG audio frame
    """

    frame = None
    info = None
    result = None
    filename = None

    def __init__(self, filething, check_crc=False):
        if isinstance(filething, FileThing):
            self._load(filething, check_crc)
        else:
            filething = self._open(filething)
            try:
                self._load(filething, check_crc)
            finally:
                filething.fileobj.close()

    @staticmethod
    @convert_error(IOError, LameTagError)
    def _open(path):
        return open_filething(path)

    @convert_error(IOError, LameTagError)
    def _load(self, filething, check_crc):
        self.filename = filething.name
        reader = FileRangeReader(filething.fileobj)

        self.frame = find_first_frame(reader)
        if self.frame is None:
            raise FrameNotFoundError("can't sync to an MPEG frame")

        self.info = decode(self.frame.offset, self.frame.length, reader)
        if check_crc and self.info.valid:
            self.result = verify(self.info, reader)

    def pprint(self):
        """Print the LAME tag and the checksum results if available."""

        return self.info.pprint(self.result)


def File(filething, check_crc=False):
    """Opens `filething` and decodes its LAME tag.

    Returns a `LameFile`; its `info.valid` is False if there is no tag.
    """

    if isinstance(filething, (str, bytes, os.PathLike, FileThing)):
        return LameFile(filething, check_crc)
    raise TypeError("expected a path or a FileThing")


__all__ = [
    "AudioReadError",
    "EncodingFlags",
    "EncodingMethod",
    "FILE_BUF_SIZE",
    "File",
    "FileRangeReader",
    "FileThing",
    "FrameLocation",
    "FrameNotFoundError",
    "LameFile",
    "LameTagError",
    "LameTagInfo",
    "SourceRate",
    "StereoMode",
    "Verifier",
    "VerifyResult",
    "checksum",
    "decode",
    "find_first_frame",
    "process_block",
    "process_final",
    "replay_gain",
    "verify",
    "version",
    "version_string",
]

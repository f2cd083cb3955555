# Copyright 2016 Christoph Reiter
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 2 of the License, or
# (at your option) any later version.

import os
from io import BytesIO
from typing import IO, NamedTuple


class FileThing(NamedTuple):
    """
    filename is None if the source is not a filename.
    name is a filename which can be used in messages.
    """
    fileobj: IO[bytes]
    filename: str | bytes | None
    name: str | None


class FileRangeReader:
    """Random access byte range reads on a seekable binary file object.

    Reads never move the position of the wrapped file object as seen by
    other users of it; the old position is restored afterwards.
    """

    def __init__(self, fileobj: IO[bytes]):
        self._fileobj = fileobj

    @classmethod
    def from_bytes(cls, data: bytes) -> "FileRangeReader":
        return cls(BytesIO(data))

    def read_range(self, offset: int, length: int) -> bytes:
        """Returns up to `length` bytes starting at `offset`.

        Less data is returned at the end of the file. Raises OSError
        (IOError) on read errors.
        """

        if offset < 0 or length < 0:
            raise ValueError("negative offset or length")

        fileobj = self._fileobj
        old_pos = fileobj.tell()
        try:
            fileobj.seek(offset, 0)
            return fileobj.read(length)
        finally:
            fileobj.seek(old_pos, 0)

    def size(self) -> int:
        """The size of the file in bytes"""

        fileobj = self._fileobj
        old_pos = fileobj.tell()
        try:
            return fileobj.seek(0, 2)
        finally:
            fileobj.seek(old_pos, 0)


def open_filething(path: str | bytes | os.PathLike) -> FileThing:
    """Opens `path` for reading. The caller owns the returned file
    object and has to close it.
    """

    fileobj = open(path, "rb")
    name = os.fsdecode(path)
    return FileThing(fileobj, os.fspath(path), name)

# Copyright 2006 Joe Wreschnig
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 2 of the License, or
# (at your option) any later version.

"""Utility classes for lametag.

You should not rely on the interfaces here being stable. They are
intended for internal use in lametag only.
"""

import struct
import sys
from functools import wraps


class LameTagError(Exception):
    """Base class for all custom exceptions in lametag"""

    __module__ = "lametag"


class FrameNotFoundError(LameTagError, IOError):
    """No MPEG audio frame could be found in the file"""

    __module__ = "lametag"


class AudioReadError(LameTagError, IOError):
    """The audio data range covered by the music CRC could not be read"""

    __module__ = "lametag"


def convert_error(exc_src, exc_dest):
    """A decorator for reraising exceptions with a different type.
    Mostly useful for IOError.

    Args:
        exc_src (type): The source exception type
        exc_dest (type): The target exception type.
    """

    def wrap(func):

        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except exc_dest:
                raise
            except exc_src as err:
                raise exc_dest(err).with_traceback(sys.exc_info()[2])

        return wrapper

    return wrap


def _create_unpack(fmt):
    s = struct.Struct(fmt)

    def unpack(data):
        return s.unpack(data)[0]

    return staticmethod(unpack)


class cdata:
    """C character buffer to Python numeric type conversions."""

    error = struct.error

    uint16_be = _create_unpack(">H")
    uint32_be = _create_unpack(">I")


def syncsafe_int(data):
    """Decodes a big endian integer with 7 significant bits per byte,
    as used for ID3v2 sizes.
    """

    value = 0
    for byte in bytearray(data):
        value = (value << 7) | (byte & 0x7F)
    return value

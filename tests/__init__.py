import os
import re
import shutil
import struct
from tempfile import mkstemp
from unittest import TestCase as BaseTestCase

try:
    import pytest
except ImportError:
    raise SystemExit("pytest missing: sudo apt-get install python3-pytest")

from lametag._crc import checksum


DATA_DIR = os.path.join(
    os.path.dirname(os.path.realpath(__file__)), "data")
assert isinstance(DATA_DIR, str)


# MPEG-1 layer III, 128 kbps, 44100 Hz, joint stereo, no padding
FRAME_HEADER = b"\xff\xfb\x90\x64"
FRAME_LENGTH = 417

# side info size for MPEG-1 stereo
XING_OFFSET = 36


def get_temp_copy(path):
    """Returns a copy of the file with the same extension"""

    ext = os.path.splitext(path)[-1]
    fd, filename = mkstemp(suffix=ext)
    os.close(fd)
    shutil.copy(path, filename)
    return filename


def get_temp_empty(ext=""):
    """Returns an empty file with the extension"""

    fd, filename = mkstemp(suffix=ext)
    os.close(fd)
    return filename


def get_temp_file(data, ext=".mp3"):
    """Returns a file with the extension containing `data`"""

    filename = get_temp_empty(ext)
    with open(filename, "wb") as h:
        h.write(data)
    return filename


def make_lame_block(encoder=b"LAME3.99r", rev_method=0x03, lowpass=195,
                    peak=0, track_gain=b"\x00\x00", album_gain=b"\x00\x00",
                    flags_ath=0x14, bitrate=32, delay=576, padding=1104,
                    misc=0x4C, mp3_gain=0, preset=b"\x00\x00",
                    music_length=0, music_crc=0, tag_crc=0):
    """Builds the 36 byte LAME tag"""

    block = bytearray(encoder.ljust(9, b"\x00")[:9])
    block.append(rev_method)
    block.append(lowpass)
    block += struct.pack(">I", peak)
    block += track_gain + album_gain
    block.append(flags_ath)
    block.append(bitrate)
    block += bytes([delay >> 4, ((delay & 0xF) << 4) | (padding >> 8),
                    padding & 0xFF])
    block.append(misc)
    block.append(mp3_gain)
    block += preset
    block += struct.pack(">IHH", music_length, music_crc, tag_crc)
    assert len(block) == 36
    return bytes(block)


def make_frame(block=None, marker=b"Xing", quality=78,
               frame_length=FRAME_LENGTH, xing_offset=XING_OFFSET):
    """Builds an MPEG frame containing a Xing/Info header with the LAME
    tag `block` (or none at all if None).
    """

    frame = bytearray(max(frame_length, xing_offset + 0x78 + 36))
    frame[:4] = FRAME_HEADER
    frame[xing_offset:xing_offset + 4] = marker
    frame[xing_offset + 4:xing_offset + 8] = b"\x00\x00\x00\x0f"
    frame[xing_offset + 0x77] = quality
    if block is not None:
        lame_offset = xing_offset + 0x78
        frame[lame_offset:lame_offset + len(block)] = block
    return bytes(frame[:frame_length])


def make_mp3(audio, prefix=b"", **kwargs):
    """Returns the data of an MP3 file with a LAME tag with correct
    checksums, followed by `audio`.
    """

    kwargs["music_length"] = FRAME_LENGTH + len(audio)
    kwargs["music_crc"] = checksum(audio)
    frame = bytearray(make_frame(make_lame_block(**kwargs)))

    tag_crc_offset = XING_OFFSET + 0x78 + 34
    frame[tag_crc_offset:tag_crc_offset + 2] = struct.pack(
        ">H", checksum(bytes(frame[:190])))
    return prefix + bytes(frame) + audio


def make_id3v2(size):
    """An empty ID3v2.4 tag with `size` bytes of padding"""

    syncsafe = bytes([(size >> 21) & 0x7F, (size >> 14) & 0x7F,
                      (size >> 7) & 0x7F, size & 0x7F])
    return b"ID3\x04\x00\x00" + syncsafe + b"\x00" * size


class TestCase(BaseTestCase):

    def failUnlessRaisesRegexp(self, exc, re_, fun, *args, **kwargs):
        def wrapped(*args, **kwargs):
            try:
                fun(*args, **kwargs)
            except Exception as e:
                self.failUnless(re.search(re_, str(e)))
                raise
        self.failUnlessRaises(exc, wrapped, *args, **kwargs)

    # silence deprec warnings about useless renames
    failUnless = BaseTestCase.assertTrue
    failIf = BaseTestCase.assertFalse
    failUnlessEqual = BaseTestCase.assertEqual
    failUnlessRaises = BaseTestCase.assertRaises
    failUnlessAlmostEqual = BaseTestCase.assertAlmostEqual
    failIfEqual = BaseTestCase.assertNotEqual
    failIfAlmostEqual = BaseTestCase.assertNotAlmostEqual


def unit(run=[], exitfirst=False):
    args = []

    if run:
        args.append("-k")
        args.append(" or ".join(run))

    if exitfirst:
        args.append("-x")

    args.append("tests")

    return pytest.main(args=args)

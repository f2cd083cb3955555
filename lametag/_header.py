# Copyright 2011 Bert Muennich
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 2 of the License, or
# (at your option) any later version.

"""LAME info tag decoding.

http://gabriel.mp3-tech.org/mp3infotag.html

Other implementations:

* madplay (tag.c), http://www.underbit.com/products/mad/
* LameTag by phwip, http://phwip.wordpress.com/home/audio/
"""

import logging
from enum import IntEnum, IntFlag
from typing import NamedTuple

from lametag._util import LameTagError, cdata

logger = logging.getLogger(__name__)


XING_MARKERS = (b"Xing", b"Info")
LAME_MARKER = b"LAME"

LAME_OFFSET = 0x78
"""Offset of the LAME tag relative to the Xing/Info marker"""

LAME_SIZE = 0x24
"""Size of the LAME tag in bytes"""

QUALITY_OFFSET = 0x77
"""Offset of the quality byte (last byte of the Xing VBR scale)"""

HEADER_CRC_SIZE = 190
"""Number of frame bytes covered by the info tag CRC"""

PEAK_SCALE_VERSION = b"LAME3.94b"
"""Encoders from this version on store the peak as a 9.23 fixed point"""

REPLAYGAIN_REFERENCE_VERSION = b"LAME3.95"
"""Encoders before this version used a reference level 6 dB lower"""

REPLAYGAIN_OLD_OFFSET = 6.0


class EncodingMethod(IntEnum):
    UNKNOWN = 0
    CBR = 1
    ABR = 2
    VBR_OLD = 3
    VBR_MTRH = 4
    VBR_MT = 5
    VBR = 6
    CBR_2PASS = 8
    ABR_2PASS = 9


class StereoMode(IntEnum):
    MONO = 0
    STEREO = 1
    DUAL = 2
    JOINT = 3
    FORCE = 4
    AUTO = 5
    INTENSITY = 6
    UNDEFINED = 7


class SourceRate(IntEnum):
    LE_32KHZ = 0
    KHZ_44_1 = 1
    KHZ_48 = 2
    GT_48KHZ = 3


class EncodingFlags(IntFlag):
    NSPSYTUNE = 0x1
    NSSAFEJOINT = 0x2
    NOGAP_NEXT = 0x4
    NOGAP_PREV = 0x8


# name: (byte index in the LAME tag, right shift, mask)
_BIT_FIELDS = {
    "tag_revision": (9, 4, 0x0F),
    "encoding_method": (9, 0, 0x0F),
    "lowpass_filter": (10, 0, 0xFF),
    "ath_type": (19, 0, 0x0F),
    "encoding_flags": (19, 4, 0x0F),
    "bitrate": (20, 0, 0xFF),
    "stereo_mode": (24, 2, 0x07),
    "unwise_settings": (24, 5, 0x01),
    "source_rate": (24, 6, 0x03),
    # reads the same bits as source_rate, see DESIGN.md
    "noise_shaping": (24, 6, 0x03),
}

_ENCODER = slice(0, 9)
_PEAK = slice(11, 15)
_TRACK_GAIN = slice(15, 17)
_ALBUM_GAIN = slice(17, 19)
_DELAY_PADDING = slice(21, 24)
_MP3_GAIN = 25
_MUSIC_LENGTH = slice(28, 32)
_MUSIC_CRC = slice(32, 34)
_TAG_CRC = slice(34, 36)

_METHOD_NAMES = {
    EncodingMethod.CBR: "CBR",
    EncodingMethod.CBR_2PASS: "2-pass CBR",
    EncodingMethod.ABR: "ABR",
    EncodingMethod.ABR_2PASS: "2-pass ABR",
    EncodingMethod.VBR_OLD: "old/re VBR",
    EncodingMethod.VBR_MTRH: "new/mtrh VBR",
    EncodingMethod.VBR_MT: "new/mt VBR",
    EncodingMethod.VBR: "VBR",
}

_SOURCE_RATE_NAMES = {
    SourceRate.LE_32KHZ: "<= 32",
    SourceRate.KHZ_44_1: "44.1",
    SourceRate.KHZ_48: "48",
    SourceRate.GT_48KHZ: "> 48",
}


class LAMEHeaderError(LameTagError):
    """The frame contains no decodable LAME tag"""


def replay_gain(data: bytes, old_version: bool) -> float:
    """Decodes a 16 bit ReplayGain field of the LAME tag into dB.

    Bits 8-0 hold the magnitude in 0.1 dB, bit 9 the sign. Tags
    written before LAME 3.95 get corrected by +6 dB.
    """

    first, second = bytearray(data[:2])
    value = (((first << 8) & 0x100) | second) / 10.0
    if first & 0x02:
        value *= -1
    if old_version:
        value += REPLAYGAIN_OLD_OFFSET
    return value


def _bit_field(block: bytes, name: str) -> int:
    index, shift, mask = _BIT_FIELDS[name]
    return (block[index] >> shift) & mask


def find_lame_block(frame: bytes) -> tuple[int, bytes]:
    """Returns the offset of the Xing/Info marker and the LAME tag.

    Raises LAMEHeaderError if there is none.
    """

    for marker in XING_MARKERS:
        xing_offset = frame.find(marker)
        if xing_offset != -1:
            break
    else:
        raise LAMEHeaderError("No Xing/Info header")

    lame_offset = xing_offset + LAME_OFFSET
    if lame_offset + LAME_SIZE >= len(frame):
        raise LAMEHeaderError("LAME tag exceeds the frame")

    block = frame[lame_offset:lame_offset + LAME_SIZE]
    if not block.startswith(LAME_MARKER):
        raise LAMEHeaderError("Not a LAME tag")

    return xing_offset, block


class LameTagInfo(NamedTuple):
    """The decoded LAME tag of an MPEG audio frame.

    If `valid` is False no tag was found and all other fields (except
    the frame position) keep their defaults.
    """

    valid: bool = False
    """True if the frame contained a decodable LAME tag"""

    frame_offset: int = 0
    """File offset of the frame holding the Xing/Info header"""

    frame_length: int = 0
    """Length of that frame in bytes"""

    header_data: bytes = b""
    """The start of the frame covered by `tag_crc`"""

    encoder: bytes = b""
    """The encoder version token, e.g. b'LAME3.97 '"""

    tag_revision: int = 0
    encoding_method: int = 0
    """See `EncodingMethod`; other values are undefined"""

    quality: int = 0
    """Raw quality byte, 100 - (10 * V + q). Only 1..100 is meaningful"""

    stereo_mode: StereoMode = StereoMode.MONO
    source_rate: SourceRate = SourceRate.LE_32KHZ

    bitrate: int = 0
    """Target (CBR/ABR) or minimal (VBR) bitrate in kbps; 255 means
    255 or more
    """

    music_length: int = 0
    """Length of the audio data in bytes, starting with this frame"""

    lowpass_filter: int = 0
    """Lowpass frequency in units of 100 Hz, 0 if unknown"""

    mp3_gain: float = 0.0
    """Applied MP3 gain in dB"""

    ath_type: int = 0
    encoding_flags: EncodingFlags = EncodingFlags(0)

    encoding_delay: int = 0
    """Encoder delay in samples"""

    padding: int = 0
    """Padding in samples added at the end"""

    noise_shaping: int = 0
    """Shares its bits with `source_rate`, don't rely on it"""

    unwise_settings: bool = False

    tag_crc: int = 0
    """Stored CRC16 of the first 190 bytes of the frame"""

    music_crc: int = 0
    """Stored CRC16 of the audio data"""

    peak_signal: float = 0.0
    track_gain: float = 0.0
    """Track gain in dB"""

    album_gain: float = 0.0
    """Album gain in dB"""

    @property
    def encoder_name(self) -> str:
        return self.encoder.rstrip(b"\x00").decode("latin-1")

    @property
    def is_old_version(self) -> bool:
        """If the ReplayGain values were corrected for the old reference
        level
        """

        return self.encoder < REPLAYGAIN_REFERENCE_VERSION

    @property
    def has_quality(self) -> bool:
        return 0 < self.quality <= 100

    @property
    def vbr_quality(self) -> int | None:
        """The -V setting, None if unknown"""

        if not self.has_quality:
            return None
        return (100 - self.quality) // 10

    @property
    def quality_index(self) -> int | None:
        """The -q setting, None if unknown"""

        if not self.has_quality:
            return None
        return (100 - self.quality) % 10

    @property
    def method_name(self) -> str:
        return _METHOD_NAMES.get(self.encoding_method, "unknown")

    def pprint(self, result=None) -> str:
        """A human readable report of the tag. If a `VerifyResult` is
        passed the checksums get marked as correct or invalid.
        """

        if not self.valid:
            return "No LAME tag"

        def row(key1, value1, key2, value2):
            line = "%-16s: %-15s%-15s: %s" % (key1, value1, key2, value2)
            return line.rstrip(" :")

        if self.has_quality:
            quality = f"V{self.vbr_quality}/q{self.quality_index}"
        else:
            quality = "unknown"

        if self.encoding_method in (EncodingMethod.ABR,
                                    EncodingMethod.ABR_2PASS):
            bitrate_key = "average bitrate"
        elif EncodingMethod.VBR_OLD <= self.encoding_method \
                <= EncodingMethod.VBR:
            bitrate_key = "minimal bitrate"
        else:
            bitrate_key = "bitrate"
        bitrate = "%s%d kBit/s" % (
            ">= " if self.bitrate == 0xFF else "", self.bitrate)

        if self.lowpass_filter:
            lowpass = "%d00 Hz" % self.lowpass_filter
        else:
            lowpass = "unknown"

        if self.mp3_gain:
            mp3_gain = "%+.0f dB" % self.mp3_gain
        else:
            mp3_gain = "none"

        flags = []
        if self.encoding_flags & EncodingFlags.NSPSYTUNE:
            flags.append("nspsytune")
        if self.encoding_flags & EncodingFlags.NSSAFEJOINT:
            flags.append("nssafejoint")
        if self.encoding_flags & (EncodingFlags.NOGAP_NEXT |
                                  EncodingFlags.NOGAP_PREV):
            nogap = "nogap"
            if self.encoding_flags & EncodingFlags.NOGAP_PREV:
                nogap += "<"
            if self.encoding_flags & EncodingFlags.NOGAP_NEXT:
                nogap += ">"
            flags.append(nogap)

        tag_crc = "%04X" % self.tag_crc
        music_crc = "%04X" % self.music_crc
        if result is not None:
            tag_crc += " (%s)" % _crc_state(result.header_crc_ok)
            if result.audio_error is not None:
                music_crc += " (unreadable)"
            elif result.audio_crc_ok is not None:
                music_crc += " (%s)" % _crc_state(result.audio_crc_ok)

        lines = [
            "%s tag (revision %d):" % (self.encoder_name, self.tag_revision),
            row("encoding method", self.method_name, "quality", quality),
            row("stereo mode", self.stereo_mode.name.lower(),
                "source rate",
                _SOURCE_RATE_NAMES[self.source_rate] + " kHz"),
            row(bitrate_key, bitrate,
                "music length", _human_size(self.music_length)),
            row("lowpass", lowpass, "mp3gain", mp3_gain),
            row("ATH type", self.ath_type,
                "encoding flags", " ".join(flags) or "none"),
            row("encoding delay", "%d samples" % self.encoding_delay,
                "padding", "%d samples" % self.padding),
            row("noise shaping", self.noise_shaping,
                "unwise settings", "yes" if self.unwise_settings else "no"),
            row("info tag CRC", tag_crc, "music CRC", music_crc),
            row("ReplayGain: peak", int(self.peak_signal) * 100, "", ""),
            row("track gain", _gain(self.track_gain),
                "album gain", _gain(self.album_gain)),
        ]
        return "\n".join(lines)


def _gain(value):
    # "+6.8 dB", "0 dB", "-3 dB"
    return "%s%g dB" % ("+" if value > 0 else "", value)


def _crc_state(ok):
    return "correct" if ok else "invalid"


def _human_size(size):
    for unit in ("B", "KiB", "MiB"):
        if size < 1024:
            break
        size /= 1024.0
    else:
        unit = "GiB"
    if unit == "B":
        return "%d B" % size
    return "%.2f %s" % (size, unit)


def parse_lame_tag(frame_offset: int, frame: bytes) -> LameTagInfo:
    """Decodes the LAME tag in the frame data `frame` which was read
    from `frame_offset`.

    Raises LAMEHeaderError if the frame doesn't contain one.
    """

    xing_offset, block = find_lame_block(frame)

    encoder = block[_ENCODER]
    old_version = encoder < REPLAYGAIN_REFERENCE_VERSION

    peak_signal = float((cdata.uint32_be(block[_PEAK]) << 5) & 0xFFFFFFFF)
    if not encoder < PEAK_SCALE_VERSION:
        peak_signal = (peak_signal - 0.5) / 8388608.0

    delay_padding = bytearray(block[_DELAY_PADDING])
    encoding_delay = (delay_padding[0] << 4) | (delay_padding[1] >> 4)
    padding = ((delay_padding[1] & 0x0F) << 8) | delay_padding[2]

    mp3_gain = (block[_MP3_GAIN] & 0x7F) * 1.5
    if block[_MP3_GAIN] & 0x80:
        mp3_gain *= -1

    logger.debug("LAME tag %r at frame offset %d", encoder,
                 xing_offset + LAME_OFFSET)

    return LameTagInfo(
        valid=True,
        frame_offset=frame_offset,
        frame_length=len(frame),
        header_data=frame[:HEADER_CRC_SIZE],
        encoder=encoder,
        tag_revision=_bit_field(block, "tag_revision"),
        encoding_method=_bit_field(block, "encoding_method"),
        quality=frame[xing_offset + QUALITY_OFFSET],
        stereo_mode=StereoMode(_bit_field(block, "stereo_mode")),
        source_rate=SourceRate(_bit_field(block, "source_rate")),
        bitrate=_bit_field(block, "bitrate"),
        music_length=cdata.uint32_be(block[_MUSIC_LENGTH]),
        lowpass_filter=_bit_field(block, "lowpass_filter"),
        mp3_gain=mp3_gain,
        ath_type=_bit_field(block, "ath_type"),
        encoding_flags=EncodingFlags(_bit_field(block, "encoding_flags")),
        encoding_delay=encoding_delay,
        padding=padding,
        noise_shaping=_bit_field(block, "noise_shaping"),
        unwise_settings=bool(_bit_field(block, "unwise_settings")),
        tag_crc=cdata.uint16_be(block[_TAG_CRC]),
        music_crc=cdata.uint16_be(block[_MUSIC_CRC]),
        peak_signal=peak_signal,
        track_gain=replay_gain(block[_TRACK_GAIN], old_version),
        album_gain=replay_gain(block[_ALBUM_GAIN], old_version),
    )


def decode(frame_offset: int, frame_length: int, reader) -> LameTagInfo:
    """Decodes the LAME tag of the frame at `frame_offset`.

    `reader` has to provide read_range(offset, length). Never raises
    because of a missing tag, `LameTagInfo.valid` is False in that case.
    """

    invalid = LameTagInfo(frame_offset=frame_offset,
                          frame_length=frame_length)

    if frame_offset < 0 or frame_length <= 0:
        return invalid

    try:
        frame = reader.read_range(frame_offset, frame_length)
    except OSError as e:
        logger.debug("Reading frame at %d failed: %s", frame_offset, e)
        return invalid

    if len(frame) != frame_length:
        logger.debug("Short read of frame at %d", frame_offset)
        return invalid

    try:
        return parse_lame_tag(frame_offset, frame)
    except LAMEHeaderError as e:
        logger.debug("No LAME tag in frame at %d: %s", frame_offset, e)
        return invalid

# Copyright 2005 Joe Wreschnig
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 2 of the License, or
# (at your option) any later version.

"""Print the LAME tag of MP3 files."""

from __future__ import annotations

import argparse
import logging
import sys

from ._util import SignalHandler, setup_logging

_sig = SignalHandler()

logger = logging.getLogger(__name__)


class Arguments(argparse.Namespace):
    check_crc: bool = False
    verbose: bool = False
    files: list[str] = []


def main(argv: list[str]) -> int:
    import lametag

    parser = argparse.ArgumentParser(usage="%(prog)s [options] FILE [FILE...]")
    _ = parser.add_argument(
        "--version", action="version",
        version=f"lametag {lametag.version_string}")
    _ = parser.add_argument(
        "-c", "--check-crc", action="store_true",
        help="verify the CRC checksums (slower, reads the whole file)")
    _ = parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="print debug messages")
    _ = parser.add_argument(
        "files", nargs="+", metavar="FILE", help="Files to inspect")

    args = parser.parse_args(argv[1:], namespace=Arguments())
    setup_logging(args.verbose)

    status = 0
    for filename in args.files:
        print("--", filename)
        try:
            mp3 = lametag.File(filename, check_crc=args.check_crc)
        except lametag.LameTagError as err:
            logger.debug("Loading %s failed", filename, exc_info=True)
            print(str(err))
            status = 1
        else:
            print(mp3.pprint())
            if mp3.result is not None and mp3.result.audio_error is not None:
                status = 1
        print("")

    return status


def entry_point() -> None:
    _sig.init()
    sys.exit(main(sys.argv))

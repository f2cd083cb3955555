# Copyright 2015 Christoph Reiter
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 2 of the License, or
# (at your option) any later version.

from __future__ import annotations

import logging
import os
import signal
import sys
from types import FrameType


class SignalHandler:

    def init(self) -> None:
        _ = signal.signal(signal.SIGINT, self._handler)
        _ = signal.signal(signal.SIGTERM, self._handler)
        if os.name != "nt":
            _ = signal.signal(signal.SIGHUP, self._handler)

    def _handler(self, signum: int, frame: FrameType | None) -> None:
        raise SystemExit("Aborted...")


def setup_logging(verbose: bool) -> None:
    """Sends library log messages to stderr"""

    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(name)s: %(message)s")

import os
import sys

import afl
from fuzztools import run_all

# one MPEG-1 Layer III frame header followed by an empty Xing frame
SMOKE = b"\xff\xfb\x90\x64" + b"\x00" * 32 + b"Xing" + b"\x00" * 377


def main():
    run_all(SMOKE)

    buffer = sys.stdin.buffer
    while afl.loop(1000):
        try:
            run_all(buffer.read())
        finally:
            buffer.seek(0)


if __name__ == '__main__':
    main()
    os._exit(0)

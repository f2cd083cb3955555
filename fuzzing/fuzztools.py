from io import BytesIO

from lametag import File, FileRangeReader, FileThing, LameTagError
from lametag import decode, find_first_frame, verify


def run_reader(data):
    reader = FileRangeReader(BytesIO(data))
    frame = find_first_frame(reader)
    if frame is None:
        return

    info = decode(frame.offset, frame.length, reader)
    if not info.valid:
        return

    info.pprint()
    result = verify(info, reader, chunk_size=64)
    info.pprint(result)


def run_file(data):
    fileobj = BytesIO(data)
    try:
        res = File(FileThing(fileobj, "fuzz.mp3", "fuzz.mp3"), check_crc=True)
    except LameTagError:
        return
    res.pprint()


def run_frame(data):
    # treat the input as the first frame, starting at offset 0
    reader = FileRangeReader(BytesIO(data))
    info = decode(0, len(data), reader)
    if info.valid:
        verify(info, reader, check_audio=False)


def run_all(data):
    run_reader(data)
    run_file(data)
    run_frame(data)


def group_crashes(result_path):
    """Re-checks all errors, and groups them by stack trace
    and error type.
    """

    crash_paths = []
    pattern = os.path.join(result_path, '**', 'crashes', '*')
    for path in glob.glob(pattern):
        if os.path.splitext(path)[-1] == ".txt":
            continue
        crash_paths.append(path)

    if not crash_paths:
        print("No crashes found")
        return

    def norm_exc():
        lines = traceback.format_exc().splitlines()
        if ":" in lines[-1]:
            lines[-1], message = lines[-1].split(":", 1)
        else:
            message = ""
        return "\n".join(lines), message.strip()

    traces = {}
    messages = {}
    for path in crash_paths:
        with open(path, "rb") as h:
            data = h.read()
        try:
            run_all(data)
        except Exception:
            trace, message = norm_exc()
            messages.setdefault(trace, set()).add(message)
            traces.setdefault(trace, []).append(path)

    for trace, paths in traces.items():
        print('-' * 80)
        print("\n".join(paths))
        print()
        print(textwrap.indent(trace, '    '))
        print(messages[trace])

    print("%d crashes with %d traces" % (len(crash_paths), len(traces)))


if __name__ == '__main__':
    import sys
    import glob
    import os
    import traceback
    import textwrap
    group_crashes(sys.argv[1])

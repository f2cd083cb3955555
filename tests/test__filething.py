import os
from io import BytesIO

from lametag._filething import FileRangeReader, FileThing, open_filething

from tests import TestCase, get_temp_file


class TFileRangeReader(TestCase):

    def setUp(self):
        self.fileobj = BytesIO(bytes(range(100)))
        self.reader = FileRangeReader(self.fileobj)

    def test_read_range(self):
        self.assertEqual(self.reader.read_range(10, 3), b"\x0a\x0b\x0c")
        self.assertEqual(self.reader.read_range(0, 0), b"")

    def test_short_read(self):
        self.assertEqual(self.reader.read_range(98, 10), b"\x62\x63")
        self.assertEqual(self.reader.read_range(100, 10), b"")
        self.assertEqual(self.reader.read_range(1000, 10), b"")

    def test_negative(self):
        self.assertRaises(ValueError, self.reader.read_range, -1, 4)
        self.assertRaises(ValueError, self.reader.read_range, 0, -4)

    def test_keeps_position(self):
        self.fileobj.seek(42)
        self.reader.read_range(0, 50)
        self.assertEqual(self.fileobj.tell(), 42)
        self.assertEqual(self.reader.size(), 100)
        self.assertEqual(self.fileobj.tell(), 42)

    def test_size(self):
        self.assertEqual(FileRangeReader.from_bytes(b"").size(), 0)
        self.assertEqual(self.reader.size(), 100)

    def test_from_bytes(self):
        reader = FileRangeReader.from_bytes(b"abc")
        self.assertEqual(reader.read_range(1, 5), b"bc")


class Topen_filething(TestCase):

    def setUp(self):
        self.filename = get_temp_file(b"\x00" * 10)

    def tearDown(self):
        os.unlink(self.filename)

    def test_open(self):
        filething = open_filething(self.filename)
        try:
            self.assertTrue(isinstance(filething, FileThing))
            self.assertEqual(filething.filename, self.filename)
            self.assertEqual(filething.name, self.filename)
            self.assertEqual(filething.fileobj.read(), b"\x00" * 10)
        finally:
            filething.fileobj.close()

    def test_bytes_path(self):
        filething = open_filething(os.fsencode(self.filename))
        try:
            self.assertEqual(filething.filename, os.fsencode(self.filename))
            self.assertEqual(filething.name, self.filename)
        finally:
            filething.fileobj.close()

    def test_missing(self):
        self.assertRaises(IOError, open_filething, self.filename + ".nope")

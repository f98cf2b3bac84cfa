import unittest

from gdriveupload.util.mime import FOLDER_MIME, is_folder
from gdriveupload.util.validation import is_valid_email, parse_speed


class TestParseSpeed(unittest.TestCase):
    def test_units_are_binary(self) -> None:
        self.assertEqual(parse_speed("1K"), 1024)
        self.assertEqual(parse_speed("512k"), 512 * 1024)
        self.assertEqual(parse_speed("2M"), 2 * 1024 * 1024)
        self.assertEqual(parse_speed("1g"), 1024**3)

    def test_invalid_formats(self) -> None:
        for value in ("", "10", "1KB", "K", "1.5M", "-1M", "0M"):
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    parse_speed(value)


class TestEmail(unittest.TestCase):
    def test_valid(self) -> None:
        self.assertTrue(is_valid_email("alice@example.com"))
        self.assertTrue(is_valid_email("a.b+tag@mail.example.co"))

    def test_invalid(self) -> None:
        for value in ("", "alice", "alice@", "@example.com", "alice@example", "1a@example.com"):
            with self.subTest(value=value):
                self.assertFalse(is_valid_email(value))


class TestMime(unittest.TestCase):
    def test_is_folder(self) -> None:
        self.assertTrue(is_folder(FOLDER_MIME))
        self.assertFalse(is_folder("text/plain"))


if __name__ == "__main__":
    unittest.main()

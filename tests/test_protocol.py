"""
Unit tests for the serial line protocol

Tests framer.py line splitting and protocol.py classification
"""

import random
import unittest

from vl53monitor.serial.framer import LineFramer
from vl53monitor.serial.protocol import (
    Data,
    IgnoreReason,
    Ignored,
    Meta,
    MetaKind,
    classify,
    parse_start_hz,
)


STREAM = (
    "ESP-ROM:esp32s3-20210327\r\n"
    "# READY\r\n"
    "# START hz=50\n"
    "1000,523\r\n"
    "1020,525\n"
    "\n"
    "# STOP\r\n"
)

EXPECTED_LINES = [
    "ESP-ROM:esp32s3-20210327",
    "# READY",
    "# START hz=50",
    "1000,523",
    "1020,525",
    "",
    "# STOP",
]


def feed_in_chunks(chunks):
    framer = LineFramer()
    lines = []
    for chunk in chunks:
        lines.extend(framer.feed(chunk))
    lines.extend(framer.flush())
    return lines


class TestLineFramer(unittest.TestCase):
    """Test line framing"""

    def test_single_chunk(self):
        """Whole stream in one chunk"""
        self.assertEqual(feed_in_chunks([STREAM]), EXPECTED_LINES)

    def test_byte_by_byte(self):
        """One character per chunk"""
        self.assertEqual(feed_in_chunks(list(STREAM)), EXPECTED_LINES)

    def test_every_two_way_split(self):
        """Same lines for every split point of the stream"""
        for i in range(len(STREAM) + 1):
            with self.subTest(split=i):
                lines = feed_in_chunks([STREAM[:i], STREAM[i:]])
                self.assertEqual(lines, EXPECTED_LINES)

    def test_random_splits(self):
        """Same lines for random chunkings"""
        rng = random.Random(1234)
        for _ in range(200):
            cuts = sorted(rng.sample(range(1, len(STREAM)), rng.randint(1, 12)))
            chunks = [STREAM[a:b] for a, b in zip([0] + cuts, cuts + [len(STREAM)])]
            self.assertEqual(feed_in_chunks(chunks), EXPECTED_LINES)

    def test_crlf_split_across_chunks(self):
        """CR at the end of one chunk, LF at the start of the next"""
        framer = LineFramer()
        self.assertEqual(framer.feed("1000,523\r"), [])
        self.assertEqual(framer.feed("\n1020"), ["1000,523"])
        self.assertEqual(framer.pending, "1020")

    def test_no_trailing_cr(self):
        """No emitted line ends with a carriage return"""
        lines = feed_in_chunks(["a\r\nb\r", "\nc\r\n"])
        self.assertEqual(lines, ["a", "b", "c"])
        for line in lines:
            self.assertFalse(line.endswith("\r"))

    def test_repeated_cr_stripped(self):
        """Several carriage returns before the newline"""
        framer = LineFramer()
        self.assertEqual(framer.feed("abc\r\r\n1000,523\r\r"), ["abc"])
        self.assertEqual(framer.flush(), ["1000,523"])

    def test_partial_line_carried_over(self):
        """Unterminated text waits for its terminator"""
        framer = LineFramer()
        self.assertEqual(framer.feed("10"), [])
        self.assertEqual(framer.feed("00,5"), [])
        self.assertEqual(framer.feed("23\n"), ["1000,523"])
        self.assertEqual(framer.pending, "")

    def test_flush_emits_remainder(self):
        """flush() hands out the unterminated tail once"""
        framer = LineFramer()
        framer.feed("1000,523\n1020,5")
        self.assertEqual(framer.flush(), ["1020,5"])
        self.assertEqual(framer.flush(), [])

    def test_flush_empty(self):
        """flush() with nothing buffered emits nothing"""
        framer = LineFramer()
        framer.feed("1000,523\n")
        self.assertEqual(framer.flush(), [])

    def test_empty_chunk(self):
        """Empty chunks are harmless"""
        framer = LineFramer()
        self.assertEqual(framer.feed(""), [])
        self.assertEqual(framer.pending, "")

    def test_reset(self):
        """reset() drops buffered text"""
        framer = LineFramer()
        framer.feed("partial")
        framer.reset()
        self.assertEqual(framer.flush(), [])


class TestClassifier(unittest.TestCase):
    """Test line classification"""

    def test_data_line(self):
        """t_ms,dist_mm line"""
        self.assertEqual(classify("1000,523"), Data(time_ms=1000, distance_mm=523))

    def test_data_line_with_spaces(self):
        """Whitespace around the comma"""
        self.assertEqual(classify("1000 ,  523"), Data(time_ms=1000, distance_mm=523))

    def test_data_line_with_trailing_fields(self):
        """Extra fields after the pair are tolerated"""
        result = classify("1000,523,12")
        self.assertEqual(result, Data(time_ms=1000, distance_mm=523))

    def test_bare_integer(self):
        """Legacy bare mm line has no device timestamp"""
        result = classify("523")
        self.assertIsInstance(result, Data)
        self.assertIsNone(result.time_ms)
        self.assertEqual(result.distance_mm, 523)
        self.assertTrue(result.is_legacy)

    def test_bare_integer_with_whitespace(self):
        """Legacy line with surrounding whitespace"""
        self.assertEqual(classify(" 523 "), Data(distance_mm=523))

    def test_meta_lines(self):
        """Status lines keep their payload and get a kind"""
        cases = {
            "# READY": MetaKind.READY,
            "# START hz=25": MetaKind.START,
            "# STOP": MetaKind.STOP,
            "# RESET done": MetaKind.RESET,
            "# CAL OK offset=12": MetaKind.CAL,
            "# OFFSET -7 mm": MetaKind.CAL,
            "# VL53L0X init ok": MetaKind.OTHER,
        }
        for line, kind in cases.items():
            with self.subTest(line=line):
                self.assertEqual(classify(line), Meta(payload=line, kind=kind))

    def test_boot_noise(self):
        """Bootloader output is dropped"""
        for line in ("ESP-ROM:esp32c3-api1-20210207", "rst:0x1 (POWERON)",
                     "load:0x3fce3810,len:0x178c", "entry 0x403c98d4"):
            with self.subTest(line=line):
                result = classify(line)
                self.assertIsInstance(result, Ignored)
                self.assertEqual(result.reason, IgnoreReason.BOOT_NOISE)

    def test_custom_boot_prefixes(self):
        """Boot prefixes are configurable"""
        result = classify("BOOT v1.2", boot_prefixes=("BOOT",))
        self.assertEqual(result.reason, IgnoreReason.BOOT_NOISE)

    def test_empty_line(self):
        """Blank lines are ignored"""
        self.assertEqual(classify("").reason, IgnoreReason.EMPTY)
        self.assertEqual(classify("   ").reason, IgnoreReason.EMPTY)

    def test_unrecognized(self):
        """Garbage is ignored, not raised"""
        for line in ("hello", "-5,10", "12.5", "1000;523", ",523", "abc,123"):
            with self.subTest(line=line):
                result = classify(line)
                self.assertIsInstance(result, Ignored)
                self.assertEqual(result.reason, IgnoreReason.UNRECOGNIZED)
                self.assertEqual(result.line, line)

    def test_classify_is_pure(self):
        """Same input, same result, no matter what was classified before"""
        lines = ["1000,523", "# READY", "523", "junk", "ESP-ROM:x"]
        first = [classify(line) for line in lines]
        for line in reversed(lines):
            classify(line)
        second = [classify(line) for line in lines]
        self.assertEqual(first, second)

    def test_parse_start_hz(self):
        """Rate extracted from START confirmation"""
        self.assertEqual(parse_start_hz("# START hz=25"), 25)
        self.assertEqual(parse_start_hz("# START HZ = 10"), 10)
        self.assertIsNone(parse_start_hz("# START"))


if __name__ == '__main__':
    unittest.main()

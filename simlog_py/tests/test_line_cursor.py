from __future__ import annotations

import unittest

from simlog_py.parsing.line_cursor import LineCursor


class TestLineCursor(unittest.TestCase):
    def test_truncated_final_line_waits_for_more_data(self) -> None:
        partial = LineCursor("S 0 play_on\nb 1.5", partial=True)
        self.assertEqual(partial.next(), "S 0 play_on")
        self.assertIsNone(partial.next())

        complete = LineCursor("S 0 play_on\nb 1.5", partial=False)
        self.assertEqual(complete.next(), "S 0 play_on")
        self.assertEqual(complete.next(), "b 1.5")
        self.assertIsNone(complete.next())

    def test_terminated_final_line_is_reported_in_partial_mode(self) -> None:
        cursor = LineCursor("a\r\nb\n", partial=True)
        self.assertEqual(cursor.next(), "a")
        self.assertEqual(cursor.next(), "b")
        self.assertIsNone(cursor.next())
        self.assertEqual(cursor.line_no, 2)

    def test_empty_lines_are_skipped(self) -> None:
        cursor = LineCursor("\n\na\n\n\nb")
        self.assertEqual([cursor.next(), cursor.next(), cursor.next()], ["a", "b", None])

    def test_incremental_update_continues_truncated_line(self) -> None:
        cursor = LineCursor("ab\ncd", partial=True)
        self.assertEqual(cursor.next(), "ab")
        self.assertIsNone(cursor.next())

        self.assertTrue(cursor.update("e\nf", partial=True, incremental=True))
        self.assertEqual(cursor.next(), "cde")
        self.assertIsNone(cursor.next())

        cursor.update("", partial=False, incremental=True)
        self.assertEqual(cursor.next(), "f")

    def test_replacing_update_keeps_scan_position(self) -> None:
        cursor = LineCursor("ab\ncd", partial=True)
        self.assertEqual(cursor.next(), "ab")
        self.assertIsNone(cursor.next())

        cursor.update("ab\ncdef\ngh\n", partial=True)
        self.assertEqual(cursor.next(), "cdef")
        self.assertEqual(cursor.next(), "gh")

    def test_update_reports_whether_cursor_ran_dry(self) -> None:
        cursor = LineCursor("a\nb\n")
        cursor.next()
        self.assertFalse(cursor.update("a\nb\nc\n"))

    def test_rewind_restarts_from_beginning(self) -> None:
        cursor = LineCursor("a\nb\n")
        cursor.next()
        cursor.next()
        cursor.rewind()
        self.assertEqual(cursor.position, 0)
        self.assertEqual(cursor.next(), "a")
        self.assertEqual(cursor.line_no, 1)

    def test_has_next_does_not_advance(self) -> None:
        cursor = LineCursor("a\n")
        self.assertTrue(cursor.has_next())
        self.assertEqual(cursor.next(), "a")
        self.assertFalse(cursor.has_next())


if __name__ == "__main__":
    unittest.main()

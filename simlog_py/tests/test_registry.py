from __future__ import annotations

import unittest

from simlog_py.core.registry import create_decoder, decoder_name_for, register_builtin_decoders
from simlog_py.core.tasks import TaskQueue
from simlog_py.decoders.replay import ReplayDecoder
from simlog_py.decoders.ulg import ULGDecoder


class TestRegistry(unittest.TestCase):
    def setUp(self) -> None:
        register_builtin_decoders()

    def test_builtin_decoders_resolve(self) -> None:
        self.assertIsInstance(create_decoder("replay"), ReplayDecoder)
        self.assertIsInstance(create_decoder(" ULG "), ULGDecoder)

        queue = TaskQueue()
        decoder = create_decoder("ulg", queue=queue)
        self.assertIs(decoder.queue, queue)

    def test_unknown_decoder_raises_helpful_error(self) -> None:
        with self.assertRaises(ValueError) as ctx:
            create_decoder("does-not-exist")
        self.assertIn("Unknown decoder", str(ctx.exception))
        self.assertIn("replay", str(ctx.exception))

    def test_decoder_selection_by_file_name(self) -> None:
        self.assertEqual(decoder_name_for("game.rcg"), "ulg")
        self.assertEqual(decoder_name_for("GAME.RCG.GZ"), "ulg")
        self.assertEqual(decoder_name_for("match.replay"), "replay")
        self.assertEqual(decoder_name_for("match.rpl2d.gz"), "replay")
        self.assertEqual(decoder_name_for("https://example.org/logs/final.rpl3d?raw=1"), "replay")

        with self.assertRaises(ValueError):
            decoder_name_for("notes.txt")
        with self.assertRaises(ValueError):
            decoder_name_for("game.rcg.bak?x=.rcg")


if __name__ == "__main__":
    unittest.main()

from __future__ import annotations

import argparse
import tempfile
import unittest
from pathlib import Path

import yaml

from simlog_py.core.config import (
    DEFAULT_CONFIG_PATH,
    config_from_args,
    default_decoder_config,
    load_decoder_config,
    normalize_decoder_config,
)


class TestDecoderConfig(unittest.TestCase):
    def test_packaged_defaults(self) -> None:
        self.assertTrue(DEFAULT_CONFIG_PATH.exists())
        cfg = default_decoder_config()
        self.assertEqual(cfg.replay_2d_batch, 300)
        self.assertEqual(cfg.replay_3d_batch, 50)
        self.assertEqual(cfg.ulg_batch, 100)
        self.assertEqual(cfg.log_level, "INFO")

    def test_missing_file_gives_empty_config(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            self.assertEqual(load_decoder_config(Path(d) / "missing.yaml"), {})

    def test_yaml_values_and_cli_overrides(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            cfg_path = Path(d) / "decoder.yaml"
            cfg_path.write_text(
                yaml.safe_dump(
                    {
                        "batch": {"replay_2d": 10, "ulg": 20},
                        "max_diagnostics": 5,
                        "loader": {"chunk_size": 4096},
                        "logging": {"level": "warning"},
                    }
                ),
                encoding="utf-8",
            )

            args = argparse.Namespace(config=str(cfg_path), chunk_size=None, log_level=None)
            cfg = config_from_args(args)
            self.assertEqual(cfg.config_path, cfg_path)
            self.assertEqual(cfg.replay_2d_batch, 10)
            self.assertEqual(cfg.replay_3d_batch, 50)
            self.assertEqual(cfg.ulg_batch, 20)
            self.assertEqual(cfg.max_diagnostics, 5)
            self.assertEqual(cfg.chunk_size, 4096)
            self.assertEqual(cfg.log_level, "WARNING")

            args = argparse.Namespace(config=str(cfg_path), chunk_size=0, log_level="debug")
            cfg = config_from_args(args)
            self.assertEqual(cfg.chunk_size, 1)
            self.assertEqual(cfg.log_level, "DEBUG")

    def test_empty_sections(self) -> None:
        cfg = normalize_decoder_config({"batch": None, "loader": None})
        self.assertEqual(cfg.replay_2d_batch, 300)
        self.assertEqual(cfg.chunk_size, 65536)
        self.assertIsNone(cfg.config_path)


if __name__ == "__main__":
    unittest.main()

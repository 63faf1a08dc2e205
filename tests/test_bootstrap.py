from __future__ import annotations

import datetime as dt
import tempfile
import unittest
from pathlib import Path

from bootstrap import build_engine
from storage.local_store import (
    DEFAULT_ROLLOVER_INTERVAL_SECONDS,
    DEFAULT_STORE_PATH,
    LocalStoreConfig,
    config_from_mapping,
)


class ConfigTests(unittest.TestCase):
    def test_defaults(self):
        cfg = config_from_mapping(None, env={})
        self.assertEqual(cfg.store_path, DEFAULT_STORE_PATH)
        self.assertEqual(cfg.rollover_interval_seconds, DEFAULT_ROLLOVER_INTERVAL_SECONDS)

    def test_env_overrides_secrets_path(self):
        cfg = config_from_mapping({"store_path": "/a.json"}, env={"KOENAWIN_STORE_PATH": "/b.json"})
        self.assertEqual(cfg.store_path, "/b.json")

    def test_bad_interval_falls_back(self):
        self.assertEqual(config_from_mapping({"rollover_interval_seconds": "x"}, env={}).rollover_interval_seconds, 60)
        self.assertEqual(config_from_mapping({"rollover_interval_seconds": 0}, env={}).rollover_interval_seconds, 60)
        self.assertEqual(config_from_mapping({"rollover_interval_seconds": 30}, env={}).rollover_interval_seconds, 30)


class BuildEngineTests(unittest.TestCase):
    def test_engine_survives_restart(self):
        with tempfile.TemporaryDirectory() as tmp:
            cfg = LocalStoreConfig(store_path=str(Path(tmp) / "progress.json"))
            engine = build_engine(cfg)
            monday = dt.date(2024, 1, 1)
            engine.set_start_date(monday)
            engine.set_practice_mode(9)
            engine.complete_cycle()

            again = build_engine(cfg)
            self.assertEqual(again.start_date, monday)
            self.assertEqual(int(again.practice_mode), 9)
            self.assertEqual(again.cycles_completed_today, 1)


if __name__ == "__main__":
    unittest.main()

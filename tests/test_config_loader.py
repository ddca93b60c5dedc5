import os
import unittest
from unittest.mock import patch

from infra.config_loader import load_config


class LoadConfigTests(unittest.TestCase):
    def test_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            cfg = load_config()
        self.assertEqual(cfg["log_level"], "INFO")
        self.assertIsNone(cfg["log_dir"])
        self.assertFalse(cfg["live_update"])
        self.assertGreaterEqual(cfg["scan_workers"], 1)
        self.assertEqual(cfg["max_artifact_bytes"], 5_000_000)

    def test_environment_overrides(self) -> None:
        env = {
            "LOGLENS_LOG_LEVEL": "debug",
            "LOGLENS_LOG_DIR": "/var/log/loglens",
            "LOGLENS_SCAN_WORKERS": "3",
            "LOGLENS_WATCH_DEBOUNCE_MS": "500",
            "LOGLENS_WATCH_JOIN_TIMEOUT": "0.5",
            "LOGLENS_LIVE_UPDATE": "yes",
        }
        with patch.dict(os.environ, env, clear=True):
            cfg = load_config()
        self.assertEqual(cfg["log_level"], "DEBUG")
        self.assertEqual(cfg["log_dir"], "/var/log/loglens")
        self.assertEqual(cfg["scan_workers"], 3)
        self.assertEqual(cfg["watch_debounce_ms"], 500)
        self.assertEqual(cfg["watch_join_timeout"], 0.5)
        self.assertTrue(cfg["live_update"])

    def test_malformed_numbers_keep_defaults(self) -> None:
        with patch.dict(os.environ, {"LOGLENS_SCAN_WORKERS": "many", "LOGLENS_WATCH_JOIN_TIMEOUT": "soon"}, clear=True):
            cfg = load_config()
        self.assertEqual(cfg["scan_workers"], min(32, (os.cpu_count() or 1) + 4))
        self.assertEqual(cfg["watch_join_timeout"], 2.0)

    def test_zero_workers_is_clamped(self) -> None:
        with patch.dict(os.environ, {"LOGLENS_SCAN_WORKERS": "0"}, clear=True):
            self.assertEqual(load_config()["scan_workers"], 1)

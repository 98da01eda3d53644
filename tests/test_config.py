from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from app.config import DEFAULT_CONFIG, deep_merge, load_config


class ConfigTest(unittest.TestCase):
    def test_missing_or_empty_file_returns_defaults(self) -> None:
        self.assertIs(load_config(None), DEFAULT_CONFIG)
        self.assertIs(load_config("does/not/exist.yaml"), DEFAULT_CONFIG)
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.yaml"
            path.write_text("  \n", encoding="utf-8")
            self.assertIs(load_config(str(path)), DEFAULT_CONFIG)

    def test_yaml_overrides_are_merged(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.yaml"
            path.write_text(
                "engine:\n  start_path: /menu\nsession_store:\n  backend: dynamodb\n  dynamodb:\n    region: af-south-1\n",
                encoding="utf-8",
            )
            config = load_config(str(path))

        self.assertEqual(config["engine"]["start_path"], "/menu")
        self.assertEqual(config["engine"]["session_ttl_seconds"], 60)
        self.assertEqual(config["session_store"]["backend"], "dynamodb")
        self.assertEqual(config["session_store"]["dynamodb"]["region"], "af-south-1")
        self.assertEqual(config["session_store"]["dynamodb"]["table_name"], "ussdflow-sessions")
        self.assertEqual(DEFAULT_CONFIG["engine"]["start_path"], "/home")

    def test_json_config_is_supported(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text(json.dumps({"transport": {"emulator_enabled": False}}), encoding="utf-8")
            config = load_config(str(path))

        self.assertFalse(config["transport"]["emulator_enabled"])
        self.assertEqual(config["transport"]["endpoints"]["generic"], "/ussd")

    def test_non_mapping_document_falls_back_to_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.yaml"
            path.write_text("- just\n- a list\n", encoding="utf-8")
            self.assertEqual(load_config(str(path)), DEFAULT_CONFIG)

    def test_deep_merge_replaces_non_dict_values(self) -> None:
        merged = deep_merge({"a": {"b": 1, "c": 2}, "d": [1]}, {"a": {"b": 3}, "d": [2], "e": 5})
        self.assertEqual(merged, {"a": {"b": 3, "c": 2}, "d": [2], "e": 5})


if __name__ == "__main__":
    unittest.main()

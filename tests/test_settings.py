import os
import sys
import unittest

import yaml

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from config import YamlConfig
from db import SettingsRepository
from settings_schema import validate_settings


class YamlConfigTest(unittest.TestCase):
    def setUp(self) -> None:
        self.path = "test_config.yaml"
        if os.path.exists(self.path):
            os.remove(self.path)
        os.environ.pop("WORKOUT_TZ", None)

    def tearDown(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)
        os.environ.pop("WORKOUT_TZ", None)

    def test_save_and_load(self) -> None:
        cfg = YamlConfig(self.path)
        self.assertEqual(cfg.load(), {})
        cfg.save({"timezone": "Europe/Berlin", "log_level": "INFO"})
        self.assertEqual(
            cfg.load(), {"timezone": "Europe/Berlin", "log_level": "INFO"}
        )

    def test_env_override(self) -> None:
        cfg = YamlConfig(self.path)
        cfg.save({"timezone": "Europe/Berlin"})
        os.environ["WORKOUT_TZ"] = "Asia/Tokyo"
        self.assertEqual(cfg.load()["timezone"], "Asia/Tokyo")


class ValidateSettingsTest(unittest.TestCase):
    def test_accepts_defaults(self) -> None:
        validate_settings({})
        validate_settings({"timezone": "America/New_York", "log_level": "debug"})

    def test_rejects_bad_values(self) -> None:
        with self.assertRaises(ValueError):
            validate_settings({"timezone": "Mars/Olympus"})
        with self.assertRaises(ValueError):
            validate_settings({"log_level": "LOUD"})


class SettingsRepositoryTest(unittest.TestCase):
    def setUp(self) -> None:
        self.db_path = "test_settings.db"
        self.yaml_path = "test_settings.yaml"
        for path in [self.db_path, self.yaml_path]:
            if os.path.exists(path):
                os.remove(path)

    def tearDown(self) -> None:
        for path in [self.db_path, self.yaml_path]:
            if os.path.exists(path):
                os.remove(path)

    def test_defaults_written_to_yaml(self) -> None:
        repo = SettingsRepository(self.db_path, self.yaml_path)
        self.assertEqual(repo.get_text("timezone", ""), "UTC")
        with open(self.yaml_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        self.assertEqual(data["unknown_type_label"], "Unknown")

    def test_yaml_changes_are_picked_up(self) -> None:
        repo = SettingsRepository(self.db_path, self.yaml_path)
        YamlConfig(self.yaml_path).save({"timezone": "Europe/Paris"})
        self.assertEqual(repo.get_text("timezone", "UTC"), "Europe/Paris")

    def test_set_text_validates(self) -> None:
        repo = SettingsRepository(self.db_path, self.yaml_path)
        repo.set_text("timezone", "Asia/Tokyo")
        self.assertEqual(repo.get_text("timezone", "UTC"), "Asia/Tokyo")
        with self.assertRaises(ValueError):
            repo.set_text("timezone", "Nowhere/Land")
        self.assertEqual(repo.get_text("timezone", "UTC"), "Asia/Tokyo")

    def test_int_settings(self) -> None:
        repo = SettingsRepository(self.db_path, self.yaml_path)
        repo.set_int("week_goal", 4)
        self.assertEqual(repo.get_int("week_goal", 0), 4)
        self.assertEqual(repo.get_int("missing", 7), 7)


if __name__ == "__main__":
    unittest.main()

import tempfile
import unittest
from pathlib import Path

from room_calendar import WorkWeekPolicy
from room_calendar.config import DATA_DIR_ENV, POLICY_FILE_ENV, load_policy, load_settings


class TestConfig(unittest.TestCase):
    def test_defaults_without_environment(self) -> None:
        settings = load_settings({})

        self.assertEqual(settings.data_dir, Path("data"))
        self.assertEqual(settings.policy, WorkWeekPolicy())

    def test_loads_policy_file_from_environment(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            policy_path = Path(temp_dir) / "policy.yaml"
            policy_path.write_text("end_hour: 18\nholiday_country: de\n", encoding="utf-8")

            settings = load_settings({DATA_DIR_ENV: temp_dir, POLICY_FILE_ENV: str(policy_path)})

            self.assertEqual(settings.data_dir, Path(temp_dir))
            self.assertEqual(settings.policy.end_hour, 18)
            self.assertEqual(settings.policy.holiday_country, "DE")
            self.assertEqual(settings.policy.start_hour, 9)

    def test_rejects_unknown_keys_and_bad_values(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            policy_path = Path(temp_dir) / "policy.yaml"
            for content in ("rooms: 3\n", "start_hour: nine\n", "- 1\n- 2\n", "start_hour: 18\n"):
                with self.subTest(content=content):
                    policy_path.write_text(content, encoding="utf-8")
                    with self.assertRaises(ValueError):
                        load_policy(policy_path)

    def test_missing_policy_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_policy(Path("does-not-exist.yaml"))


if __name__ == "__main__":
    unittest.main()

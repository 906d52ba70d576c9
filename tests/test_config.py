import shutil
import tempfile
import unittest
from io import StringIO
from pathlib import Path
from unittest.mock import patch

from batsim.config import AppConfig, load_config
from batsim.models import BatteryConfig, InvalidInputError
from batsim.tariffs import Tariffs


class TestConfig(unittest.TestCase):
    def setUp(self):
        self.test_base_dir = Path(tempfile.mkdtemp())
        self.config_dir = self.test_base_dir / "config"
        self.data_dir = self.test_base_dir / "data"
        dirs = {"config": self.config_dir, "data": self.data_dir}
        self.dir_patch = patch("batsim.config._get_default_dir", side_effect=lambda dir_type: dirs[dir_type])
        self.dir_patch.start()

    def tearDown(self):
        self.dir_patch.stop()
        shutil.rmtree(self.test_base_dir)

    def test_missing_config_without_prompt(self):
        with self.assertRaises(FileNotFoundError):
            load_config(prompt_for_missing=False)

    def test_prompt_creates_config_with_defaults(self):
        with patch("builtins.input", return_value=""), patch("sys.stdout", new_callable=StringIO):
            app_cfg = load_config()

        self.assertEqual(app_cfg.config_dir, self.config_dir.resolve())
        self.assertTrue(app_cfg.config_file.is_file())
        self.assertEqual(app_cfg.battery, BatteryConfig())
        self.assertEqual(app_cfg.tariffs, Tariffs())

    def test_save_and_reload(self):
        app_cfg = AppConfig(
            config_dir=self.config_dir,
            data_dir=self.data_dir,
            battery=BatteryConfig(capacity_kwh=10.0, max_charge_rate_kw=5.0, initial_soc_percent=50.0),
            tariffs=Tariffs(import_price=0.3, export_price=0.05),
        )
        app_cfg.save()

        loaded = load_config(prompt_for_missing=False)
        self.assertEqual(loaded.data_dir, self.data_dir)
        self.assertEqual(loaded.battery.capacity_kwh, 10.0)
        self.assertEqual(loaded.battery.max_charge_rate_kw, 5.0)
        self.assertEqual(loaded.battery.max_discharge_rate_kw, 7.0)
        self.assertEqual(loaded.battery.initial_soc_percent, 50.0)
        self.assertEqual(loaded.tariffs.import_price, 0.3)

    def test_partial_battery_section_keeps_defaults(self):
        self.config_dir.mkdir(parents=True)
        (self.config_dir / "config.ini").write_text(
            f"[paths]\nconfig_dir = {self.config_dir}\ndata_dir = {self.data_dir}\n\n[battery]\ncapacity_kwh = 5\n",
            encoding="utf-8",
        )
        loaded = load_config(prompt_for_missing=False)
        self.assertEqual(loaded.battery.capacity_kwh, 5.0)
        self.assertEqual(loaded.battery.cost, 7500.0)

    def test_invalid_number_in_config(self):
        self.config_dir.mkdir(parents=True)
        (self.config_dir / "config.ini").write_text(
            f"[paths]\nconfig_dir = {self.config_dir}\ndata_dir = {self.data_dir}\n\n[tariffs]\nimport_price = cheap\n",
            encoding="utf-8",
        )
        with self.assertRaises(InvalidInputError):
            load_config(prompt_for_missing=False)


if __name__ == "__main__":
    unittest.main()

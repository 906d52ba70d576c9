# batsim/config.py
import configparser
from dataclasses import dataclass, field
from pathlib import Path

import platformdirs

from .models import BatteryConfig, InvalidInputError
from .tariffs import Tariffs

APP_NAME = "batsim"
CONFIG_FILE_NAME = "config.ini"


@dataclass
class AppConfig:
    """Dataclass to hold all application configuration."""

    config_dir: Path
    data_dir: Path

    battery: BatteryConfig = field(default_factory=BatteryConfig)
    tariffs: Tariffs = field(default_factory=Tariffs)

    @property
    def config_file(self) -> Path:
        """Path to the main INI config file."""
        return self.config_dir / CONFIG_FILE_NAME

    def __post_init__(self):
        """Create directories if they don't exist."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def save(self):
        """Saves the current configuration to the config file."""
        parser = configparser.ConfigParser()
        # Read existing file to preserve other sections if they exist
        if self.config_file.is_file():
            parser.read(self.config_file, encoding="utf-8")

        parser["paths"] = {
            "config_dir": str(self.config_dir),
            "data_dir": str(self.data_dir),
        }
        parser["battery"] = {
            "capacity_kwh": str(self.battery.capacity_kwh),
            "max_charge_rate_kw": str(self.battery.max_charge_rate_kw),
            "max_discharge_rate_kw": str(self.battery.max_discharge_rate_kw),
            "initial_soc_percent": str(self.battery.initial_soc_percent),
            "cost": str(self.battery.cost),
        }
        parser["tariffs"] = {
            "import_price": str(self.tariffs.import_price),
            "export_price": str(self.tariffs.export_price),
        }

        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        with self.config_file.open("w", encoding="utf-8") as f:
            parser.write(f)


def _get_default_dir(dir_type: str) -> Path:
    """
    Determines the default path for app directories based on environment.
    """
    is_dev_env = Path.cwd().joinpath("pyproject.toml").is_file()

    if dir_type == "config":
        return Path.cwd() / "config" if is_dev_env else Path(platformdirs.user_config_dir(APP_NAME, appauthor=False))
    if dir_type == "data":
        return Path.cwd() / "data" if is_dev_env else Path(platformdirs.user_data_dir(APP_NAME, appauthor=False))

    raise ValueError(f"Unknown directory type: {dir_type}")


def _prompt_for_single_path(dir_type: str, description: str) -> Path:
    """Prompts the user for a single directory path with a default."""
    default_dir = _get_default_dir(dir_type)
    while True:
        try:
            path_str = input(f"{description} [{default_dir}]: ")
            path = Path(path_str) if path_str else default_dir
            path = path.expanduser().resolve()
            path.mkdir(parents=True, exist_ok=True)
            print(f"Directory '{dir_type}' set to: {path}")
            return path
        except OSError as e:
            print(f"Cannot create directory: {e}. Please enter a different path.")


def _prompt_for_paths(config_file_path: Path) -> dict:
    """Prompts the user for all required directory paths."""
    print(f"Config file not found or incomplete: {config_file_path}")
    print("Please enter the application directories.")

    config_dir = _prompt_for_single_path("config", "Directory for configuration")
    data_dir = _prompt_for_single_path("data", "Directory with meter CSV exports")

    return {"config_dir": config_dir, "data_dir": data_dir}


def _read_section(parser: configparser.ConfigParser, section: str, names) -> dict:
    """Reads the float options present in a section; absent ones keep their defaults."""
    if not parser.has_section(section):
        return {}
    values = {}
    for name in names:
        if parser.has_option(section, name):
            try:
                values[name] = parser.getfloat(section, name)
            except ValueError:
                raise InvalidInputError(f"Option '{name}' in section [{section}] is not a number.")
    return values


def load_config(prompt_for_missing: bool = True) -> AppConfig:
    """Loads application config, prompting if missing/incomplete."""
    initial_config_dir = _get_default_dir("config")
    config_file = initial_config_dir / CONFIG_FILE_NAME
    parser = configparser.ConfigParser()

    paths = {}

    config_is_valid = False
    if config_file.is_file():
        parser.read(str(config_file), encoding="utf-8")
        if parser.has_section("paths"):
            required_paths = ["config_dir", "data_dir"]
            if all(parser.has_option("paths", p) for p in required_paths):
                paths = {p: Path(parser.get("paths", p)) for p in required_paths}
                config_is_valid = True

    if not config_is_valid:
        if not prompt_for_missing:
            raise FileNotFoundError(f"Config file does not exist or is incomplete: {config_file}")
        paths = _prompt_for_paths(config_file)

    battery = BatteryConfig(**_read_section(parser, "battery", BatteryConfig.__dataclass_fields__))
    tariffs = Tariffs(**_read_section(parser, "tariffs", Tariffs.__dataclass_fields__))

    app_cfg = AppConfig(
        config_dir=paths["config_dir"],
        data_dir=paths["data_dir"],
        battery=battery,
        tariffs=tariffs,
    )

    # Writes the defaults on first run so they can be edited
    app_cfg.save()
    return app_cfg

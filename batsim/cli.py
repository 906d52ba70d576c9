import argparse
import dataclasses
import glob
import gettext
import locale
import os
from pathlib import Path

from .config import load_config
from .core import (
    aggregate_daily_data,
    export_to_csv,
    find_gaps,
    parse_window,
    print_simulation_summary,
    run_capacity_comparison,
    run_simulation,
    steps_to_dataframe,
)
from .data_loader import (
    DEFAULT_CONSUMPTION_COLUMN,
    DEFAULT_DATE_COLUMN,
    DEFAULT_PRODUCTION_COLUMN,
    POWER_UNITS,
    ColumnMapping,
    load_meter_csv,
)
from .models import InvalidInputError
from .tariffs import compare_costs

# --- i18n setup ---
APP_NAME = "batsim"
LOCALE_DIR = Path(__file__).resolve().parent.parent / "locales"

_ = gettext.gettext

try:
    # Attempt to set the locale from the user's environment
    locale.setlocale(locale.LC_ALL, "")
    # Get the language code
    lang_code = locale.getlocale()[0]
    if lang_code:
        # e.g., 'de_CH' -> 'de'
        language = lang_code.split("_")[0]
        # Find the .mo file
        translation = gettext.translation(APP_NAME, localedir=LOCALE_DIR, languages=[language])
        _ = translation.gettext
except (FileNotFoundError, locale.Error, IndexError):
    # Fallback if the .mo file is not found, locale is not supported, or lang_code is empty
    pass


# --- end i18n setup ---


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=_("Home battery simulator for meter data."))

    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "-f",
        "--files",
        nargs="+",
        help=_("List of single data files to simulate."),
    )
    group.add_argument(
        "-d",
        "--directory",
        default=None,
        help=_("Path to the directory with .csv files."),
    )

    parser.add_argument("--date-column", default=DEFAULT_DATE_COLUMN, help=_("Name of the date/time column."))
    parser.add_argument(
        "--consumption-column", default=DEFAULT_CONSUMPTION_COLUMN, help=_("Name of the consumption column.")
    )
    parser.add_argument(
        "--production-column", default=DEFAULT_PRODUCTION_COLUMN, help=_("Name of the production column.")
    )
    parser.add_argument(
        "--meter-column",
        help=_("Name of the net meter column (default: first column containing 'meter')."),
    )
    parser.add_argument(
        "--power-unit",
        default="kW",
        choices=list(POWER_UNITS),
        help=_("Unit of the power columns in the CSV (default: kW)."),
    )

    parser.add_argument("--from", dest="from_date", help=_("Start date of the simulation (format YYYY-MM-DD)."))
    parser.add_argument("--until", dest="until_date", help=_("End date of the simulation (format YYYY-MM-DD)."))

    parser.add_argument("--capacity", type=float, help=_("Battery capacity in kWh (e.g., 13.8)."))
    parser.add_argument("--charge-rate", type=float, help=_("Maximum charge rate in kW."))
    parser.add_argument("--discharge-rate", type=float, help=_("Maximum discharge rate in kW."))
    parser.add_argument("--initial-soc", type=float, help=_("Initial state of charge in percent."))
    parser.add_argument("--battery-cost", type=float, help=_("Battery cost (informational)."))
    parser.add_argument("--import-tariff", type=float, help=_("Price per kWh imported from the grid."))
    parser.add_argument("--export-tariff", type=float, help=_("Price per kWh exported to the grid."))

    parser.add_argument(
        "--export-steps",
        help=_("Path to the CSV file with per-interval simulation results."),
    )
    parser.add_argument(
        "--export-daily",
        help=_("Path to the CSV file with aggregated daily results."),
    )
    parser.add_argument(
        "--compare-capacities",
        type=float,
        nargs="+",
        help=_("Runs the simulation for each of the given capacities (kWh) and compares the costs."),
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help=_("Enables verbose mode for the capacity comparison."),
    )
    return parser


def _override(instance, **values):
    """Replaces the fields given on the command line, keeping configured ones."""
    changes = {k: v for k, v in values.items() if v is not None}
    return dataclasses.replace(instance, **changes) if changes else instance


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        app_cfg = load_config()
    except (InvalidInputError, FileNotFoundError) as e:
        print(_("\nError: {}").format(e))
        return 1

    # Data loading
    if args.files:
        files_to_process = args.files
    else:
        directory = args.directory if args.directory is not None else str(app_cfg.data_dir)
        files_to_process = sorted(glob.glob(os.path.join(directory, "*.csv")))

    if not files_to_process:
        directory_info = args.directory if args.directory is not None else app_cfg.data_dir
        print(_("No .csv files found for processing in: {}").format(directory_info))
        return 1

    print(_("Found {} files to process:").format(len(files_to_process)))
    try:
        mapping = ColumnMapping(
            date=args.date_column,
            consumption=args.consumption_column,
            production=args.production_column,
            meter=args.meter_column,
            power_unit=args.power_unit,
        )
        readings = []
        for file_path in files_to_process:
            readings.extend(load_meter_csv(file_path, mapping))
        readings.sort(key=lambda r: r.timestamp)
        print(_("\nTotal loaded {} records.").format(len(readings)))

        if not readings:
            print(_("No data for the simulation."))
            return 1

        battery = _override(
            app_cfg.battery,
            capacity_kwh=args.capacity,
            max_charge_rate_kw=args.charge_rate,
            max_discharge_rate_kw=args.discharge_rate,
            initial_soc_percent=args.initial_soc,
            cost=args.battery_cost,
        )
        tariffs = _override(app_cfg.tariffs, import_price=args.import_tariff, export_price=args.export_tariff)
        window = parse_window(readings, args.from_date, args.until_date)
    except (InvalidInputError, FileNotFoundError) as e:
        print(_("\nError: {}").format(e))
        return 1

    find_gaps(readings, window)

    # --- Main simulation logic ---
    if args.compare_capacities:
        try:
            run_capacity_comparison(
                readings=readings,
                config=battery,
                window=window,
                tariffs=tariffs,
                capacities=args.compare_capacities,
                verbose=args.verbose,
            )
        except InvalidInputError as e:
            print(_("\nError: {}").format(e))
            return 1
        return 0

    record_steps = bool(args.export_steps or args.export_daily)
    try:
        result = run_simulation(readings, battery, window, record_steps=record_steps)
    except InvalidInputError as e:
        print(_("\nError: {}").format(e))
        return 1
    print_simulation_summary(result, compare_costs(result, tariffs), battery)

    if record_steps:
        steps_df = steps_to_dataframe(result)
        if args.export_daily:
            export_to_csv(aggregate_daily_data(steps_df), args.export_daily)
        if args.export_steps:
            export_to_csv(steps_df, args.export_steps)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

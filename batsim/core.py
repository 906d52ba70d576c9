from typing import List, Optional, Dict, Sequence, Tuple
from datetime import datetime

import pandas as pd

from .formatting import currency_format, date_format, number_format
from .models import (
    BatteryConfig,
    InvalidInputError,
    MeterReading,
    SimulationResult,
    SimulationWindow,
    StepRecord,
)
from .tariffs import CostComparison, Tariffs, compare_costs


def run_simulation(
    readings: Sequence[MeterReading],
    config: BatteryConfig,
    window: SimulationWindow,
    record_steps: bool = False,
) -> SimulationResult:
    """
    Walks the readings once and simulates a battery with a greedy policy:
    whenever the meter imports, the battery discharges as much as it can;
    whenever it exports, the battery charges as much as it can.
    Every run starts from scratch and returns a new immutable result.
    """
    capacity = config.capacity_kwh

    original_import, original_export = 0.0, 0.0
    with_battery_import, with_battery_export = 0.0, 0.0
    energy_charged, energy_discharged = 0.0, 0.0
    battery_soc = config.initial_soc_kwh

    # Average minimum and maximum SoC throughout the dataset
    battery_min_avg, battery_max_avg = capacity, 0.0
    daily_min, daily_max = capacity, 0.0
    day_counter = 1
    current_day: Optional[str] = None
    first_date: Optional[datetime] = None
    last_date: Optional[datetime] = None
    steps: List[StepRecord] = []

    previous: Optional[MeterReading] = None

    for reading in readings:
        if not reading.is_finite():
            raise InvalidInputError(f"Reading at {reading.timestamp} contains a value that is not a finite number.")
        if previous is not None and reading.timestamp < previous.timestamp:
            raise InvalidInputError(
                f"Readings are not sorted: {reading.timestamp} comes after {previous.timestamp}."
            )

        # Out-of-window readings still become the predecessor of the next reading
        if previous is None or not window.contains(reading.timestamp):
            previous = reading
            continue

        day = reading.timestamp.date().isoformat()
        if current_day is None:
            current_day = day
            first_date = reading.timestamp
        elif day != current_day:
            # New day, fold min/max SoC of the previous day into the averages
            current_day = day
            day_counter += 1
            battery_min_avg = (battery_min_avg * (day_counter - 1) + daily_min) / day_counter
            battery_max_avg = (battery_max_avg * (day_counter - 1) + daily_max) / day_counter
            daily_min, daily_max = capacity, 0.0
        else:
            daily_min = min(daily_min, battery_soc)
            daily_max = max(daily_max, battery_soc)

        elapsed = (reading.timestamp - previous.timestamp).total_seconds()
        meter_energy = reading.net_meter_power * elapsed / 3600  # kWh

        charge, discharge = 0.0, 0.0
        grid_import, grid_export = 0.0, 0.0

        if meter_energy > 0:
            # Import from grid, discharge battery if possible
            original_import += meter_energy
            max_discharge = config.max_discharge_rate_kw * elapsed / 3600
            discharge = min(max_discharge, meter_energy, battery_soc)
            battery_soc -= discharge
            grid_import = meter_energy - discharge
            with_battery_import += grid_import
        else:
            # Export to grid, charge battery if possible
            original_export -= meter_energy
            max_charge = config.max_charge_rate_kw * elapsed / 3600
            charge = min(max_charge, -meter_energy, capacity - battery_soc)
            battery_soc += charge
            grid_export = -meter_energy - charge
            with_battery_export += grid_export

        energy_charged += charge
        energy_discharged += discharge

        if record_steps:
            steps.append(
                StepRecord(
                    timestamp=reading.timestamp,
                    elapsed_seconds=elapsed,
                    meter_energy=meter_energy,
                    battery_charge=charge,
                    battery_discharge=discharge,
                    grid_import=grid_import,
                    grid_export=grid_export,
                    battery_soc=battery_soc,
                )
            )

        last_date = reading.timestamp
        previous = reading

    return SimulationResult(
        original_energy_import=original_import,
        original_energy_export=original_export,
        with_battery_energy_import=with_battery_import,
        with_battery_energy_export=with_battery_export,
        battery_energy_charged=energy_charged,
        battery_energy_discharged=energy_discharged,
        battery_soc=battery_soc,
        battery_min_avg=battery_min_avg,
        battery_max_avg=battery_max_avg,
        tracking_day_counter=day_counter,
        current_day=current_day,
        first_date=first_date,
        last_date=last_date,
        capacity_kwh=capacity,
        steps=tuple(steps),
    )


def default_window(readings: Sequence[MeterReading]) -> SimulationWindow:
    """The full span of the dataset."""
    if not readings:
        raise InvalidInputError("Cannot derive a date range from an empty dataset.")
    min_date = min(r.timestamp for r in readings)
    max_date = max(r.timestamp for r in readings)
    return SimulationWindow(from_date=min_date.date(), until_date=max_date.date())


def parse_window(
    readings: Sequence[MeterReading], start_date_str: Optional[str], end_date_str: Optional[str]
) -> SimulationWindow:
    """Builds a window from YYYY-MM-DD strings, filling gaps with the data span."""
    span = default_window(readings)
    try:
        from_date = datetime.strptime(start_date_str, "%Y-%m-%d").date() if start_date_str else span.from_date
        until_date = datetime.strptime(end_date_str, "%Y-%m-%d").date() if end_date_str else span.until_date
    except ValueError:
        raise InvalidInputError("Invalid date format. Use YYYY-MM-DD.")
    return SimulationWindow(from_date=from_date, until_date=until_date)


def print_simulation_summary(result: SimulationResult, comparison: CostComparison, config: BatteryConfig):
    """Prints a formatted summary of the simulation results."""
    print(f"\n--- Battery simulation ({number_format(config.capacity_kwh)} kWh) ---")
    if result.last_date is None:
        print("No readings inside the selected date range.")
        return

    print(f"Period: {date_format(result.first_date)} - {date_format(result.last_date)}")
    print(
        f"Charge rate: {number_format(config.max_charge_rate_kw)} kW, "
        f"discharge rate: {number_format(config.max_discharge_rate_kw)} kW, "
        f"initial SoC: {number_format(config.initial_soc_percent)}%"
    )

    print("\n--- Without battery ---")
    print(f"Energy imported from grid: {number_format(result.original_energy_import)} kWh")
    print(f"Energy exported to grid:   {number_format(result.original_energy_export)} kWh")
    print(f"Cost: {currency_format(comparison.cost_without_battery)}")

    print("\n--- With battery ---")
    print(f"Energy imported from grid: {number_format(result.with_battery_energy_import)} kWh")
    print(f"Energy exported to grid:   {number_format(result.with_battery_energy_export)} kWh")
    print(f"Cost: {currency_format(comparison.cost_with_battery)}")

    print("\n---------------------------------------------")
    print(f"Average daily minimum SoC: {number_format(result.battery_min_avg)} kWh")
    print(f"Average daily maximum SoC: {number_format(result.battery_max_avg)} kWh")
    print(f"Equivalent full cycles: {number_format(result.equivalent_full_cycles)}")
    print(f"Grid import covered by battery: {result.self_sufficiency_gain:.1%}")
    print(f"SAVINGS: {currency_format(comparison.savings)} (battery cost: {currency_format(config.cost)})")
    print("---------------------------------------------")


def run_capacity_comparison(
    readings: Sequence[MeterReading],
    config: BatteryConfig,
    window: SimulationWindow,
    tariffs: Tariffs,
    capacities: Sequence[float],
    verbose: bool = False,
) -> Dict[float, CostComparison]:
    """
    Simulates every given capacity with otherwise identical settings and
    prints the costs sorted from cheapest to most expensive.
    """
    results = {}
    print("\n--- Battery capacity comparison ---")

    for capacity in capacities:
        candidate = BatteryConfig(
            capacity_kwh=capacity,
            max_charge_rate_kw=config.max_charge_rate_kw,
            max_discharge_rate_kw=config.max_discharge_rate_kw,
            initial_soc_percent=config.initial_soc_percent,
            cost=config.cost,
        )
        result = run_simulation(readings, candidate, window)
        comparison = compare_costs(result, tariffs)
        if verbose:
            print_simulation_summary(result, comparison, candidate)
        results[capacity] = comparison

    sorted_results = sorted(results.items(), key=lambda item: item[1].cost_with_battery)

    print(f"Analysis for the period from {window.from_date} to {window.until_date}")
    print("---------------------------------------------")
    for capacity, comparison in sorted_results:
        print(
            f"{number_format(capacity):>8} kWh: {currency_format(comparison.cost_with_battery):>14}"
            f"  (savings {currency_format(comparison.savings)})"
        )
    print("---------------------------------------------")

    if sorted_results:
        best_capacity, best = sorted_results[0]
        print(f"\nCheapest capacity in this period: {number_format(best_capacity)} kWh ({currency_format(best.cost_with_battery)})")
    return results


def steps_to_dataframe(result: SimulationResult) -> pd.DataFrame:
    return pd.DataFrame(result.steps)


def aggregate_daily_data(steps_df: pd.DataFrame) -> pd.DataFrame:
    """Per-day energy totals and SoC extremes of a recorded simulation."""
    if steps_df.empty:
        return pd.DataFrame()
    df = steps_df.copy()
    df["date"] = pd.to_datetime(df["timestamp"]).dt.date
    df["original_import"] = df["meter_energy"].clip(lower=0)
    df["original_export"] = (-df["meter_energy"]).clip(lower=0)
    daily_df = (
        df.groupby("date")
        .agg(
            original_import=("original_import", "sum"),
            original_export=("original_export", "sum"),
            grid_import=("grid_import", "sum"),
            grid_export=("grid_export", "sum"),
            battery_charge=("battery_charge", "sum"),
            battery_discharge=("battery_discharge", "sum"),
            soc_min=("battery_soc", "min"),
            soc_max=("battery_soc", "max"),
        )
        .reset_index()
    )
    return daily_df


def export_to_csv(df: pd.DataFrame, file_path: str):
    if df.empty:
        print("No data to export.")
        return
    df.to_csv(file_path, index=False, decimal=",", sep=";", float_format="%.3f")
    print(f"\nExported data to file: {file_path}")


def find_gaps(
    readings: Sequence[MeterReading], window: SimulationWindow, factor: float = 2.0
) -> List[Tuple[datetime, datetime]]:
    """
    Reports intervals inside the window that are much longer than the usual
    sampling interval. The interval leading into the first in-window reading
    is included, since the simulation integrates over it as well.
    """
    if len(readings) < 2:
        return []
    df = pd.DataFrame({"timestamp": [r.timestamp for r in readings]})
    df["previous"] = df["timestamp"].shift(1)
    df["delta"] = (df["timestamp"] - df["previous"]).dt.total_seconds()
    median_delta = df["delta"].median()
    if not median_delta or pd.isna(median_delta):
        return []

    in_window = df["timestamp"].apply(window.contains)
    candidates = df[in_window & df["previous"].notna() & (df["delta"] > factor * median_delta)]
    gaps = [(row.previous.to_pydatetime(), row.timestamp.to_pydatetime()) for row in candidates.itertuples()]

    if gaps:
        print("\n--- WARNING: gaps detected in the data ---")
        for start, end in gaps[:24]:
            print(f"No data between {start:%Y-%m-%d %H:%M} and {end:%Y-%m-%d %H:%M}")
        if len(gaps) > 24:
            print(f"... {len(gaps) - 24} more")
        print("-------------------------------------------------")
    return gaps

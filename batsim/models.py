import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple


class InvalidInputError(ValueError):
    """Raised for malformed readings, out-of-range settings or unsorted data."""


@dataclass(frozen=True)
class MeterReading:
    timestamp: datetime
    consumption: float  # kW
    production: float  # kW
    net_meter_power: float  # kW, positive = import from grid, negative = export to grid

    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (self.consumption, self.production, self.net_meter_power))


@dataclass(frozen=True)
class BatteryConfig:
    capacity_kwh: float = 13.8
    max_charge_rate_kw: float = 7.0
    max_discharge_rate_kw: float = 7.0
    initial_soc_percent: float = 30.0
    cost: float = 7500.0  # currency units, informational only

    def __post_init__(self):
        for name in ("capacity_kwh", "max_charge_rate_kw", "max_discharge_rate_kw", "cost"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise InvalidInputError(f"{name} must be a non-negative number, got {value!r}")
        if not math.isfinite(self.initial_soc_percent) or not 0 <= self.initial_soc_percent <= 100:
            raise InvalidInputError(f"initial_soc_percent must be within [0, 100], got {self.initial_soc_percent!r}")

    @property
    def initial_soc_kwh(self) -> float:
        return self.initial_soc_percent / 100 * self.capacity_kwh


@dataclass(frozen=True)
class SimulationWindow:
    """Inclusive date range; the until-date covers the whole day up to 23:59:59."""

    from_date: date
    until_date: date

    def __post_init__(self):
        if self.from_date > self.until_date:
            raise InvalidInputError(f"Start date {self.from_date} is later than end date {self.until_date}.")

    @property
    def start(self) -> datetime:
        return datetime.combine(self.from_date, datetime.min.time())

    @property
    def end(self) -> datetime:
        return datetime.combine(self.until_date, datetime.min.time()).replace(hour=23, minute=59, second=59)

    def contains(self, timestamp: datetime) -> bool:
        # aware timestamps are compared in their own wall-clock time
        naive = timestamp.replace(tzinfo=None)
        return self.start <= naive <= self.end


@dataclass(frozen=True)
class StepRecord:
    timestamp: datetime
    elapsed_seconds: float
    meter_energy: float
    battery_charge: float
    battery_discharge: float
    grid_import: float  # with battery
    grid_export: float  # with battery
    battery_soc: float


@dataclass(frozen=True)
class SimulationResult:
    """Totals of one simulation run. All energies in kWh."""

    original_energy_import: float = 0.0
    original_energy_export: float = 0.0
    with_battery_energy_import: float = 0.0
    with_battery_energy_export: float = 0.0
    battery_energy_charged: float = 0.0
    battery_energy_discharged: float = 0.0
    battery_soc: float = 0.0
    battery_min_avg: float = 0.0
    battery_max_avg: float = 0.0
    tracking_day_counter: int = 1
    current_day: Optional[str] = None
    first_date: Optional[datetime] = None
    last_date: Optional[datetime] = None
    capacity_kwh: float = 0.0
    steps: Tuple[StepRecord, ...] = ()

    @property
    def equivalent_full_cycles(self) -> float:
        if self.capacity_kwh <= 0:
            return 0.0
        return self.battery_energy_discharged / self.capacity_kwh

    @property
    def self_sufficiency_gain(self) -> float:
        """Share of the original grid import covered by the battery."""
        if self.original_energy_import <= 0:
            return 0.0
        return 1 - self.with_battery_energy_import / self.original_energy_import

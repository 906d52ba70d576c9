import math
from dataclasses import dataclass

from .models import InvalidInputError, SimulationResult


@dataclass(frozen=True)
class Tariffs:
    """Flat import and export prices in currency per kWh."""

    import_price: float = 0.2673
    export_price: float = 0.0640

    def __post_init__(self):
        for name in ("import_price", "export_price"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise InvalidInputError(f"{name} must be a non-negative number, got {value!r}")


@dataclass(frozen=True)
class CostComparison:
    cost_without_battery: float
    cost_with_battery: float

    @property
    def savings(self) -> float:
        return self.cost_without_battery - self.cost_with_battery


def energy_cost(energy_import: float, energy_export: float, tariffs: Tariffs) -> float:
    """Net cost: imported energy is paid, exported energy is credited."""
    return energy_import * tariffs.import_price - energy_export * tariffs.export_price


def compare_costs(result: SimulationResult, tariffs: Tariffs) -> CostComparison:
    return CostComparison(
        cost_without_battery=energy_cost(result.original_energy_import, result.original_energy_export, tariffs),
        cost_with_battery=energy_cost(result.with_battery_energy_import, result.with_battery_energy_export, tariffs),
    )

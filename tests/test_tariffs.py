import unittest
from datetime import datetime

from batsim.formatting import currency_format, date_format, number_format
from batsim.models import InvalidInputError, SimulationResult
from batsim.tariffs import Tariffs, compare_costs, energy_cost


class TestCostComparison(unittest.TestCase):
    def setUp(self):
        self.tariffs = Tariffs(import_price=0.2673, export_price=0.0640)
        self.result = SimulationResult(
            original_energy_import=1000.0,
            original_energy_export=2000.0,
            with_battery_energy_import=400.0,
            with_battery_energy_export=1300.0,
        )

    def test_default_tariffs(self):
        tariffs = Tariffs()
        self.assertAlmostEqual(tariffs.import_price, 0.2673)
        self.assertAlmostEqual(tariffs.export_price, 0.0640)

    def test_energy_cost(self):
        """Import is paid, export is credited."""
        self.assertAlmostEqual(energy_cost(10.0, 0.0, self.tariffs), 2.673)
        self.assertAlmostEqual(energy_cost(0.0, 10.0, self.tariffs), -0.64)

    def test_compare_costs(self):
        comparison = compare_costs(self.result, self.tariffs)
        self.assertAlmostEqual(comparison.cost_without_battery, 1000 * 0.2673 - 2000 * 0.064)
        self.assertAlmostEqual(comparison.cost_with_battery, 400 * 0.2673 - 1300 * 0.064)
        self.assertAlmostEqual(comparison.savings, 600 * 0.2673 - 700 * 0.064)

    def test_invalid_tariffs(self):
        for price in (-0.1, float("nan"), float("inf")):
            with self.assertRaises(InvalidInputError):
                Tariffs(import_price=price)
            with self.assertRaises(InvalidInputError):
                Tariffs(export_price=price)

    def test_result_ratios(self):
        self.assertAlmostEqual(self.result.self_sufficiency_gain, 0.6)
        self.assertEqual(SimulationResult().self_sufficiency_gain, 0.0)
        self.assertAlmostEqual(
            SimulationResult(battery_energy_discharged=27.6, capacity_kwh=13.8).equivalent_full_cycles, 2.0
        )


class TestFormatting(unittest.TestCase):
    def test_number_format(self):
        self.assertEqual(number_format(1234.5678), "1’234.57")
        self.assertEqual(number_format(13.8), "13.8")
        self.assertEqual(number_format(7.0), "7")
        self.assertEqual(number_format(-0.001), "0")

    def test_currency_format(self):
        self.assertEqual(currency_format(7500), "CHF 7’500.00")
        self.assertEqual(currency_format(-12.3), "CHF -12.30")
        self.assertEqual(currency_format(-0.001), "CHF 0.00")

    def test_date_format(self):
        self.assertEqual(date_format(datetime(2024, 5, 2, 7, 5)), "02.05.2024, 07:05")
        self.assertEqual(date_format(None), "-")


if __name__ == "__main__":
    unittest.main()

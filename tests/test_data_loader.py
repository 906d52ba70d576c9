import unittest
from datetime import datetime, timedelta, timezone
from io import BytesIO, StringIO
from pathlib import Path
from unittest.mock import patch

from batsim.data_loader import (
    ColumnMapping,
    detect_meter_column,
    guess_mapping,
    load_meter_csv,
)
from batsim.models import InvalidInputError

TEST_DATA = Path(__file__).resolve().parent / "test_data.csv"


def load_quietly(source, mapping=None):
    with patch("sys.stdout", new_callable=StringIO):
        return load_meter_csv(source, mapping)


class TestDataLoader(unittest.TestCase):
    def test_data_loading(self):
        data = load_quietly(TEST_DATA)
        self.assertEqual(len(data), 6)
        self.assertEqual(data[0].timestamp, datetime(2024, 5, 1, 10, 0))
        self.assertEqual(data[0].consumption, 0.5)
        self.assertEqual(data[0].production, 3.5)
        self.assertEqual(data[0].net_meter_power, -3.0)

    def test_prints_record_count(self):
        with patch("sys.stdout", new_callable=StringIO) as captured_output:
            load_meter_csv(TEST_DATA)
        self.assertIn("Loaded 6 records from:", captured_output.getvalue())

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_quietly("does_not_exist.csv")

    def test_detect_meter_column(self):
        self.assertEqual(detect_meter_column(["Date", "Consumption", "Production", "Net Meter"]), "Net Meter")
        self.assertEqual(detect_meter_column(["Zeit", "METER_W", "meter2"]), "METER_W")
        self.assertIsNone(detect_meter_column(["Date", "Consumption"]))
        self.assertEqual(guess_mapping(["Date", "Smart meter"]).meter, "Smart meter")

    def test_semicolon_decimal_comma_and_watts(self):
        content = (
            "\ufeffZeit;Verbrauch;Produktion;Zaehler Meter\n"
            "2024-03-01 00:00;1200,5;0;1200,5\n"
            "2024-03-01 00:15;300;2300;-2000\n"
        )
        mapping = ColumnMapping(date="Zeit", consumption="Verbrauch", production="Produktion", power_unit="W")
        data = load_quietly(StringIO(content), mapping)

        self.assertEqual(len(data), 2)
        self.assertAlmostEqual(data[0].consumption, 1.2005)
        self.assertAlmostEqual(data[1].production, 2.3)
        self.assertAlmostEqual(data[1].net_meter_power, -2.0)

    def test_uploaded_bytes_with_null_bytes(self):
        content = "Date,Consumption,Production,Meter\n2024-03-01 00:00,1,0,1\x00\n".encode("utf-8")
        data = load_quietly(BytesIO(content))
        self.assertEqual(len(data), 1)
        self.assertEqual(data[0].net_meter_power, 1.0)

    def test_missing_column(self):
        content = "Date,Consumption,Meter\n2024-03-01 00:00,1,1\n"
        with self.assertRaises(InvalidInputError) as ctx:
            load_quietly(StringIO(content))
        self.assertIn("Production", str(ctx.exception))

    def test_no_meter_column(self):
        content = "Date,Consumption,Production\n2024-03-01 00:00,1,1\n"
        with self.assertRaises(InvalidInputError):
            load_quietly(StringIO(content))

    def test_invalid_values_are_reported(self):
        content = (
            "Date,Consumption,Production,Meter\n"
            "2024-03-01 00:00,1,0,1\n"
            "2024-03-01 00:15,abc,0,1\n"
            "not a date,1,0,1\n"
        )
        with self.assertRaises(InvalidInputError) as ctx:
            load_quietly(StringIO(content))
        self.assertIn("Invalid values in CSV lines: 3, 4", str(ctx.exception))

    def test_infinite_values_are_reported(self):
        content = (
            "Date,Consumption,Production,Meter\n"
            "2024-03-01 00:00,1,0,1\n"
            "2024-03-01 00:15,1,0,inf\n"
            "2024-03-01 00:30,-inf,0,1\n"
        )
        with self.assertRaises(InvalidInputError) as ctx:
            load_quietly(StringIO(content))
        self.assertIn("Invalid values in CSV lines: 3, 4", str(ctx.exception))

    def test_offsets_changing_across_dst(self):
        content = (
            "Date,Consumption,Production,Meter\n"
            "2024-10-27T01:00:00+02:00,1,0,1\n"
            "2024-10-27T02:00:00+01:00,1,0,1\n"
        )
        data = load_quietly(StringIO(content))

        self.assertEqual(data[0].timestamp, datetime(2024, 10, 26, 23, 0, tzinfo=timezone.utc))
        self.assertEqual(data[1].timestamp - data[0].timestamp, timedelta(hours=2))

    def test_unknown_power_unit(self):
        with self.assertRaises(InvalidInputError):
            ColumnMapping(power_unit="MW")


if __name__ == "__main__":
    unittest.main()

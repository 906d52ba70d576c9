import io
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Iterable, List, Optional, Union

import numpy as np
import pandas as pd

from .models import InvalidInputError, MeterReading

DEFAULT_DATE_COLUMN = "Date"
DEFAULT_CONSUMPTION_COLUMN = "Consumption"
DEFAULT_PRODUCTION_COLUMN = "Production"

POWER_UNITS = {"kW": 1.0, "W": 1000.0}

CsvSource = Union[str, Path, IO]


@dataclass
class ColumnMapping:
    """Maps CSV column names onto the fields of a MeterReading."""

    date: str = DEFAULT_DATE_COLUMN
    consumption: str = DEFAULT_CONSUMPTION_COLUMN
    production: str = DEFAULT_PRODUCTION_COLUMN
    meter: Optional[str] = None
    power_unit: str = "kW"

    def __post_init__(self):
        if self.power_unit not in POWER_UNITS:
            raise InvalidInputError(f"Unknown power unit '{self.power_unit}', expected one of: {', '.join(POWER_UNITS)}")

    def required_columns(self) -> List[str]:
        return [self.date, self.consumption, self.production, self.meter]


def detect_meter_column(columns: Iterable[str]) -> Optional[str]:
    """Returns the first column whose name contains 'meter' (case-insensitive)."""
    for col in columns:
        if "meter" in col.lower():
            return col
    return None


def guess_mapping(columns: Iterable[str], power_unit: str = "kW") -> ColumnMapping:
    return ColumnMapping(meter=detect_meter_column(columns), power_unit=power_unit)


def read_csv_frame(source: CsvSource) -> pd.DataFrame:
    """Reads the raw CSV as strings, stripping null bytes and a BOM."""
    if isinstance(source, (str, Path)):
        with open(source, "r", encoding="utf-8-sig") as f:
            file_content = f.read()
    else:
        file_content = source.read()
        if isinstance(file_content, bytes):
            file_content = file_content.decode("utf-8-sig")

    cleaned_content = file_content.replace("\0", "").lstrip("\ufeff")
    file_like_object = io.StringIO(cleaned_content)

    # sep=None lets the python engine sniff ',' or ';' exports
    df = pd.read_csv(
        file_like_object,
        sep=None,
        engine="python",
        dtype=str,
        skip_blank_lines=True,
    )
    df.columns = [str(c).strip() for c in df.columns]
    return df


def _parse_timestamps(values: pd.Series) -> pd.Series:
    """Parses timestamps; mixed UTC offsets (e.g. across a DST change) are converted to UTC."""
    try:
        parsed = pd.to_datetime(values, errors="coerce")
    except ValueError:
        parsed = None
    if parsed is None or not pd.api.types.is_datetime64_any_dtype(parsed):
        parsed = pd.to_datetime(values, errors="coerce", utc=True)
    return parsed


def readings_from_frame(df: pd.DataFrame, mapping: ColumnMapping) -> List[MeterReading]:
    """Converts a raw string frame into validated MeterReadings.

    Raises InvalidInputError when a mapped column is missing or when any row
    holds a timestamp or number that cannot be parsed.
    """
    if mapping.meter is None:
        raise InvalidInputError("No net meter column selected and none could be detected.")

    missing = [col for col in mapping.required_columns() if col not in df.columns]
    if missing:
        raise InvalidInputError(f"Missing columns in CSV: {', '.join(missing)}")

    data = pd.DataFrame(
        {
            "timestamp": df[mapping.date].str.strip().str.replace('"', ""),
            "consumption": df[mapping.consumption],
            "production": df[mapping.production],
            "net_meter_power": df[mapping.meter],
        }
    )

    # --- Manual cleaning and conversion ---
    data["timestamp"] = _parse_timestamps(data["timestamp"])

    numeric_cols = ["consumption", "production", "net_meter_power"]
    scale = POWER_UNITS[mapping.power_unit]
    for col in numeric_cols:
        data[col] = pd.to_numeric(data[col].str.strip().str.replace(",", "."), errors="coerce") / scale

    # "inf" parses as a number, so finiteness is checked separately from NaN
    invalid_mask = data.isna().any(axis=1) | ~np.isfinite(data[numeric_cols].to_numpy(dtype=float)).all(axis=1)
    invalid = data[invalid_mask]
    if not invalid.empty:
        # header is line 1
        lines = [str(i + 2) for i in invalid.index[:10]]
        more = "" if len(invalid) <= 10 else f" (and {len(invalid) - 10} more)"
        raise InvalidInputError(f"Invalid values in CSV lines: {', '.join(lines)}{more}")

    return [
        MeterReading(
            timestamp=pd.Timestamp(row.timestamp).to_pydatetime(),
            consumption=float(row.consumption),
            production=float(row.production),
            net_meter_power=float(row.net_meter_power),
        )
        for row in data.itertuples()
    ]


def load_meter_csv(source: CsvSource, mapping: Optional[ColumnMapping] = None) -> List[MeterReading]:
    """Loads and validates meter readings from a CSV file or an uploaded buffer.

    Without an explicit mapping the default column names are used and the net
    meter column is detected from the header.
    """
    df = read_csv_frame(source)
    if mapping is None:
        mapping = guess_mapping(df.columns)
    elif mapping.meter is None:
        mapping = ColumnMapping(
            date=mapping.date,
            consumption=mapping.consumption,
            production=mapping.production,
            meter=detect_meter_column(df.columns),
            power_unit=mapping.power_unit,
        )

    readings = readings_from_frame(df, mapping)
    name = source if isinstance(source, (str, Path)) else getattr(source, "name", "upload")
    print(f"Loaded {len(readings)} records from: {name}")
    return readings

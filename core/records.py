"""
Hourly solar production / energy demand records and their derived metrics.
"""

from dataclasses import dataclass, fields, replace
from datetime import datetime
from typing import Iterable, List, Optional

import pandas as pd

from .constants import DAY_NAMES, MONTH_NAMES


@dataclass(frozen=True)
class SolarDataPoint:
    """One hour of observed solar production and energy demand (kWh)."""
    date: str
    hour: int
    month: int
    year: int
    day_of_week: int
    is_weekend: bool
    quarter: int
    week_of_year: int
    solar_production: float
    energy_demand: float
    timestamp: str = ''
    time: str = ''
    day: int = 0
    month_name: str = ''
    day_name: str = ''
    net_energy: Optional[float] = None
    grid_import: Optional[float] = None
    excess_export: Optional[float] = None

    @property
    def is_derived(self) -> bool:
        return self.net_energy is not None

    @classmethod
    def from_timestamp(cls, ts, solar_production: float, energy_demand: float) -> 'SolarDataPoint':
        """Build a derived record, filling every calendar field from a timestamp."""
        ts = pd.Timestamp(ts).floor('h')
        day_of_week = (ts.weekday() + 1) % 7
        point = cls(
            date=ts.strftime('%Y-%m-%d'),
            hour=int(ts.hour),
            month=int(ts.month),
            year=int(ts.year),
            day_of_week=day_of_week,
            is_weekend=day_of_week in (0, 6),
            quarter=(ts.month - 1) // 3 + 1,
            week_of_year=int(ts.isocalendar()[1]),
            solar_production=float(solar_production),
            energy_demand=float(energy_demand),
            timestamp=ts.strftime('%Y-%m-%dT%H:%M:%S'),
            time=ts.strftime('%H:%M'),
            day=int(ts.day),
            month_name=get_month_name(ts.month),
            day_name=get_day_name(day_of_week),
        )
        return derive_metrics(point)


def derive_metrics(point: SolarDataPoint) -> SolarDataPoint:
    """
    Return a copy of the record with net energy, grid import and excess export set.

    Only solar_production and energy_demand are read, so re-deriving an already
    derived record gives the same values. Negative inputs are not rejected;
    they propagate through the arithmetic and are the caller's responsibility.
    """
    net_energy = point.solar_production - point.energy_demand
    grid_import = abs(net_energy) if net_energy < 0 else 0.0
    excess_export = net_energy if net_energy > 0 else 0.0
    return replace(point, net_energy=net_energy, grid_import=grid_import, excess_export=excess_export)


def derive_all(records: Iterable[SolarDataPoint]) -> List[SolarDataPoint]:
    return [derive_metrics(p) for p in records]


RECORD_COLUMNS = [f.name for f in fields(SolarDataPoint)]


def records_to_frame(records: Iterable[SolarDataPoint]) -> pd.DataFrame:
    """
    Convert records to a DataFrame with one row per record.

    Derived values that were never computed are treated as 0.
    """
    rows = [
        {name: getattr(p, name) for name in RECORD_COLUMNS}
        for p in records
    ]
    df = pd.DataFrame(rows, columns=RECORD_COLUMNS)
    for col in ('solar_production', 'energy_demand', 'net_energy', 'grid_import', 'excess_export'):
        df[col] = pd.to_numeric(df[col], errors='coerce').astype(float)
    df[['net_energy', 'grid_import', 'excess_export']] = df[['net_energy', 'grid_import', 'excess_export']].fillna(0.0)
    return df


def get_month_name(month: int) -> str:
    if 1 <= month <= 12:
        return MONTH_NAMES[month - 1]
    return ''


def get_day_name(day_of_week: int) -> str:
    if 0 <= day_of_week <= 6:
        return DAY_NAMES[day_of_week]
    return ''


def get_season(month: int) -> str:
    """Season for a month number (Northern Hemisphere)."""
    if 3 <= month <= 5:
        return 'Spring'
    if 6 <= month <= 8:
        return 'Summer'
    if 9 <= month <= 11:
        return 'Fall'
    return 'Winter'


def get_time_of_day(hour: int) -> str:
    if 5 <= hour < 12:
        return 'Morning'
    if 12 <= hour < 17:
        return 'Afternoon'
    if 17 <= hour < 21:
        return 'Evening'
    return 'Night'


def date_range_of(records: List[SolarDataPoint]) -> tuple:
    """Return (first_date, last_date) of a collection, or (None, None) when empty."""
    if not records:
        return None, None
    dates = [p.date for p in records]
    return min(dates), max(dates)


def parse_iso_date(value: str) -> str:
    """Normalise a user supplied date to zero-padded YYYY-MM-DD."""
    return datetime.strptime(value.strip(), '%Y-%m-%d').strftime('%Y-%m-%d')

#!/usr/bin/env python3
"""
Aggregation Engine

Groups derived records by day, month and hour of day. Daily and monthly
groupings sum the energy quantities; the hourly grouping averages them over
the records that fall in each hour.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List

import numpy as np
import pandas as pd

from .constants import ENERGY_FIELDS, SEASON_ORDER, TIME_OF_DAY_ORDER
from .records import SolarDataPoint, get_month_name, get_season, get_time_of_day, records_to_frame

logger = logging.getLogger(__name__)

HOURS_OF_DAY = list(range(24))


@dataclass
class DailyData:
    date: str
    solar_production: float
    energy_demand: float
    net_energy: float
    grid_import: float
    excess_export: float


@dataclass
class MonthlySummary:
    year: int
    month: int
    month_name: str
    solar_production: float
    energy_demand: float
    net_energy: float
    grid_import: float
    excess_export: float
    self_consumption_percentage: float
    grid_dependency_percentage: float


@dataclass
class HourlyAverage:
    hour: int
    solar_production: float
    energy_demand: float
    net_energy: float
    grid_import: float
    excess_export: float


@dataclass
class PeriodSummary:
    """Summed energy for a season or time-of-day bucket."""
    period: str
    solar_production: float
    energy_demand: float
    net_energy: float
    grid_import: float
    excess_export: float
    hours: int


@dataclass
class HeatmapData:
    x: List[str]
    y: List[int]
    z: List[List[float]]


def self_consumption_percentage(solar_production: float, excess_export: float) -> float:
    return (solar_production - excess_export) / solar_production * 100 if solar_production > 0 else 0.0


def grid_dependency_percentage(grid_import: float, energy_demand: float) -> float:
    return grid_import / energy_demand * 100 if energy_demand > 0 else 0.0


class EnergyAggregator:
    """Grouping of derived records into daily, monthly and hourly views."""

    @staticmethod
    def aggregate_by_day(records: Iterable[SolarDataPoint]) -> List[DailyData]:
        """
        Sum the energy quantities per date, sorted chronologically.

        Net energy is recomputed from the daily sums as production minus demand.
        """
        df = records_to_frame(records)
        if df.empty:
            return []

        daily = df.groupby('date', sort=True)[ENERGY_FIELDS].sum()

        result = []
        for date, row in daily.iterrows():
            result.append(DailyData(
                date=str(date),
                solar_production=float(row['solar_production']),
                energy_demand=float(row['energy_demand']),
                net_energy=float(row['solar_production'] - row['energy_demand']),
                grid_import=float(row['grid_import']),
                excess_export=float(row['excess_export']),
            ))

        logger.info(f"Aggregated {len(df)} records into {len(result)} days")
        return result

    @staticmethod
    def aggregate_by_month(records: Iterable[SolarDataPoint]) -> List[MonthlySummary]:
        """
        Sum the energy quantities per (year, month), sorted by year then month.

        Percentages are computed from the monthly totals.
        """
        df = records_to_frame(records)
        if df.empty:
            return []

        df['year'] = df['year'].astype(int)
        df['month'] = df['month'].astype(int)
        monthly = df.groupby(['year', 'month'], sort=True)[ENERGY_FIELDS].sum()

        result = []
        for (year, month), row in monthly.iterrows():
            solar = float(row['solar_production'])
            demand = float(row['energy_demand'])
            grid_import = float(row['grid_import'])
            excess_export = float(row['excess_export'])
            result.append(MonthlySummary(
                year=int(year),
                month=int(month),
                month_name=get_month_name(int(month)),
                solar_production=solar,
                energy_demand=demand,
                net_energy=solar - demand,
                grid_import=grid_import,
                excess_export=excess_export,
                self_consumption_percentage=self_consumption_percentage(solar, excess_export),
                grid_dependency_percentage=grid_dependency_percentage(grid_import, demand),
            ))

        logger.info(f"Aggregated {len(df)} records into {len(result)} months")
        return result

    @staticmethod
    def aggregate_by_hour(records: Iterable[SolarDataPoint]) -> List[HourlyAverage]:
        """
        Average the energy quantities per hour of day.

        Always returns 24 entries (hours 0-23). Each hour is divided by the
        number of records in that hour; hours without records stay at 0.
        Hours outside 0-23 are ignored.
        """
        df = records_to_frame(records)

        if df.empty:
            sums = pd.DataFrame(0.0, index=HOURS_OF_DAY, columns=ENERGY_FIELDS)
            counts = pd.Series(0, index=HOURS_OF_DAY)
        else:
            df['hour'] = df['hour'].astype(int)
            grouped = df.groupby('hour')[ENERGY_FIELDS]
            sums = grouped.sum().reindex(HOURS_OF_DAY, fill_value=0.0)
            counts = grouped.size().reindex(HOURS_OF_DAY, fill_value=0)

        divisor = counts.replace(0, 1).astype(float)
        averages = sums.div(divisor, axis=0)

        result = []
        for hour in HOURS_OF_DAY:
            row = averages.loc[hour]
            result.append(HourlyAverage(
                hour=hour,
                solar_production=float(row['solar_production']),
                energy_demand=float(row['energy_demand']),
                net_energy=float(row['solar_production'] - row['energy_demand']),
                grid_import=float(row['grid_import']),
                excess_export=float(row['excess_export']),
            ))
        return result

    @staticmethod
    def aggregate_by_period(records: Iterable[SolarDataPoint], period: str = 'season') -> List[PeriodSummary]:
        """
        Sum the energy quantities per season or per time of day.

        Every bucket is returned in a fixed order, zero-valued when empty.
        """
        if period == 'season':
            order = SEASON_ORDER
            key_fn = get_season
            key_col = 'month'
        elif period == 'time_of_day':
            order = TIME_OF_DAY_ORDER
            key_fn = get_time_of_day
            key_col = 'hour'
        else:
            raise ValueError(f"Unknown period: {period}. Expected 'season' or 'time_of_day'")

        df = records_to_frame(records)
        if df.empty:
            sums = pd.DataFrame(0.0, index=order, columns=ENERGY_FIELDS)
            counts = pd.Series(0, index=order)
        else:
            df['period'] = df[key_col].astype(int).map(key_fn)
            grouped = df.groupby('period')[ENERGY_FIELDS]
            sums = grouped.sum().reindex(order, fill_value=0.0)
            counts = grouped.size().reindex(order, fill_value=0)

        return [
            PeriodSummary(
                period=name,
                solar_production=float(sums.loc[name, 'solar_production']),
                energy_demand=float(sums.loc[name, 'energy_demand']),
                net_energy=float(sums.loc[name, 'solar_production'] - sums.loc[name, 'energy_demand']),
                grid_import=float(sums.loc[name, 'grid_import']),
                excess_export=float(sums.loc[name, 'excess_export']),
                hours=int(counts.loc[name]),
            )
            for name in order
        ]

    @staticmethod
    def hourly_heatmap(records: Iterable[SolarDataPoint], field: str = 'solar_production') -> HeatmapData:
        """
        Month x hour-of-day averages of one energy field.

        Columns are the months present in the data in calendar order, rows are
        hours 0-23. Values are rounded to 2 decimals; empty cells are 0.
        """
        if field not in ENERGY_FIELDS + ['net_energy']:
            raise ValueError(f"Unknown field for heatmap: {field}")

        df = records_to_frame(records)
        if df.empty:
            return HeatmapData(x=[], y=HOURS_OF_DAY, z=[[] for _ in HOURS_OF_DAY])

        df['month'] = df['month'].astype(int)
        df['hour'] = df['hour'].astype(int)
        table = df.pivot_table(index='hour', columns='month', values=field, aggfunc='mean')
        table = table.reindex(index=HOURS_OF_DAY).sort_index(axis=1).fillna(0.0)

        z = np.round(table.to_numpy(dtype=float), 2).tolist()
        return HeatmapData(
            x=[get_month_name(int(m)) for m in table.columns],
            y=HOURS_OF_DAY,
            z=z,
        )

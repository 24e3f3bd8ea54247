#!/usr/bin/env python3
"""
Advanced Analysis Engine

What-if analyses over derived hourly records: cost savings, emissions
reduction, self-sufficiency, storage potential and peak shaving.
"""

import logging
from dataclasses import asdict
from typing import Any, Dict, Iterable, List, Tuple

import numpy as np
import pandas as pd

from .constants import (
    DEFAULT_GRID_EMISSION_FACTOR,
    DEFAULT_GRID_EXPORT_RATE,
    DEFAULT_GRID_IMPORT_RATE,
    DEFAULT_MAX_DISCHARGE_RATE_KW,
    DEFAULT_STORAGE_CAPACITY_KWH,
    KG_CO2_PER_TREE_PER_YEAR,
    PEAK_THRESHOLD_RATIO,
)
from .records import SolarDataPoint, records_to_frame
from .summary import SummaryCalculator

logger = logging.getLogger(__name__)


def _pct(numerator: float, denominator: float) -> float:
    return numerator / denominator * 100 if denominator > 0 else 0.0


def _days_by_hour(df: pd.DataFrame) -> List[Tuple[str, pd.DataFrame]]:
    """Split a record frame into (date, rows sorted by hour) groups."""
    return [
        (str(date), day.sort_values('hour', kind='stable'))
        for date, day in df.groupby('date', sort=True)
    ]


def _simulate_storage_day(excess: np.ndarray, deficit: np.ndarray) -> Tuple[float, float]:
    """
    Walk one day with an unconstrained battery that starts empty.

    Returns (energy discharged to cover deficits, highest storage level).
    """
    storage_level = 0.0
    discharged = 0.0
    max_level = 0.0
    for surplus, shortfall in zip(excess, deficit):
        if surplus > 0:
            storage_level += surplus
        elif shortfall > 0 and storage_level > 0:
            from_storage = min(storage_level, shortfall)
            storage_level -= from_storage
            discharged += from_storage
        max_level = max(max_level, storage_level)
    return discharged, max_level


def _shave_day(day: pd.DataFrame, storage_capacity: float, max_discharge_rate: float) -> Tuple[float, float]:
    """
    Walk one day with a full battery discharging into high-demand hours.

    Returns (peak demand, peak grid import after shaving). The first is
    measured on demand, the second on the residual grid import.
    """
    demand = day['energy_demand'].to_numpy(dtype=float)
    self_consumed = (day['solar_production'] - day['excess_export']).to_numpy(dtype=float)
    grid_import = day['grid_import'].to_numpy(dtype=float).copy()

    peak_demand = float(demand.max())
    threshold = peak_demand * PEAK_THRESHOLD_RATIO

    storage_level = storage_capacity
    for i in range(len(demand)):
        if demand[i] > threshold and storage_level > 0:
            discharge = min(demand[i] - self_consumed[i], max_discharge_rate, storage_level)
            if discharge > 0:
                storage_level -= discharge
                grid_import[i] = max(0.0, grid_import[i] - discharge)

    return peak_demand, float(grid_import.max())


class AdvancedAnalyzer:
    """Financial, environmental and storage what-if analyses."""

    @staticmethod
    def calculate_cost_savings(records: Iterable[SolarDataPoint],
                               grid_import_rate: float = DEFAULT_GRID_IMPORT_RATE,
                               grid_export_rate: float = DEFAULT_GRID_EXPORT_RATE) -> Dict[str, Any]:
        """
        Compare energy cost with and without the solar installation.

        Args:
            records: Derived hourly records
            grid_import_rate (float): Cost per kWh imported from the grid
            grid_export_rate (float): Credit per kWh exported to the grid

        Returns:
            Dict[str, Any]: Totals in currency units. total_cost_with_solar
            can be negative when export credits exceed import costs.
        """
        df = records_to_frame(records)

        cost_without_solar = df['energy_demand'] * grid_import_rate
        grid_import_cost = df['grid_import'] * grid_import_rate
        grid_export_credit = df['excess_export'] * grid_export_rate
        solar_savings = (df['solar_production'] - df['excess_export']) * grid_import_rate
        cost_with_solar = grid_import_cost - grid_export_credit

        total_cost_without_solar = float(cost_without_solar.sum())
        total_cost_with_solar = float(cost_with_solar.sum())
        total_savings = total_cost_without_solar - total_cost_with_solar

        return {
            'total_grid_import_cost': float(grid_import_cost.sum()),
            'total_grid_export_credit': float(grid_export_credit.sum()),
            'total_solar_savings': float(solar_savings.sum()),
            'total_cost_without_solar': total_cost_without_solar,
            'total_cost_with_solar': total_cost_with_solar,
            'total_savings': total_savings,
            'savings_percentage': _pct(total_savings, total_cost_without_solar),
        }

    @staticmethod
    def calculate_emissions_reduction(records: Iterable[SolarDataPoint],
                                      grid_emission_factor: float = DEFAULT_GRID_EMISSION_FACTOR) -> Dict[str, Any]:
        """
        Estimate avoided CO2 emissions.

        Without solar all demand is drawn from the grid; with solar only the
        grid import is. Emissions are in kg when the factor is kg CO2/kWh.
        """
        df = records_to_frame(records)

        total_energy_demand = float(df['energy_demand'].sum())
        total_grid_import = float(df['grid_import'].sum())

        emissions_without_solar = total_energy_demand * grid_emission_factor
        emissions_with_solar = total_grid_import * grid_emission_factor
        emissions_reduction = emissions_without_solar - emissions_with_solar

        return {
            'emissions_without_solar': emissions_without_solar,
            'emissions_with_solar': emissions_with_solar,
            'emissions_reduction': emissions_reduction,
            'reduction_percentage': _pct(emissions_reduction, emissions_without_solar),
            'emissions_reduction_tons': emissions_reduction / 1000,
            # half-up rounding
            'equivalent_trees_planted': int(np.floor(emissions_reduction / KG_CO2_PER_TREE_PER_YEAR + 0.5)),
        }

    @staticmethod
    def classify_hours(records: Iterable[SolarDataPoint]) -> pd.Series:
        """
        Label each record with exactly one hour category.

        Priority order: no_production, self_sufficient, excess_production,
        grid_dependent.
        """
        df = records_to_frame(records)
        conditions = [
            df['solar_production'] == 0,
            (df['grid_import'] == 0) & (df['excess_export'] == 0),
            df['excess_export'] > 0,
        ]
        choices = ['no_production', 'self_sufficient', 'excess_production']
        labels = np.select(conditions, choices, default='grid_dependent')
        return pd.Series(labels, index=df.index, dtype=object)

    @staticmethod
    def calculate_self_sufficiency(records: Iterable[SolarDataPoint]) -> Dict[str, Any]:
        """Self-sufficiency, self-consumption and per-hour category counts."""
        records = list(records)
        df = records_to_frame(records)

        total_solar = float(df['solar_production'].sum())
        total_demand = float(df['energy_demand'].sum())
        total_grid_import = float(df['grid_import'].sum())
        total_self_consumed = float((df['solar_production'] - df['excess_export']).sum())

        counts = AdvancedAnalyzer.classify_hours(records).value_counts()

        return {
            'total_self_consumed': total_self_consumed,
            'self_sufficiency_percentage': _pct(total_self_consumed, total_demand),
            'self_consumption_percentage': _pct(total_self_consumed, total_solar),
            'grid_dependency_percentage': _pct(total_grid_import, total_demand),
            'self_sufficient_hours': int(counts.get('self_sufficient', 0)),
            'excess_production_hours': int(counts.get('excess_production', 0)),
            'grid_dependent_hours': int(counts.get('grid_dependent', 0)),
            'no_production_hours': int(counts.get('no_production', 0)),
            'hours_counted': len(df),
        }

    @staticmethod
    def calculate_storage_potential(records: Iterable[SolarDataPoint]) -> Dict[str, Any]:
        """
        Simulate a capacity-unconstrained battery, one day at a time.

        Each day starts empty and nothing carries over. The optimal capacity is
        the largest level any single day reached.
        """
        df = records_to_frame(records)

        total_excess_energy = 0.0
        total_deficit_energy = 0.0
        potential_additional_self_consumption = 0.0
        optimal_storage_capacity = 0.0

        for date, day in _days_by_hour(df):
            excess = day['excess_export'].to_numpy(dtype=float)
            deficit = day['grid_import'].to_numpy(dtype=float)
            discharged, max_level = _simulate_storage_day(excess, deficit)

            total_excess_energy += float(excess.sum())
            total_deficit_energy += float(deficit.sum())
            potential_additional_self_consumption += discharged
            optimal_storage_capacity = max(optimal_storage_capacity, max_level)
            logger.debug(f"Storage {date}: discharged {discharged:.3f} kWh, max level {max_level:.3f} kWh")

        total_energy_demand = float(df['energy_demand'].sum())
        current_self_consumed = float((df['solar_production'] - df['excess_export']).sum())

        current_self_sufficiency = _pct(current_self_consumed, total_energy_demand)
        potential_self_sufficiency = _pct(current_self_consumed + potential_additional_self_consumption,
                                          total_energy_demand)

        return {
            'total_excess_energy': total_excess_energy,
            'total_deficit_energy': total_deficit_energy,
            'potential_additional_self_consumption': potential_additional_self_consumption,
            'optimal_storage_capacity': optimal_storage_capacity,
            'current_self_sufficiency': current_self_sufficiency,
            'potential_self_sufficiency': potential_self_sufficiency,
            'self_sufficiency_improvement': potential_self_sufficiency - current_self_sufficiency,
            'storage_utilization_rate': _pct(potential_additional_self_consumption, total_excess_energy),
        }

    @staticmethod
    def calculate_peak_shaving(records: Iterable[SolarDataPoint],
                               storage_capacity: float = DEFAULT_STORAGE_CAPACITY_KWH,
                               max_discharge_rate: float = DEFAULT_MAX_DISCHARGE_RATE_KW) -> Dict[str, Any]:
        """
        Simulate a capacity-constrained battery shaving daily demand peaks.

        Each day starts with a full battery and discharges into hours whose
        demand exceeds 70% of that day's peak demand, limited by the discharge
        rate and the remaining charge. The day's peak before shaving is its
        maximum demand; the peak after shaving is its maximum residual grid
        import.

        Args:
            records: Derived hourly records
            storage_capacity (float): Battery capacity in kWh
            max_discharge_rate (float): Maximum discharge per hour in kW

        Returns:
            Dict[str, Any]: Peak totals summed over all days
        """
        df = records_to_frame(records)

        total_peak_demand = 0.0
        total_peak_after_shaving = 0.0
        total_peak_reduction = 0.0

        days = _days_by_hour(df)
        for date, day in days:
            peak_demand, peak_after = _shave_day(day, storage_capacity, max_discharge_rate)
            total_peak_demand += peak_demand
            total_peak_after_shaving += peak_after
            total_peak_reduction += peak_demand - peak_after
            logger.debug(f"Peak shaving {date}: {peak_demand:.3f} kWh -> {peak_after:.3f} kWh")

        return {
            'total_peak_demand': total_peak_demand,
            'total_peak_demand_after_shaving': total_peak_after_shaving,
            'total_peak_reduction': total_peak_reduction,
            'peak_reduction_percentage': _pct(total_peak_reduction, total_peak_demand),
            'recommended_storage_capacity': storage_capacity,
            'days_analyzed': len(days),
        }

    @staticmethod
    def energy_balance_breakdown(records: Iterable[SolarDataPoint]) -> Dict[str, Any]:
        """Split production into self-consumed/exported and demand into solar/grid covered."""
        df = records_to_frame(records)

        total_solar = float(df['solar_production'].sum())
        total_demand = float(df['energy_demand'].sum())
        exported = float(df['excess_export'].sum())
        grid_covered = float(df['grid_import'].sum())
        self_consumed = total_solar - exported

        return {
            'production': {
                'self_consumed': self_consumed,
                'exported': exported,
                'self_consumed_percentage': _pct(self_consumed, total_solar),
                'exported_percentage': _pct(exported, total_solar),
            },
            'demand': {
                'solar_covered': self_consumed,
                'grid_covered': grid_covered,
                'solar_covered_percentage': _pct(self_consumed, total_demand),
                'grid_covered_percentage': _pct(grid_covered, total_demand),
            },
        }

    @staticmethod
    def calculate_all_metrics(records: Iterable[SolarDataPoint],
                              grid_import_rate: float = DEFAULT_GRID_IMPORT_RATE,
                              grid_export_rate: float = DEFAULT_GRID_EXPORT_RATE,
                              grid_emission_factor: float = DEFAULT_GRID_EMISSION_FACTOR,
                              storage_capacity: float = DEFAULT_STORAGE_CAPACITY_KWH,
                              max_discharge_rate: float = DEFAULT_MAX_DISCHARGE_RATE_KW) -> Dict[str, Any]:
        """Run the summary and every analysis on the same collection."""
        records = list(records)
        logger.info(f"Calculating all metrics for {len(records)} records")

        return {
            'basic': asdict(SummaryCalculator.summarize(records)),
            'cost_savings': AdvancedAnalyzer.calculate_cost_savings(records, grid_import_rate, grid_export_rate),
            'emissions': AdvancedAnalyzer.calculate_emissions_reduction(records, grid_emission_factor),
            'self_sufficiency': AdvancedAnalyzer.calculate_self_sufficiency(records),
            'storage_potential': AdvancedAnalyzer.calculate_storage_potential(records),
            'peak_shaving': AdvancedAnalyzer.calculate_peak_shaving(records, storage_capacity, max_discharge_rate),
            'energy_balance': AdvancedAnalyzer.energy_balance_breakdown(records),
        }

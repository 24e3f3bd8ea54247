"""
Core analysis modules for the Solar Energy Analysis System.

This package contains the record model and the filtering, aggregation,
summary and advanced analysis engines shared by the CLI and any other front end.
"""

from .records import SolarDataPoint, derive_metrics, derive_all, records_to_frame
from .filters import FilterOptions, filter_records
from .aggregation import EnergyAggregator, DailyData, MonthlySummary, HourlyAverage, PeriodSummary, HeatmapData
from .summary import SummaryCalculator, DataSummary
from .advanced_analyzer import AdvancedAnalyzer
from .data_loader import SolarDataLoader
from .sample_data import generate_sample_data

__all__ = [
    'SolarDataPoint',
    'derive_metrics',
    'derive_all',
    'records_to_frame',
    'FilterOptions',
    'filter_records',
    'EnergyAggregator',
    'DailyData',
    'MonthlySummary',
    'HourlyAverage',
    'PeriodSummary',
    'HeatmapData',
    'SummaryCalculator',
    'DataSummary',
    'AdvancedAnalyzer',
    'SolarDataLoader',
    'generate_sample_data',
]

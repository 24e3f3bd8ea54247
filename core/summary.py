import logging
from dataclasses import dataclass
from typing import Iterable

from .aggregation import grid_dependency_percentage, self_consumption_percentage
from .records import SolarDataPoint, records_to_frame

logger = logging.getLogger(__name__)


@dataclass
class DataSummary:
    total_solar_production: float
    total_energy_demand: float
    total_grid_import: float
    total_excess_export: float
    average_daily_solar_production: float
    average_daily_energy_demand: float
    peak_solar_production: float
    peak_energy_demand: float
    self_consumption_percentage: float
    grid_dependency_percentage: float


class SummaryCalculator:
    """Whole-collection rollup of a derived record set."""

    @staticmethod
    def summarize(records: Iterable[SolarDataPoint]) -> DataSummary:
        """
        Compute totals, daily averages, peaks and percentages for a collection.

        Daily averages divide by the number of distinct dates (at least 1).
        Peaks are the largest single-record values, floored at 0.
        """
        df = records_to_frame(records)

        if df.empty:
            return DataSummary(0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)

        total_solar = float(df['solar_production'].sum())
        total_demand = float(df['energy_demand'].sum())
        total_grid_import = float(df['grid_import'].sum())
        total_excess_export = float(df['excess_export'].sum())

        day_count = df['date'].nunique() or 1

        summary = DataSummary(
            total_solar_production=total_solar,
            total_energy_demand=total_demand,
            total_grid_import=total_grid_import,
            total_excess_export=total_excess_export,
            average_daily_solar_production=total_solar / day_count,
            average_daily_energy_demand=total_demand / day_count,
            peak_solar_production=max(0.0, float(df['solar_production'].max())),
            peak_energy_demand=max(0.0, float(df['energy_demand'].max())),
            self_consumption_percentage=self_consumption_percentage(total_solar, total_excess_export),
            grid_dependency_percentage=grid_dependency_percentage(total_grid_import, total_demand),
        )

        logger.info(f"Summarized {len(df)} records over {day_count} days: "
                    f"{total_solar:.1f} kWh produced, {total_demand:.1f} kWh demand")
        return summary

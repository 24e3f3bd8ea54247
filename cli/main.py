import argparse
import json
import logging
import os
import sys
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

import pandas as pd
from dotenv import load_dotenv

from core.advanced_analyzer import AdvancedAnalyzer
from core.aggregation import EnergyAggregator
from core.constants import (
    DEFAULT_GRID_EMISSION_FACTOR,
    DEFAULT_GRID_EXPORT_RATE,
    DEFAULT_GRID_IMPORT_RATE,
    DEFAULT_MAX_DISCHARGE_RATE_KW,
    DEFAULT_STORAGE_CAPACITY_KWH,
    HOUR_RANGES,
    SEASON_MONTHS,
)
from core.data_loader import SolarDataLoader
from core.filters import FilterOptions, filter_records
from core.records import date_range_of, parse_iso_date
from core.sample_data import generate_sample_data
from core.summary import SummaryCalculator
from utils.formatting import format_number, format_percentage

logger = logging.getLogger(__name__)

FORMAT_HINT = (
    "Unrecognized energy file format. This tool accepts CSV or Excel files with:\n"
    "  1) Solar_Production_kWh and Energy_Demand_kWh columns (kWh per hour), and\n"
    "  2) either Date/Hour/Month/Year/Day_of_Week/Is_Weekend/Quarter/Week_of_Year columns\n"
    "     or a single Timestamp column (e.g. 2025-01-01T10:00:00)."
)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default


def _parse_int_list(value: str, lo: int, hi: int) -> List[int]:
    """Parse '1,2,5' or '6-18' (inclusive) into a sorted list of ints within [lo, hi]."""
    out = set()
    for part in value.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            a, b = part.split("-", 1)
            out.update(range(int(a), int(b) + 1))
        else:
            out.add(int(part))
    bad = [v for v in out if v < lo or v > hi]
    if bad:
        raise ValueError(f"Values out of range {lo}-{hi}: {sorted(bad)}")
    return sorted(out)


def parse_months(value: Optional[str]) -> List[int]:
    """Month numbers or season names, e.g. '1,2', '6-8' or 'summer,winter'."""
    if not value:
        return []
    months = set()
    numeric = []
    for part in value.split(","):
        key = part.strip().lower()
        if key in SEASON_MONTHS:
            months.update(SEASON_MONTHS[key])
        elif key:
            numeric.append(key)
    if numeric:
        months.update(_parse_int_list(",".join(numeric), 1, 12))
    return sorted(months)


def parse_hours(value: Optional[str]) -> List[int]:
    """Hours or a named range, e.g. '6-18', '0,1,2' or 'daytime'."""
    if not value:
        return []
    key = value.strip().lower()
    if key in HOUR_RANGES:
        return sorted(HOUR_RANGES[key])
    return _parse_int_list(value, 0, 23)


def _load(path: str):
    """Load records, printing an error and exiting on failure."""
    loader = SolarDataLoader()
    try:
        return loader.load(path)
    except FileNotFoundError:
        print(f"File not found: {path}")
        sys.exit(1)
    except ValueError as e:
        msg = str(e) if str(e) else e.__class__.__name__
        print(f"Error: {msg}\n{FORMAT_HINT}")
        sys.exit(1)


def cmd_inspect(path: str):
    records = _load(path)
    if not records:
        print("No records found.")
        return
    summary = SummaryCalculator.summarize(records)
    start, end = date_range_of(records)
    days = len({p.date for p in records})

    print("Energy data inspection")
    print(f"- Rows (hours): {len(records)}")
    print(f"- Days: {days}")
    print(f"- Date range: {start} to {end}")
    print(f"- Total solar production: {format_number(summary.total_solar_production, 3)} kWh")
    print(f"- Total energy demand:    {format_number(summary.total_energy_demand, 3)} kWh")
    print(f"- Average solar kWh/day:  {format_number(summary.average_daily_solar_production, 3)}")
    print(f"- Average demand kWh/day: {format_number(summary.average_daily_energy_demand, 3)}")


def _filters_payload(options: FilterOptions) -> dict:
    return {
        'start_date': options.start_date,
        'end_date': options.end_date,
        'months': sorted(options.months),
        'hours': sorted(options.hours),
        'weekdays_only': options.weekdays_only,
        'weekends_only': options.weekends_only,
    }


def _print_report(summary, daily, metrics: dict, start, end):
    cost = metrics['cost_savings']
    emissions = metrics['emissions']
    suff = metrics['self_sufficiency']
    storage = metrics['storage_potential']
    peak = metrics['peak_shaving']

    print("Solar energy balance")
    print(f"- Hours: {suff['hours_counted']}  Days: {len(daily)}")
    print(f"- Date range: {start} to {end}")
    print(f"- Solar production: {format_number(summary.total_solar_production, 3)} kWh")
    print(f"- Energy demand:    {format_number(summary.total_energy_demand, 3)} kWh")
    print(f"- Grid import:      {format_number(summary.total_grid_import, 3)} kWh")
    print(f"- Excess export:    {format_number(summary.total_excess_export, 3)} kWh")
    print(f"- Self-consumption: {format_percentage(summary.self_consumption_percentage)}")
    print(f"- Grid dependency:  {format_percentage(summary.grid_dependency_percentage)}")
    print(f"- Peak solar / demand hour: {format_number(summary.peak_solar_production)} / "
          f"{format_number(summary.peak_energy_demand)} kWh")

    print("Cost savings")
    print(f"- Cost without solar: {format_number(cost['total_cost_without_solar'])}")
    print(f"- Cost with solar:    {format_number(cost['total_cost_with_solar'])}")
    print(f"- Savings: {format_number(cost['total_savings'])} ({format_percentage(cost['savings_percentage'])})")

    print("Emissions")
    print(f"- Without solar: {format_number(emissions['emissions_without_solar'])} kg CO2")
    print(f"- With solar:    {format_number(emissions['emissions_with_solar'])} kg CO2")
    print(f"- Reduction: {format_number(emissions['emissions_reduction'])} kg CO2 "
          f"({format_percentage(emissions['reduction_percentage'])}), "
          f"~{emissions['equivalent_trees_planted']} trees/year")

    print("Self-sufficiency")
    print(f"- Self-sufficiency: {format_percentage(suff['self_sufficiency_percentage'])}")
    print(f"- Hours: self-sufficient {suff['self_sufficient_hours']}, excess {suff['excess_production_hours']}, "
          f"grid-dependent {suff['grid_dependent_hours']}, no production {suff['no_production_hours']}")

    print("Storage potential")
    print(f"- Optimal storage capacity: {format_number(storage['optimal_storage_capacity'])} kWh")
    print(f"- Self-sufficiency: {format_percentage(storage['current_self_sufficiency'])} -> "
          f"{format_percentage(storage['potential_self_sufficiency'])}")

    print("Peak shaving")
    print(f"- Peak demand: {format_number(peak['total_peak_demand'])} -> "
          f"{format_number(peak['total_peak_demand_after_shaving'])} kW "
          f"({format_percentage(peak['peak_reduction_percentage'])} reduction over {peak['days_analyzed']} days)")


def cmd_analyze(args):
    records = _load(args.path)

    try:
        options = FilterOptions(
            start_date=parse_iso_date(args.start_date) if args.start_date else None,
            end_date=parse_iso_date(args.end_date) if args.end_date else None,
            months=parse_months(args.months),
            hours=parse_hours(args.hours),
            weekdays_only=args.weekdays_only,
            weekends_only=args.weekends_only,
        )
    except ValueError as e:
        print(f"Error: invalid filter: {e}")
        sys.exit(1)

    import_rate = args.import_rate if args.import_rate is not None else _env_float("SOLAR_GRID_IMPORT_RATE", DEFAULT_GRID_IMPORT_RATE)
    export_rate = args.export_rate if args.export_rate is not None else _env_float("SOLAR_GRID_EXPORT_RATE", DEFAULT_GRID_EXPORT_RATE)
    emission_factor = args.emission_factor if args.emission_factor is not None else _env_float("SOLAR_GRID_EMISSION_FACTOR", DEFAULT_GRID_EMISSION_FACTOR)
    capacity = args.storage_capacity if args.storage_capacity is not None else _env_float("SOLAR_STORAGE_CAPACITY_KWH", DEFAULT_STORAGE_CAPACITY_KWH)
    max_rate = args.max_discharge_rate if args.max_discharge_rate is not None else _env_float("SOLAR_MAX_DISCHARGE_RATE_KW", DEFAULT_MAX_DISCHARGE_RATE_KW)

    filtered = filter_records(records, options)
    start, end = date_range_of(filtered)

    summary = SummaryCalculator.summarize(filtered)
    daily = EnergyAggregator.aggregate_by_day(filtered)
    monthly = EnergyAggregator.aggregate_by_month(filtered)
    hourly = EnergyAggregator.aggregate_by_hour(filtered)
    metrics = {
        'cost_savings': AdvancedAnalyzer.calculate_cost_savings(filtered, import_rate, export_rate),
        'emissions': AdvancedAnalyzer.calculate_emissions_reduction(filtered, emission_factor),
        'self_sufficiency': AdvancedAnalyzer.calculate_self_sufficiency(filtered),
        'storage_potential': AdvancedAnalyzer.calculate_storage_potential(filtered),
        'peak_shaving': AdvancedAnalyzer.calculate_peak_shaving(filtered, capacity, max_rate),
    }

    if args.output:
        out_path = Path(args.output).expanduser()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        pd.DataFrame([asdict(d) for d in daily]).to_csv(out_path, index=False)
        logger.info(f"Saved daily aggregate CSV to {out_path}")

    if args.json:
        payload = {
            'summary': asdict(summary),
            'daily': [asdict(d) for d in daily],
            'monthly': [asdict(m) for m in monthly],
            'hourly': [asdict(h) for h in hourly],
            **metrics,
            'filters': _filters_payload(options),
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    if not filtered:
        print("No records match the selected filters.")
        return

    _print_report(summary, daily, metrics, start, end)
    if args.output:
        print(f"Saved daily aggregate CSV to {args.output}")


def cmd_sample(args):
    try:
        start = parse_iso_date(args.start_date)
    except ValueError as e:
        print(f"Error: invalid start date: {e}")
        sys.exit(1)
    records = generate_sample_data(days=args.days, start=start, seed=args.seed)
    out_path = SolarDataLoader().export_records(records, args.output)
    print(f"Wrote {len(records)} sample records to {out_path}")


def main():
    # Load environment variables (SOLAR_GRID_IMPORT_RATE, SOLAR_STORAGE_CAPACITY_KWH, etc.)
    load_dotenv()
    parser = argparse.ArgumentParser(description="Solar energy balance CLI")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="cmd")

    p_inspect = sub.add_parser("inspect", help="Inspect an hourly energy CSV")
    p_inspect.add_argument("path", help="Path to the CSV/Excel file")

    p_analyze = sub.add_parser("analyze", help="Filter, summarise and run all analyses")
    p_analyze.add_argument("path", help="Path to the CSV/Excel file")
    p_analyze.add_argument("--start-date", help="First date to include (YYYY-MM-DD)")
    p_analyze.add_argument("--end-date", help="Last date to include (YYYY-MM-DD)")
    p_analyze.add_argument("--months", help="Months to include, e.g. 1,2,12 or 6-8 or summer")
    p_analyze.add_argument("--hours", help="Hours to include, e.g. 6-18 or 0,1,2 or daytime")
    p_analyze.add_argument("--weekdays-only", action="store_true", help="Only Monday to Friday")
    p_analyze.add_argument("--weekends-only", action="store_true", help="Only Saturday and Sunday")
    # Cost & system parameters (fall back to SOLAR_* environment variables)
    p_analyze.add_argument("--import-rate", type=float, help="Grid import price per kWh (default 0.15)")
    p_analyze.add_argument("--export-rate", type=float, help="Grid export credit per kWh (default 0.08)")
    p_analyze.add_argument("--emission-factor", type=float, help="Grid emission factor in kg CO2 per kWh (default 0.5)")
    p_analyze.add_argument("--storage-capacity", type=float, help="Battery capacity in kWh for peak shaving (default 5)")
    p_analyze.add_argument("--max-discharge-rate", type=float, help="Battery discharge limit in kW (default 2)")
    p_analyze.add_argument("--json", action="store_true", help="Emit the full analysis as JSON")
    p_analyze.add_argument("--output", help="Optional path to save the daily aggregate CSV")

    p_sample = sub.add_parser("sample", help="Write generated sample data as CSV")
    p_sample.add_argument("output", help="Path of the CSV to write")
    p_sample.add_argument("--days", type=int, default=7, help="Number of days (default 7)")
    p_sample.add_argument("--start-date", default="2025-01-01", help="First day (YYYY-MM-DD)")
    p_sample.add_argument("--seed", type=int, help="Random seed for reproducible data")

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s %(message)s")

    if args.cmd == "inspect":
        cmd_inspect(args.path)
        return
    if args.cmd == "analyze":
        cmd_analyze(args)
        return
    if args.cmd == "sample":
        cmd_sample(args)
        return

    # Fallback: show help
    parser.print_help()


if __name__ == "__main__":
    main()

import logging
from pathlib import Path
from typing import Iterable, List, Optional

import pandas as pd

from utils.csv_format_detector_fallback import CSVFormatDetectorFallback

from .records import SolarDataPoint, date_range_of, derive_metrics

logger = logging.getLogger(__name__)

# Record field -> tabular column, in export order
COLUMN_MAP = {
    'timestamp': 'Timestamp',
    'date': 'Date',
    'time': 'Time',
    'hour': 'Hour',
    'day': 'Day',
    'month': 'Month',
    'month_name': 'Month_Name',
    'year': 'Year',
    'day_of_week': 'Day_of_Week',
    'day_name': 'Day_Name',
    'is_weekend': 'Is_Weekend',
    'quarter': 'Quarter',
    'week_of_year': 'Week_of_Year',
    'solar_production': 'Solar_Production_kWh',
    'energy_demand': 'Energy_Demand_kWh',
    'net_energy': 'Net_Energy_kWh',
    'grid_import': 'Grid_Import_kWh',
    'excess_export': 'Excess_Export_kWh',
}

INT_FIELDS = ['hour', 'day', 'month', 'year', 'day_of_week', 'quarter', 'week_of_year']
TEXT_FIELDS = ['timestamp', 'time', 'month_name', 'day_name']
CALENDAR_COLUMNS = ['Date', 'Hour', 'Month', 'Year', 'Day_of_Week', 'Is_Weekend', 'Quarter', 'Week_of_Year']
ENERGY_COLUMNS = ['Solar_Production_kWh', 'Energy_Demand_kWh']


class SolarDataLoader:
    """Load hourly production/demand tables into derived records, and write them back out."""

    def __init__(self):
        self.csv_reader = CSVFormatDetectorFallback()

    def load(self, file_path: str) -> List[SolarDataPoint]:
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"No such file: {file_path}")

        if str(path).lower().endswith((".xlsx", ".xls", ".xlsm")):
            df_raw = pd.read_excel(path, engine="openpyxl", dtype=str)
        else:
            df_raw = self.csv_reader.read(path)
        df_raw = df_raw.rename(columns={c: str(c).strip() for c in df_raw.columns})
        logger.info("Loaded %d rows, columns: %s", len(df_raw), list(df_raw.columns)[:5])

        records = self.parse_frame(df_raw)
        start, end = date_range_of(records)
        logger.info("Parsed %d hourly records from %s to %s", len(records), start, end)
        return records

    def parse_frame(self, df: pd.DataFrame) -> List[SolarDataPoint]:
        """Turn a raw table (text cells) into derived records."""
        missing = [c for c in ENERGY_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"Missing energy columns {missing}. Columns: {list(df.columns)}")

        solar = self._to_float(df['Solar_Production_kWh'])
        demand = self._to_float(df['Energy_Demand_kWh'])

        if all(c in df.columns for c in CALENDAR_COLUMNS):
            return self._records_from_calendar_columns(df, solar, demand)

        timestamps = self._infer_timestamps(df)
        if timestamps is None:
            raise ValueError(
                "Could not detect time columns. Expected either "
                f"{CALENDAR_COLUMNS} or a Timestamp column. Columns: {list(df.columns)}"
            )
        valid = timestamps.notna()
        if (~valid).any():
            logger.warning("Dropping %d rows with unparseable timestamps", int((~valid).sum()))
        return [
            SolarDataPoint.from_timestamp(ts, s, d)
            for ts, s, d in zip(timestamps[valid], solar[valid], demand[valid])
        ]

    def export_records(self, records: Iterable[SolarDataPoint], file_path: str) -> Path:
        """Write records with the same column set the loader reads, derived columns included."""
        rows = []
        for point in records:
            if not point.is_derived:
                point = derive_metrics(point)
            row = {column: getattr(point, name) for name, column in COLUMN_MAP.items()}
            row['Is_Weekend'] = 1 if point.is_weekend else 0
            rows.append(row)

        out_path = Path(file_path).expanduser()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        pd.DataFrame(rows, columns=list(COLUMN_MAP.values())).to_csv(out_path, index=False)
        logger.info("Exported %d records to %s", len(rows), out_path)
        return out_path

    def _records_from_calendar_columns(self, df: pd.DataFrame, solar: pd.Series, demand: pd.Series) -> List[SolarDataPoint]:
        values = {name: self._to_int(df[COLUMN_MAP[name]]) if COLUMN_MAP[name] in df.columns else pd.Series(0, index=df.index)
                  for name in INT_FIELDS}
        text = {name: self._to_text(df[COLUMN_MAP[name]]) if COLUMN_MAP[name] in df.columns else pd.Series('', index=df.index)
                for name in TEXT_FIELDS}
        dates = self._normalize_dates(df['Date'], values['year'], values['month'], values['day'])
        weekend = self._to_text(df['Is_Weekend']).str.lower().isin(['1', 'true'])

        if dates.isna().any():
            logger.warning("Dropping %d rows with unparseable dates", int(dates.isna().sum()))

        records = []
        for i in range(len(df)):
            if pd.isna(dates.iat[i]):
                continue
            point = SolarDataPoint(
                date=dates.iat[i],
                hour=int(values['hour'].iat[i]),
                month=int(values['month'].iat[i]),
                year=int(values['year'].iat[i]),
                day_of_week=int(values['day_of_week'].iat[i]),
                is_weekend=bool(weekend.iat[i]),
                quarter=int(values['quarter'].iat[i]),
                week_of_year=int(values['week_of_year'].iat[i]),
                solar_production=float(solar.iat[i]),
                energy_demand=float(demand.iat[i]),
                timestamp=text['timestamp'].iat[i],
                time=text['time'].iat[i],
                day=int(values['day'].iat[i]),
                month_name=text['month_name'].iat[i],
                day_name=text['day_name'].iat[i],
            )
            records.append(derive_metrics(point))
        return records

    def _infer_timestamps(self, df: pd.DataFrame) -> Optional[pd.Series]:
        if 'Timestamp' in df.columns:
            return self._parse_datetimes(self._to_text(df['Timestamp']))
        if 'Date' in df.columns and 'Hour' in df.columns:
            base = self._parse_datetimes(self._to_text(df['Date']))
            hours = self._to_int(df['Hour'])
            # Hour 24 (1-24 numbering) rolls over to 00:00 of the next day
            out_of_range = (hours < 0) | (hours > 24)
            if out_of_range.any():
                logger.warning("%d rows with hour outside 0-24 treated as unparseable", int(out_of_range.sum()))
            return (base + pd.to_timedelta(hours, unit='h')).where(~out_of_range)
        return None

    def _parse_datetimes(self, text: pd.Series) -> pd.Series:
        """Parse ISO 8601 first (space or 'T' separator, optional seconds), then retry the rest month-first."""
        ts = pd.to_datetime(text, format='ISO8601', errors='coerce')
        retry = ts.isna() & text.ne('')
        if retry.any():
            ts = ts.where(~retry, pd.to_datetime(text[retry], format='mixed', dayfirst=False, errors='coerce'))
        return ts

    def _normalize_dates(self, s: pd.Series, year: pd.Series, month: pd.Series, day: pd.Series) -> pd.Series:
        """
        Normalise dates to zero-padded YYYY-MM-DD.

        Cells that are not YYYY-MM-DD are rebuilt from the Year/Month/Day
        columns, then parsed month-first. Unparseable dates are NaN.
        """
        text = self._to_text(s)
        parsed = pd.to_datetime(text, format='%Y-%m-%d', errors='coerce')

        missing = parsed.isna()
        if missing.any():
            from_parts = pd.to_datetime(
                pd.DataFrame({'year': year, 'month': month, 'day': day}), errors='coerce'
            )
            parsed = parsed.where(~missing, from_parts)

        missing = parsed.isna() & text.ne('')
        if missing.any():
            parsed = parsed.where(~missing, self._parse_datetimes(text[missing]))

        return parsed.dt.strftime('%Y-%m-%d').where(parsed.notna())

    def _to_text(self, s: pd.Series) -> pd.Series:
        return s.fillna('').astype(str).str.strip()

    def _to_float(self, s: pd.Series) -> pd.Series:
        values = pd.to_numeric(self._normalize_numeric_string(s), errors='coerce')
        bad = values.isna() & self._to_text(s).ne('')
        if bad.any():
            logger.warning("%d non-numeric values in %s defaulted to 0", int(bad.sum()), s.name)
        return values.fillna(0.0).astype(float)

    def _to_int(self, s: pd.Series) -> pd.Series:
        values = pd.to_numeric(self._normalize_numeric_string(s), errors='coerce')
        return values.fillna(0).astype(float).astype(int)

    def _normalize_numeric_string(self, s: pd.Series) -> pd.Series:
        """Normalize numeric text to parseable form.
        - Remove NBSP, thin spaces and regular spaces
        - Convert decimal comma to dot
        - Strip a trailing unit ('kWh')
        Anything else left over makes the cell non-numeric.
        """
        ss = self._to_text(s)
        ss = ss.str.replace("\u00A0", "", regex=False)  # NBSP
        ss = ss.str.replace("\u202F", "", regex=False)  # thin space
        ss = ss.str.replace(" ", "", regex=False)
        ss = ss.str.replace(",", ".", regex=False)
        ss = ss.str.replace(r"(?i)kwh$", "", regex=True)
        return ss.where(ss.str.fullmatch(r"[+\-]?(\d+\.?\d*|\.\d+)([eE][+\-]?\d+)?"), "")

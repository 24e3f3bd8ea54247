import pandas as pd
import pytest

from core.data_loader import COLUMN_MAP, SolarDataLoader
from core.records import SolarDataPoint
from core.sample_data import generate_sample_data
from utils.csv_format_detector_fallback import CSVFormatDetectorFallback


def test_export_then_load_reproduces_records(tmp_path, reference_records):
    loader = SolarDataLoader()
    path = loader.export_records(reference_records, tmp_path / "energy.csv")

    header = path.read_text(encoding="utf-8").splitlines()[0].split(",")
    assert header == list(COLUMN_MAP.values())

    assert loader.load(str(path)) == reference_records


def test_sample_data_survives_export(tmp_path):
    records = generate_sample_data(days=2, seed=3)
    loader = SolarDataLoader()
    path = loader.export_records(records, tmp_path / "nested" / "sample.csv")
    loaded = loader.load(str(path))
    assert len(loaded) == 48
    assert [(p.solar_production, p.energy_demand) for p in loaded] == \
           [(p.solar_production, p.energy_demand) for p in records]


def test_export_writes_weekend_flag_as_int(tmp_path, weekend_records):
    path = SolarDataLoader().export_records(weekend_records, tmp_path / "weekend.csv")
    df = pd.read_csv(path)
    assert df['Is_Weekend'].tolist() == [1, 1, 0]


def test_load_semicolon_file_with_decimal_comma(tmp_path):
    path = tmp_path / "semicolon.csv"
    path.write_text(
        "Timestamp;Solar_Production_kWh;Energy_Demand_kWh\n"
        "2025-01-01 10:00;5,0;2,0\n"
        "2025-01-01 11:00;6,5 kWh;3\n",
        encoding="utf-8",
    )
    records = SolarDataLoader().load(str(path))
    assert [p.hour for p in records] == [10, 11]
    assert records[1].solar_production == pytest.approx(6.5)
    assert records[1].excess_export == pytest.approx(3.5)
    assert records[0].day_name == "Wednesday"


def test_load_with_date_and_hour_only(tmp_path):
    path = tmp_path / "date_hour.csv"
    path.write_text(
        "Date,Hour,Solar_Production_kWh,Energy_Demand_kWh\n"
        "2025-01-04,12,3,1\n"
        "2025-01-04,20,,2\n",
        encoding="utf-8",
    )
    records = SolarDataLoader().load(str(path))
    assert [(p.date, p.hour) for p in records] == [("2025-01-04", 12), ("2025-01-04", 20)]
    assert all(p.is_weekend for p in records)
    # blank production defaults to 0
    assert records[1].solar_production == 0
    assert records[1].grid_import == pytest.approx(2.0)


def test_unparseable_timestamps_are_dropped(tmp_path):
    path = tmp_path / "bad_rows.csv"
    path.write_text(
        "Timestamp,Solar_Production_kWh,Energy_Demand_kWh\n"
        "2025-01-01 10:00,1,1\n"
        "garbage,1,1\n"
        "2025-01-01 12:00,1,1\n",
        encoding="utf-8",
    )
    records = SolarDataLoader().load(str(path))
    assert [p.hour for p in records] == [10, 12]


def test_missing_energy_columns(tmp_path):
    path = tmp_path / "no_energy.csv"
    path.write_text("Timestamp,Production\n2025-01-01 10:00,1\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Missing energy columns"):
        SolarDataLoader().load(str(path))


def test_missing_time_columns(tmp_path):
    path = tmp_path / "no_time.csv"
    path.write_text("Solar_Production_kWh,Energy_Demand_kWh\n1,2\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Could not detect time columns"):
        SolarDataLoader().load(str(path))


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        SolarDataLoader().load(str(tmp_path / "absent.csv"))


def test_derived_columns_in_input_are_recomputed():
    df = pd.DataFrame({
        'Timestamp': ['2025-01-01T10:00:00'],
        'Solar_Production_kWh': ['5'],
        'Energy_Demand_kWh': ['2'],
        'Net_Energy_kWh': ['-99'],
        'Grid_Import_kWh': ['99'],
    })
    point = SolarDataLoader().parse_frame(df)[0]
    assert point.net_energy == pytest.approx(3.0)
    assert point.grid_import == 0


def test_load_excel(tmp_path):
    path = tmp_path / "energy.xlsx"
    pd.DataFrame({
        'Timestamp': ['2025-07-01 13:00', '2025-07-01 14:00'],
        'Solar_Production_kWh': [4.2, 3.1],
        'Energy_Demand_kWh': [1.0, 3.5],
    }).to_excel(path, index=False, engine="openpyxl")

    records = SolarDataLoader().load(str(path))
    assert [p.month_name for p in records] == ["July", "July"]
    assert records[0].excess_export == pytest.approx(3.2)
    assert records[1].grid_import == pytest.approx(0.4)


def test_detector_finds_separator_and_encoding(tmp_path):
    path = tmp_path / "tabs.csv"
    path.write_text("Date\tHour\tSolar_Production_kWh\n2025-01-01\t1\t0\n2025-01-01\t2\t0\n", encoding="utf-8")
    params = CSVFormatDetectorFallback().detect_format(path)
    assert params['sep'] == '\t'
    assert params['encoding'] == 'utf-8'


def test_detector_handles_bom(tmp_path):
    path = tmp_path / "bom.csv"
    path.write_bytes("Timestamp,Solar_Production_kWh,Energy_Demand_kWh\n2025-01-01 10:00,1,2\n".encode("utf-8-sig"))
    df = CSVFormatDetectorFallback().read(path)
    assert list(df.columns)[0] == "Timestamp"
    assert SolarDataPoint.from_timestamp(df['Timestamp'][0], 1, 2).hour == 10


def test_timestamps_in_mixed_iso_forms_are_all_kept(tmp_path):
    path = tmp_path / "mixed.csv"
    path.write_text(
        "Timestamp,Solar_Production_kWh,Energy_Demand_kWh\n"
        "2025-01-01 10:00,1,1\n"
        "2025-01-01T11:00:00,1,1\n"
        "2025-01-01 12:00:00,1,1\n",
        encoding="utf-8",
    )
    records = SolarDataLoader().load(str(path))
    assert [p.hour for p in records] == [10, 11, 12]


def test_calendar_dates_are_normalised_from_year_month_day(tmp_path):
    from core.aggregation import EnergyAggregator
    from core.filters import FilterOptions, filter_records

    path = tmp_path / "us_dates.csv"
    path.write_text(
        "Date,Hour,Day,Month,Year,Day_of_Week,Is_Weekend,Quarter,Week_of_Year,Solar_Production_kWh,Energy_Demand_kWh\n"
        "12/31/2024,10,31,12,2024,2,0,4,1,3,1\n"
        "01/01/2025,10,1,1,2025,3,0,1,1,2,2\n",
        encoding="utf-8",
    )
    records = SolarDataLoader().load(str(path))
    assert [p.date for p in records] == ["2024-12-31", "2025-01-01"]
    assert [d.date for d in EnergyAggregator.aggregate_by_day(records)] == ["2024-12-31", "2025-01-01"]
    assert len(filter_records(records, FilterOptions(start_date="2025-01-01"))) == 1


def test_calendar_dates_without_day_column_parse_month_first(tmp_path):
    path = tmp_path / "no_day.csv"
    path.write_text(
        "Date,Hour,Month,Year,Day_of_Week,Is_Weekend,Quarter,Week_of_Year,Solar_Production_kWh,Energy_Demand_kWh\n"
        "12/31/2024,10,12,2024,2,0,4,1,3,1\n"
        "someday,11,12,2024,2,0,4,1,3,1\n",
        encoding="utf-8",
    )
    records = SolarDataLoader().load(str(path))
    # the unparseable date is dropped rather than kept as text
    assert [p.date for p in records] == ["2024-12-31"]


def test_hour_24_rolls_over_to_next_day(tmp_path):
    path = tmp_path / "hour_24.csv"
    path.write_text(
        "Date,Hour,Solar_Production_kWh,Energy_Demand_kWh\n"
        "2025-01-01,23,0,1\n"
        "2025-01-01,24,0,2\n"
        "2025-01-01,25,0,3\n",
        encoding="utf-8",
    )
    records = SolarDataLoader().load(str(path))
    assert [(p.date, p.hour) for p in records] == [("2025-01-01", 23), ("2025-01-02", 0)]
    assert records[1].energy_demand == pytest.approx(2.0)


def test_non_numeric_cells_default_to_zero_with_warning(caplog):
    df = pd.DataFrame({
        'Timestamp': ['2025-01-01T10:00:00', '2025-01-01T11:00:00', '2025-01-01T12:00:00'],
        'Solar_Production_kWh': ['12abc3', '5 kWh', '1.5e1'],
        'Energy_Demand_kWh': ['1', '1', '1'],
    })
    with caplog.at_level("WARNING"):
        records = SolarDataLoader().parse_frame(df)
    assert [p.solar_production for p in records] == [0.0, 5.0, 15.0]
    assert "1 non-numeric values" in caplog.text

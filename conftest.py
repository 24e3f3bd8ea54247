import pytest

from core.records import SolarDataPoint


@pytest.fixture
def reference_records():
    """Three hours on Wednesday 2025-01-01 and one on Thursday 2025-01-02."""
    return [
        SolarDataPoint.from_timestamp("2025-01-01T10:00:00", 5.0, 2.0),
        SolarDataPoint.from_timestamp("2025-01-01T11:00:00", 6.0, 3.0),
        SolarDataPoint.from_timestamp("2025-01-01T20:00:00", 0.0, 4.0),
        SolarDataPoint.from_timestamp("2025-01-02T10:00:00", 4.5, 2.5),
    ]


@pytest.fixture
def weekend_records():
    """Saturday 2025-01-04 and Sunday 2025-01-05 alongside a Monday."""
    return [
        SolarDataPoint.from_timestamp("2025-01-04T12:00:00", 3.0, 1.0),
        SolarDataPoint.from_timestamp("2025-01-05T12:00:00", 2.0, 2.0),
        SolarDataPoint.from_timestamp("2025-01-06T12:00:00", 1.0, 3.0),
    ]

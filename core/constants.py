"""
Default parameters and lookup tables for the energy-balance analyses.
"""

# Tariffs (currency units per kWh)
DEFAULT_GRID_IMPORT_RATE = 0.15
DEFAULT_GRID_EXPORT_RATE = 0.08

# Emission factor: 0.5 kg CO2 per kWh drawn from the grid
DEFAULT_GRID_EMISSION_FACTOR = 0.5
KG_CO2_PER_TREE_PER_YEAR = 21.7

# Battery assumptions for peak shaving
DEFAULT_STORAGE_CAPACITY_KWH = 5.0
DEFAULT_MAX_DISCHARGE_RATE_KW = 2.0
PEAK_THRESHOLD_RATIO = 0.7  # hours above 70% of the daily peak are shaved

MONTH_NAMES = [
    'January', 'February', 'March', 'April', 'May', 'June',
    'July', 'August', 'September', 'October', 'November', 'December'
]

# 0 = Sunday
DAY_NAMES = ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday']

SEASON_MONTHS = {
    'winter': (12, 1, 2),
    'spring': (3, 4, 5),
    'summer': (6, 7, 8),
    'fall': (9, 10, 11),
}

HOUR_RANGES = {
    'all': tuple(range(24)),
    'daytime': tuple(range(6, 19)),
    'nighttime': tuple(range(18, 24)) + tuple(range(0, 6)),
    'morning': tuple(range(5, 12)),
    'afternoon': tuple(range(12, 17)),
    'evening': tuple(range(17, 21)),
    'night': tuple(range(21, 24)) + tuple(range(0, 5)),
}

SEASON_ORDER = ['Winter', 'Spring', 'Summer', 'Fall']
TIME_OF_DAY_ORDER = ['Morning', 'Afternoon', 'Evening', 'Night']

ENERGY_FIELDS = ['solar_production', 'energy_demand', 'grid_import', 'excess_export']

"""
Utility modules for CSV format detection and report formatting.
"""

from .csv_format_detector_fallback import CSVFormatDetectorFallback
from .formatting import format_number, format_percentage

__all__ = [
    "CSVFormatDetectorFallback",
    "format_number",
    "format_percentage",
]

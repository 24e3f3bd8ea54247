"""
Predicate-based subsetting of a record collection.
"""

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional

from .constants import HOUR_RANGES, SEASON_MONTHS
from .records import SolarDataPoint

logger = logging.getLogger(__name__)


def _as_frozenset(values: Optional[Iterable[int]]) -> FrozenSet[int]:
    if values is None:
        return frozenset()
    return frozenset(int(v) for v in values)


@dataclass(frozen=True)
class FilterOptions:
    """
    Filter settings for a record collection.

    Every predicate is optional and all supplied predicates are ANDed.
    Dates are compared as zero-padded YYYY-MM-DD strings, both ends inclusive.
    An empty months/hours set imposes no constraint. weekdays_only and
    weekends_only are independent flags; setting both matches nothing.
    """
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    months: FrozenSet[int] = field(default_factory=frozenset)
    hours: FrozenSet[int] = field(default_factory=frozenset)
    weekdays_only: bool = False
    weekends_only: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'months', _as_frozenset(self.months))
        object.__setattr__(self, 'hours', _as_frozenset(self.hours))

    @classmethod
    def for_seasons(cls, *seasons: str, **kwargs) -> 'FilterOptions':
        months = set()
        for season in seasons:
            key = season.lower()
            if key not in SEASON_MONTHS:
                raise ValueError(f"Unknown season: {season}. Expected one of {sorted(SEASON_MONTHS)}")
            months.update(SEASON_MONTHS[key])
        return cls(months=months, **kwargs)

    @classmethod
    def for_hour_range(cls, name: str, **kwargs) -> 'FilterOptions':
        key = name.lower()
        if key not in HOUR_RANGES:
            raise ValueError(f"Unknown hour range: {name}. Expected one of {sorted(HOUR_RANGES)}")
        return cls(hours=HOUR_RANGES[key], **kwargs)

    def is_empty(self) -> bool:
        return not (
            self.start_date or self.end_date or self.months or self.hours
            or self.weekdays_only or self.weekends_only
        )

    def matches(self, point: SolarDataPoint) -> bool:
        if self.start_date and point.date < self.start_date:
            return False
        if self.end_date and point.date > self.end_date:
            return False
        if self.months and point.month not in self.months:
            return False
        if self.hours and point.hour not in self.hours:
            return False
        if self.weekdays_only and point.is_weekend:
            return False
        if self.weekends_only and not point.is_weekend:
            return False
        return True


def filter_records(records: Iterable[SolarDataPoint], options: Optional[FilterOptions] = None) -> List[SolarDataPoint]:
    """Return a new list with the records that satisfy every option, in input order."""
    records = list(records)
    if options is None or options.is_empty():
        return records
    filtered = [p for p in records if options.matches(p)]
    logger.info(f"Filtered {len(records)} records down to {len(filtered)}")
    return filtered

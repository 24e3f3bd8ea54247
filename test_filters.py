import dataclasses

import pytest

from core.filters import FilterOptions, filter_records


def test_no_options_returns_everything(reference_records):
    assert filter_records(reference_records) == reference_records
    assert filter_records(reference_records, FilterOptions()) == reference_records
    assert FilterOptions().is_empty()


def test_result_is_a_new_list(reference_records):
    result = filter_records(reference_records)
    result.pop()
    assert len(reference_records) == 4


def test_hour_filter_keeps_order(reference_records):
    result = filter_records(reference_records, FilterOptions(hours=[10]))
    assert [(p.date, p.hour) for p in result] == [("2025-01-01", 10), ("2025-01-02", 10)]


def test_date_bounds_are_inclusive(reference_records):
    only_second = filter_records(reference_records, FilterOptions(start_date="2025-01-02"))
    assert [p.date for p in only_second] == ["2025-01-02"]

    only_first = filter_records(reference_records, FilterOptions(end_date="2025-01-01"))
    assert len(only_first) == 3

    both = filter_records(reference_records, FilterOptions(start_date="2025-01-01", end_date="2025-01-02"))
    assert len(both) == 4


def test_month_filter(reference_records):
    assert filter_records(reference_records, FilterOptions(months=[2])) == []
    assert len(filter_records(reference_records, FilterOptions(months=[1, 2]))) == 4


def test_empty_sets_impose_no_constraint(reference_records):
    options = FilterOptions(months=[], hours=set())
    assert options.is_empty()
    assert len(filter_records(reference_records, options)) == 4


def test_weekday_and_weekend_flags(reference_records, weekend_records):
    records = reference_records + weekend_records
    weekdays = filter_records(records, FilterOptions(weekdays_only=True))
    weekends = filter_records(records, FilterOptions(weekends_only=True))
    assert len(weekdays) == 5
    assert [p.date for p in weekends] == ["2025-01-04", "2025-01-05"]


def test_both_weekday_flags_match_nothing(reference_records, weekend_records):
    options = FilterOptions(weekdays_only=True, weekends_only=True)
    assert filter_records(reference_records + weekend_records, options) == []


def test_predicates_are_anded(reference_records):
    options = FilterOptions(start_date="2025-01-01", end_date="2025-01-01", hours=[10, 20])
    result = filter_records(reference_records, options)
    assert [p.hour for p in result] == [10, 20]


def test_options_are_frozen_sets():
    options = FilterOptions(months=[1, 1, 2], hours=(6, 7))
    assert options.months == frozenset({1, 2})
    assert options.hours == frozenset({6, 7})
    with pytest.raises(dataclasses.FrozenInstanceError):
        options.weekdays_only = True


def test_for_seasons(reference_records):
    winter = FilterOptions.for_seasons("Winter")
    assert winter.months == frozenset({12, 1, 2})
    assert len(filter_records(reference_records, winter)) == 4
    assert filter_records(reference_records, FilterOptions.for_seasons("summer", "fall")) == []

    with pytest.raises(ValueError):
        FilterOptions.for_seasons("monsoon")


def test_for_hour_range(reference_records):
    night = FilterOptions.for_hour_range("nighttime")
    assert 23 in night.hours and 0 in night.hours and 12 not in night.hours
    assert [p.hour for p in filter_records(reference_records, night)] == [20]

    daytime = FilterOptions.for_hour_range("daytime", start_date="2025-01-02")
    assert [p.date for p in filter_records(reference_records, daytime)] == ["2025-01-02"]

    with pytest.raises(ValueError):
        FilterOptions.for_hour_range("teatime")

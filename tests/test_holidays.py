from datetime import date

from jira_sla.analytics.sla.holidays import DEFAULT_HOLIDAYS, HolidayCalendar, easter_monday


def test_easter_monday_is_a_monday():
    assert easter_monday(2025) == date(2025, 4, 21)
    assert easter_monday(2031).weekday() == 0


def test_default_calendar_fixed_and_movable():
    assert DEFAULT_HOLIDAYS.is_holiday(date(2026, 1, 1))
    assert DEFAULT_HOLIDAYS.is_holiday(date(2025, 4, 21))
    assert not DEFAULT_HOLIDAYS.is_holiday(date(2025, 4, 22))
    assert DEFAULT_HOLIDAYS.covers_year(2030)
    assert not DEFAULT_HOLIDAYS.covers_year(2050)


def test_business_day_excludes_weekends_and_holidays():
    assert DEFAULT_HOLIDAYS.is_business_day(date(2025, 3, 3))
    assert not DEFAULT_HOLIDAYS.is_business_day(date(2025, 3, 8))
    assert not DEFAULT_HOLIDAYS.is_business_day(date(2025, 12, 25))


def test_from_config_overrides_fixed_and_merges_movable():
    cal = HolidayCalendar.from_config(
        {
            "fixed": ["12-25", "bogus", [8, 15]],
            "movable": {2050: ["2050-04-11", "not-a-date"]},
        }
    )
    assert cal.is_holiday(date(2025, 12, 25))
    assert cal.is_holiday(date(2025, 8, 15))
    assert not cal.is_holiday(date(2025, 1, 1))
    assert cal.is_holiday(date(2050, 4, 11))
    # default Easter Monday table is kept
    assert cal.is_holiday(date(2025, 4, 21))


def test_from_config_empty_returns_defaults():
    cal = HolidayCalendar.from_config(None)
    assert cal.is_holiday(date(2025, 4, 21))
    assert cal.is_holiday(date(2025, 6, 2))


def test_with_movable_returns_new_calendar():
    extended = DEFAULT_HOLIDAYS.with_movable(2045, [date(2045, 4, 10)])
    assert extended.is_holiday(date(2045, 4, 10))
    assert not DEFAULT_HOLIDAYS.is_holiday(date(2045, 4, 10))

"""Holiday calendar: fixed annual dates plus per-year movable dates.

The default movable table holds Easter Monday for the years in
MOVABLE_HOLIDAY_YEARS. A year missing from the movable table simply has no
movable holiday; fixed dates apply to every year.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any

from dateutil.easter import easter

from jira_sla.core.config import FIXED_HOLIDAYS, MOVABLE_HOLIDAY_YEARS

logger = logging.getLogger(__name__)


def easter_monday(year: int) -> date:
    return easter(year) + timedelta(days=1)


def default_movable_table(years: Iterable[int] = MOVABLE_HOLIDAY_YEARS) -> dict[int, frozenset[date]]:
    return {year: frozenset({easter_monday(year)}) for year in years}


def _parse_month_day(value: Any) -> tuple[int, int] | None:
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return int(value[0]), int(value[1])
    text = str(value).strip()
    parts = text.split("-")
    if len(parts) != 2:
        return None
    try:
        month, day = int(parts[0]), int(parts[1])
        date(2000, month, day)  # leap year accepts 02-29
    except ValueError:
        return None
    return month, day


@dataclass(frozen=True, slots=True)
class HolidayCalendar:
    fixed: frozenset[tuple[int, int]] = FIXED_HOLIDAYS
    movable: Mapping[int, frozenset[date]] = field(default_factory=default_movable_table)

    def is_holiday(self, day: date) -> bool:
        if (day.month, day.day) in self.fixed:
            return True
        return day in self.movable.get(day.year, frozenset())

    def is_business_day(self, day: date) -> bool:
        return day.weekday() < 5 and not self.is_holiday(day)

    def covers_year(self, year: int) -> bool:
        return year in self.movable

    def with_movable(self, year: int, days: Iterable[date]) -> HolidayCalendar:
        table = dict(self.movable)
        table[year] = frozenset(days)
        return HolidayCalendar(fixed=self.fixed, movable=table)

    @classmethod
    def from_config(cls, data: Mapping[str, Any] | None) -> HolidayCalendar:
        """Build a calendar from a configuration mapping.

        Expected shape::

            fixed: ["01-01", "12-25"]          # MM-DD, replaces the defaults
            movable:
              2026: ["2026-04-06"]              # merged over the default table

        Entries that cannot be parsed are logged and skipped.
        """
        if not data:
            return cls()
        fixed = FIXED_HOLIDAYS
        if data.get("fixed") is not None:
            parsed = set()
            for raw in data.get("fixed") or []:
                md = _parse_month_day(raw)
                if md is None:
                    logger.warning("Ignoring unparseable fixed holiday %r", raw)
                    continue
                parsed.add(md)
            fixed = frozenset(parsed)
        movable = default_movable_table()
        for year, days in (data.get("movable") or {}).items():
            parsed_days = set()
            for raw in days or []:
                try:
                    parsed_days.add(date.fromisoformat(str(raw)))
                except ValueError:
                    logger.warning("Ignoring unparseable movable holiday %r for %s", raw, year)
            movable[int(year)] = frozenset(parsed_days)
        return cls(fixed=fixed, movable=movable)


DEFAULT_HOLIDAYS = HolidayCalendar()

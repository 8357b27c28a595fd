"""Working-time arithmetic under the bounded and continuous calendar regimes.

Bounded: minutes accrue only between BUSINESS_OPEN and BUSINESS_CLOSE (local
time) on weekdays that are not holidays. Continuous: every minute counts.
Either regime can additionally exclude the LUNCH_START-LUNCH_END window.

All arithmetic happens in the configured local timezone; naive datetimes are
interpreted as local wall-clock time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from enum import Enum

import pytz

from jira_sla.core.config import (
    BUSINESS_CLOSE,
    BUSINESS_OPEN,
    LUNCH_END,
    LUNCH_START,
    TIMEZONE,
)

from .holidays import DEFAULT_HOLIDAYS, HolidayCalendar

ONE_DAY = timedelta(days=1)


class CalendarRegime(str, Enum):
    BOUNDED = "bounded"
    CONTINUOUS = "continuous"


def _minutes(delta: timedelta) -> float:
    return delta.total_seconds() / 60.0


@dataclass(frozen=True, slots=True)
class CalendarPolicy:
    """Calendar strategy selected once per issue and shared by every computation."""

    regime: CalendarRegime = CalendarRegime.BOUNDED
    exclude_lunch: bool = False
    holidays: HolidayCalendar = DEFAULT_HOLIDAYS
    tz: tzinfo = field(default_factory=lambda: pytz.timezone(TIMEZONE))

    @property
    def is_continuous(self) -> bool:
        return self.regime is CalendarRegime.CONTINUOUS

    # ------------------ Helpers ------------------
    def localize(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            return self.tz.localize(value)
        return value.astimezone(self.tz)

    def _at(self, day: date, clock: time) -> datetime:
        return self.tz.localize(datetime.combine(day, clock))

    def _day_windows(self, day: date) -> list[tuple[datetime, datetime]]:
        if self.is_continuous:
            start, end = self._at(day, time.min), self._at(day + ONE_DAY, time.min)
        else:
            if not self.holidays.is_business_day(day):
                return []
            start, end = self._at(day, BUSINESS_OPEN), self._at(day, BUSINESS_CLOSE)
        if not self.exclude_lunch:
            return [(start, end)]
        lunch_start, lunch_end = self._at(day, LUNCH_START), self._at(day, LUNCH_END)
        candidates = ((start, min(end, lunch_start)), (max(start, lunch_end), end))
        return [(lo, hi) for lo, hi in candidates if hi > lo]

    def _next_opening(self, day: date) -> datetime:
        day += ONE_DAY
        while not self.holidays.is_business_day(day):
            day += ONE_DAY
        return self._at(day, BUSINESS_OPEN)

    def snap_forward(self, moment: datetime) -> datetime:
        """Move ``moment`` to the next instant at which bounded time accrues."""
        moment = self.localize(moment)
        if self.is_continuous:
            return moment
        day = moment.date()
        if self.holidays.is_business_day(day):
            opening = self._at(day, BUSINESS_OPEN)
            if moment < opening:
                return opening
            if moment < self._at(day, BUSINESS_CLOSE):
                return moment
        return self._next_opening(day)

    # ------------------ Public API ------------------
    def elapsed(self, start: datetime | None, end: datetime | None) -> float:
        if start is None or end is None:
            return 0.0
        start_l, end_l = self.localize(start), self.localize(end)
        if end_l <= start_l:
            return 0.0
        if self.is_continuous and not self.exclude_lunch:
            return _minutes(end_l - start_l)
        total = 0.0
        day = start_l.date()
        while day <= end_l.date():
            for lo, hi in self._day_windows(day):
                lo, hi = max(lo, start_l), min(hi, end_l)
                if hi > lo:
                    total += _minutes(hi - lo)
            day += ONE_DAY
        return total

    def add(self, start: datetime, minutes: float) -> datetime:
        if minutes is None or minutes <= 0:
            return start
        current = self.snap_forward(start)
        if self.is_continuous and not self.exclude_lunch:
            return self._shift(current, minutes)
        remaining = float(minutes)
        day = current.date()
        while True:
            for lo, hi in self._day_windows(day):
                lo = max(lo, current)
                if hi <= lo:
                    continue
                available = _minutes(hi - lo)
                if remaining <= available:
                    return self._shift(lo, remaining)
                remaining -= available
            day += ONE_DAY

    def _shift(self, moment: datetime, minutes: float) -> datetime:
        # Absolute shift so DST transitions do not distort the result.
        shifted = moment.astimezone(pytz.UTC) + timedelta(minutes=minutes)
        return shifted.astimezone(self.tz)


def elapsed_working_minutes(
    start: datetime | None,
    end: datetime | None,
    regime: CalendarRegime = CalendarRegime.BOUNDED,
    exclude_lunch: bool = False,
    *,
    holidays: HolidayCalendar | None = None,
) -> float:
    """Working minutes between ``start`` and ``end`` (0 when ``end <= start``)."""
    policy = CalendarPolicy(regime, exclude_lunch, holidays or DEFAULT_HOLIDAYS)
    return policy.elapsed(start, end)


def add_working_minutes(
    start: datetime,
    minutes: float,
    regime: CalendarRegime = CalendarRegime.BOUNDED,
    exclude_lunch: bool = False,
    *,
    holidays: HolidayCalendar | None = None,
) -> datetime:
    """Instant lying ``minutes`` working minutes after ``start``.

    Non-positive ``minutes`` return ``start`` unchanged. In the bounded regime
    the start is first snapped forward to the next business instant.
    """
    policy = CalendarPolicy(regime, exclude_lunch, holidays or DEFAULT_HOLIDAYS)
    return policy.add(start, minutes)


def select_policy(
    tier: str,
    effective_creation: datetime | None,
    *,
    highest_tier: str | None,
    cutover: date | None,
    exclude_lunch: bool = False,
    holidays: HolidayCalendar | None = None,
) -> CalendarPolicy:
    """Pick the calendar regime for one issue.

    Continuous iff the issue sits in the highest tier and its effective
    creation falls on or after ``cutover``; bounded otherwise.
    """
    policy = CalendarPolicy(CalendarRegime.BOUNDED, exclude_lunch, holidays or DEFAULT_HOLIDAYS)
    if cutover is None or effective_creation is None or not highest_tier:
        return policy
    if tier.casefold() != highest_tier.casefold():
        return policy
    if policy.localize(effective_creation).date() < cutover:
        return policy
    return CalendarPolicy(CalendarRegime.CONTINUOUS, exclude_lunch, policy.holidays, policy.tz)

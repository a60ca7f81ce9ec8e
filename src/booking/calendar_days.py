"""Month grid used by the date step of the booking wizard.

Weekdays follow the API convention: Sunday is 0 and Saturday is 6. Days are
plain ``datetime.date`` values, so ``isoformat()`` yields the local calendar
day with no timezone shift.
"""

from calendar import monthrange
from dataclasses import dataclass
from datetime import date
from typing import Iterable

DAYS_IN_WEEK = 7
MAX_MONTHS = 12
DEFAULT_WORKING_DAYS = (1, 2, 3, 4, 5)
WEEKDAY_LABELS = ("CN", "T2", "T3", "T4", "T5", "T6", "T7")


@dataclass(frozen=True)
class CalendarDay:
    date: str | None
    day: int | None
    disabled: bool
    is_today: bool = False
    is_selected: bool = False


PLACEHOLDER = CalendarDay(date=None, day=None, disabled=True)


def sunday_based_weekday(day: date) -> int:
    return (day.weekday() + 1) % DAYS_IN_WEEK


def normalize_working_days(working_days: Iterable[int | str] | None) -> frozenset[int]:
    days = [int(day) for day in working_days or ()]
    return frozenset(days or DEFAULT_WORKING_DAYS)


def is_day_selectable(day: date, working_days: Iterable[int | str] | None, today: date) -> bool:
    return day >= today and sunday_based_weekday(day) in normalize_working_days(working_days)


def generate_calendar_days(
    month_cursor: date,
    working_days: Iterable[int | str] | None,
    today: date,
    selected_date: str | None = None,
) -> list[CalendarDay]:
    year, month = month_cursor.year, month_cursor.month
    first_weekday, last_day = monthrange(year, month)
    allowed_days = normalize_working_days(working_days)

    # monthrange counts from Monday, the grid starts on Sunday
    days = [PLACEHOLDER] * ((first_weekday + 1) % DAYS_IN_WEEK)

    for day_of_month in range(1, last_day + 1):
        current = date(year, month, day_of_month)
        date_str = current.isoformat()
        is_past = current < today

        days.append(
            CalendarDay(
                date=date_str,
                day=day_of_month,
                disabled=is_past or sunday_based_weekday(current) not in allowed_days,
                is_today=current == today,
                is_selected=date_str == selected_date,
            )
        )

    return days


def shift_month(month_cursor: date, increment: int) -> date:
    month_index = month_cursor.year * MAX_MONTHS + (month_cursor.month - 1) + increment
    return date(month_index // MAX_MONTHS, month_index % MAX_MONTHS + 1, 1)


def prev_month(month_cursor: date) -> date:
    return shift_month(month_cursor, -1)


def next_month(month_cursor: date) -> date:
    return shift_month(month_cursor, 1)


def first_selectable_day(
    month_cursor: date, working_days: Iterable[int | str] | None, today: date, months_ahead: int = MAX_MONTHS
) -> str | None:
    cursor = month_cursor.replace(day=1)
    for _ in range(months_ahead):
        for calendar_day in generate_calendar_days(cursor, working_days, today):
            if not calendar_day.disabled:
                return calendar_day.date
        cursor = next_month(cursor)
    return None

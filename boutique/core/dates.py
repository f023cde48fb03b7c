import calendar
from datetime import date


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months_clamped(origin: date, months: int, target_day: int) -> date:
    """Move ``origin`` forward by ``months`` and land on ``target_day``.

    The day never overflows into the following month: a target day past the
    end of the month is clamped to that month's last day (Jan 31 + 1 month
    with target day 31 gives Feb 28, or Feb 29 in a leap year).
    """
    month_index = origin.month - 1 + months
    year = origin.year + month_index // 12
    month = month_index % 12 + 1
    day = min(target_day, last_day_of_month(year, month))
    return date(year, month, day)


def month_key(value: date) -> str:
    return "{:04d}-{:02d}".format(value.year, value.month)


def shift_month(year: int, month: int, delta: int):
    month_index = year * 12 + (month - 1) + delta
    return month_index // 12, month_index % 12 + 1

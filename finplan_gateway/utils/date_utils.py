"""Date manipulation utilities"""

import calendar
from datetime import date


def add_months(from_date: date, months: int) -> date:
    """Add calendar months, clamping the day to the end of the target month (Jan 31 + 1 -> Feb 28/29)"""
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(from_date.day, last_day))

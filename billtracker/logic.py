"""Classification of bills into due-status buckets.

Every function here is pure: it takes the bills plus an explicit reference
day and returns new lists, leaving its input alone.  All comparisons are
made on calendar days, so a datetime earlier today counts as today.
"""

from datetime import date, timedelta
from enum import Enum
from typing import Iterable

from dateutil.relativedelta import relativedelta

from .models import Bill, as_day

UPCOMING_WINDOW_DAYS = 30
WARNING_WINDOW_DAYS = 7
DUE_SOON_DAYS = 3


class BillStatus(str, Enum):
    PAID = "paid"
    OVERDUE = "overdue"
    DUE_TODAY = "due_today"
    PENDING = "pending"


class DayStatus(str, Enum):
    OVERDUE = "overdue"
    DUE_TODAY = "due_today"
    HAS_BILLS = "has_bills"
    NONE = "none"


def _by_due_date(bills: Iterable[Bill]) -> list[Bill]:
    # sorted() is stable, so bills due the same day keep insertion order
    return sorted(bills, key=lambda b: b.due_date)


def upcoming_bills(bills: Iterable[Bill], ref: date, window_days: int = UPCOMING_WINDOW_DAYS) -> list[Bill]:
    """Unpaid bills due from ``ref`` up to (not including) ``ref + window_days``."""
    start = as_day(ref)
    end = start + timedelta(days=window_days)
    return _by_due_date(b for b in bills if not b.is_paid and start <= b.due_date < end)


def overdue_bills(bills: Iterable[Bill], ref: date) -> list[Bill]:
    today = as_day(ref)
    return _by_due_date(b for b in bills if not b.is_paid and b.due_date < today)


def due_today_bills(bills: Iterable[Bill], ref: date) -> list[Bill]:
    today = as_day(ref)
    return [b for b in upcoming_bills(bills, today) if b.due_date == today]


def paid_bills(bills: Iterable[Bill]) -> list[Bill]:
    """Paid bills, most recently due first."""
    paid = [b for b in bills if b.is_paid]
    # negated key instead of reverse=True so ties stay in insertion order
    return sorted(paid, key=lambda b: -b.due_date.toordinal())


def bills_for_date(bills: Iterable[Bill], day: date) -> list[Bill]:
    target = as_day(day)
    return [b for b in bills if b.due_date == target]


def month_bounds(anchor: date) -> tuple[date, date]:
    """First and last day of the month containing ``anchor``."""
    anchor = as_day(anchor)
    return anchor + relativedelta(day=1), anchor + relativedelta(day=31)


def days_with_bills(bills: Iterable[Bill], month_anchor: date) -> list[date]:
    """Days of ``month_anchor``'s month on which at least one bill is due, ascending."""
    first, last = month_bounds(month_anchor)
    return sorted({b.due_date for b in bills if first <= b.due_date <= last})


def due_soon_warning(bills: Iterable[Bill], day: date, ref: date, window_days: int = WARNING_WINDOW_DAYS) -> bool:
    """True when ``day`` lies in ``[ref, ref + window_days]`` and has an unpaid bill."""
    target = as_day(day)
    today = as_day(ref)
    if not today <= target <= today + timedelta(days=window_days):
        return False
    return any(not b.is_paid for b in bills_for_date(bills, target))


def is_due_soon(bill: Bill, ref: date, days: int = DUE_SOON_DAYS) -> bool:
    today = as_day(ref)
    return not bill.is_paid and today <= bill.due_date <= today + timedelta(days=days)


def bill_status(bill: Bill, ref: date) -> BillStatus:
    today = as_day(ref)
    if bill.is_paid:
        return BillStatus.PAID
    if bill.due_date < today:
        return BillStatus.OVERDUE
    if bill.due_date == today:
        return BillStatus.DUE_TODAY
    return BillStatus.PENDING


def day_status(bills: Iterable[Bill], day: date, ref: date) -> DayStatus:
    """Colour of one calendar day.

    Overdue beats due-today, which beats plain has-bills.  Paid bills only
    ever count towards has-bills.
    """
    day_bills = bills_for_date(bills, day)
    if not day_bills:
        return DayStatus.NONE
    statuses = {bill_status(b, ref) for b in day_bills}
    if BillStatus.OVERDUE in statuses:
        return DayStatus.OVERDUE
    if BillStatus.DUE_TODAY in statuses:
        return DayStatus.DUE_TODAY
    return DayStatus.HAS_BILLS


def month_day_statuses(bills: Iterable[Bill], month_anchor: date, ref: date) -> dict[date, DayStatus]:
    bills = list(bills)
    return {day: day_status(bills, day, ref) for day in days_with_bills(bills, month_anchor)}

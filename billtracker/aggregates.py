from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from .logic import due_today_bills, overdue_bills, paid_bills, upcoming_bills
from .models import Bill, Category, as_day


@dataclass(frozen=True)
class BucketTotal:
    count: int
    total: Decimal


@dataclass(frozen=True)
class BillSummary:
    due_today: BucketTotal
    upcoming: BucketTotal
    overdue: BucketTotal
    paid_this_month: BucketTotal


def sum_amount(bills: Iterable[Bill]) -> Decimal:
    return sum((b.amount for b in bills), Decimal("0"))


def count(bills: Iterable[Bill]) -> int:
    return sum(1 for _ in bills)


def bucket_total(bills: Iterable[Bill]) -> BucketTotal:
    bills = list(bills)
    return BucketTotal(count=count(bills), total=sum_amount(bills))


def paid_this_month(bills: Iterable[Bill], ref: date) -> list[Bill]:
    """Paid bills due in the same month as ``ref``.

    There is no payment timestamp, so the due date stands in for when the
    bill was paid; a bill paid late or early lands in its due month.
    """
    today = as_day(ref)
    return [
        b for b in paid_bills(bills)
        if b.due_date.year == today.year and b.due_date.month == today.month
    ]


def summarize(bills: Iterable[Bill], ref: date) -> BillSummary:
    bills = list(bills)
    return BillSummary(
        due_today=bucket_total(due_today_bills(bills, ref)),
        upcoming=bucket_total(upcoming_bills(bills, ref)),
        overdue=bucket_total(overdue_bills(bills, ref)),
        paid_this_month=bucket_total(paid_this_month(bills, ref)),
    )


def totals_by_category(bills: Iterable[Bill]) -> dict[Category, BucketTotal]:
    grouped: dict[Category, list[Bill]] = {category: [] for category in Category}
    for bill in bills:
        grouped[bill.category].append(bill)
    return {category: bucket_total(items) for category, items in grouped.items()}

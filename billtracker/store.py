"""The bill store: owner of the canonical bill collection.

Every mutation goes through :class:`BillStore`, which validates input,
keeps bills in insertion order and writes a full snapshot to its storage
after each change.  Views get tuples of frozen :class:`Bill` records and
derive their buckets from those through :mod:`billtracker.logic`.
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Iterator, Mapping, Optional

from .exceptions import NotFoundError, PersistenceError, ValidationError
from .models import (
    Bill, Category, RecurringType, as_amount, as_day, parse_category, parse_flag, parse_recurring_type
)

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset(
    f.name for f in dataclasses.fields(Bill) if f.name != "id"
)


def default_bills(today: Optional[date] = None) -> list[Bill]:
    """Demonstration bills seeded on first run, due over the next three weeks."""
    today = as_day(today or date.today())
    monthly = RecurringType.MONTHLY
    return [
        Bill("1", "Rent", Decimal("1200"), today + timedelta(days=5),
             is_recurring=True, recurring_type=monthly, category=Category.HOUSING),
        Bill("2", "Electricity", Decimal("85"), today + timedelta(days=12),
             is_recurring=True, recurring_type=monthly, category=Category.UTILITIES),
        Bill("3", "Internet", Decimal("60"), today + timedelta(days=8),
             is_recurring=True, recurring_type=monthly, category=Category.UTILITIES),
        Bill("4", "Car Insurance", Decimal("150"), today + timedelta(days=15),
             is_recurring=True, recurring_type=monthly, category=Category.INSURANCE),
        Bill("5", "Netflix", Decimal("15.99"), today + timedelta(days=20),
             is_recurring=True, recurring_type=monthly, category=Category.SUBSCRIPTIONS),
    ]


def validate_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Please enter a bill name")
    return name.strip()


def validate_amount(amount: Any) -> Decimal:
    value = as_amount(amount)
    if value <= 0:
        raise ValidationError("Please enter a valid amount greater than zero")
    return value


def normalize_recurrence(is_recurring: bool, recurring_type) -> Optional[RecurringType]:
    if not is_recurring:
        return None
    return parse_recurring_type(recurring_type) or RecurringType.MONTHLY


class BillStore:
    def __init__(self, storage, seed_defaults: bool = True):
        self.storage = storage
        self.seed_defaults = seed_defaults
        self._bills: list[Bill] = []

    def __len__(self) -> int:
        return len(self._bills)

    def __iter__(self) -> Iterator[Bill]:
        return iter(tuple(self._bills))

    @property
    def bills(self) -> tuple[Bill, ...]:
        return tuple(self._bills)

    def load(self, today: Optional[date] = None) -> tuple[Bill, ...]:
        """Restore the collection from storage.

        Missing or unreadable data leaves the store with the demonstration
        bills (or empty when ``seed_defaults`` is off); load never raises
        for storage problems.
        """
        try:
            loaded = self.storage.load()
        except PersistenceError as e:
            logger.warning("Could not load saved bills, starting fresh: %s", e)
            loaded = None

        if loaded is None:
            self._bills = default_bills(today) if self.seed_defaults else []
            logger.info("No saved bills, starting with %d", len(self._bills))
        else:
            self._bills = list(loaded)
            logger.info("Loaded %d bills", len(self._bills))
        return self.bills

    def get(self, bill_id: str) -> Bill:
        return self._bills[self._index(bill_id)]

    def add(
            self,
            name: str,
            amount: Decimal | float | int | str,
            due_date: date,
            category: Category | str = Category.OTHER,
            is_recurring: bool = False,
            recurring_type: RecurringType | str | None = None,
            notes: Optional[str] = None,
            is_paid: bool = False,
    ) -> Bill:
        is_recurring = parse_flag(is_recurring)
        bill = Bill(
            id=uuid.uuid4().hex,
            name=validate_name(name),
            amount=validate_amount(amount),
            due_date=as_day(due_date),
            is_paid=parse_flag(is_paid),
            is_recurring=is_recurring,
            recurring_type=normalize_recurrence(is_recurring, recurring_type),
            category=parse_category(category),
            notes=notes or None,
        )
        self._bills.append(bill)
        logger.info("Added bill %s (%s)", bill.name, bill.id)
        self._persist()
        return bill

    def update(self, bill_id: str, patch: Mapping[str, Any]) -> Bill:
        """Replace fields of a bill.

        Edits are held to the same rules as creation: a blank name or a
        non-positive amount is rejected and nothing changes.
        """
        index = self._index(bill_id)
        if "id" in patch and patch["id"] != bill_id:
            raise ValidationError("A bill's id cannot be changed")

        unknown = set(patch) - EDITABLE_FIELDS - {"id"}
        if unknown:
            raise ValidationError(f"Unknown bill field(s): {', '.join(sorted(unknown))}")

        changes: dict[str, Any] = {}
        for field_name, value in patch.items():
            if field_name == "id":
                continue
            if field_name == "name":
                value = validate_name(value)
            elif field_name == "amount":
                value = validate_amount(value)
            elif field_name == "due_date":
                value = as_day(value)
            elif field_name == "category":
                value = parse_category(value)
            elif field_name == "recurring_type":
                value = parse_recurring_type(value)
            elif field_name in ("is_paid", "is_recurring"):
                value = parse_flag(value)
            elif field_name == "notes":
                value = value or None
            changes[field_name] = value

        updated = dataclasses.replace(self._bills[index], **changes)
        updated = dataclasses.replace(
            updated,
            recurring_type=normalize_recurrence(updated.is_recurring, updated.recurring_type),
        )
        self._bills[index] = updated
        logger.info("Updated bill %s (%s)", updated.name, updated.id)
        self._persist()
        return updated

    def toggle_paid(self, bill_id: str) -> Bill:
        index = self._index(bill_id)
        bill = self._bills[index]
        updated = dataclasses.replace(bill, is_paid=not bill.is_paid)
        self._bills[index] = updated
        logger.info("Marked bill %s as %s", updated.name, "paid" if updated.is_paid else "unpaid")
        self._persist()
        return updated

    def remove(self, bill_id: str) -> Bill:
        index = self._index(bill_id)
        removed = self._bills.pop(index)
        logger.info("Deleted bill %s (%s)", removed.name, removed.id)
        self._persist()
        return removed

    def _index(self, bill_id: str) -> int:
        for i, bill in enumerate(self._bills):
            if bill.id == bill_id:
                return i
        raise NotFoundError(bill_id)

    def _persist(self) -> None:
        # The in-memory change stays even when the write fails.
        try:
            self.storage.save(self.bills)
        except PersistenceError as e:
            logger.error("Failed to save bills: %s", e)
            raise

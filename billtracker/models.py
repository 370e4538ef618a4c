from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from .exceptions import ValidationError


class Category(str, Enum):
    HOUSING = "Housing"
    UTILITIES = "Utilities"
    TRANSPORTATION = "Transportation"
    INSURANCE = "Insurance"
    SUBSCRIPTIONS = "Subscriptions"
    HEALTHCARE = "Healthcare"
    DEBT = "Debt"
    OTHER = "Other"


class RecurringType(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


@dataclass(frozen=True)
class Bill:
    id: str
    name: str
    amount: Decimal
    due_date: date
    is_paid: bool = False
    is_recurring: bool = False
    recurring_type: Optional[RecurringType] = None
    category: Category = Category.OTHER
    notes: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "amount": str(self.amount),
            "dueDate": self.due_date.isoformat(),
            "isPaid": self.is_paid,
            "isRecurring": self.is_recurring,
            "recurringType": self.recurring_type.value if self.recurring_type else None,
            "category": self.category.value,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Bill:
        """Rebuild a bill from its persisted form.

        Unknown categories fall back to Other and an unknown recurrence
        period to monthly, so older snapshots still load.  A missing or
        blank name and unreadable flags raise ValidationError.  The amount
        only has to be a number: edits may have taken it to zero or below.
        """
        name = data["name"]
        if not isinstance(name, str) or not name.strip():
            raise ValidationError(f"Invalid bill name: {name!r}")

        is_recurring = parse_flag(data.get("isRecurring", False))
        try:
            category = parse_category(data.get("category") or Category.OTHER)
        except ValidationError:
            category = Category.OTHER

        recurring_type = None
        if is_recurring:
            try:
                recurring_type = parse_recurring_type(data.get("recurringType")) or RecurringType.MONTHLY
            except ValidationError:
                recurring_type = RecurringType.MONTHLY

        return cls(
            id=str(data["id"]),
            name=name,
            amount=as_amount(data["amount"]),
            due_date=as_day(data["dueDate"]),
            is_paid=parse_flag(data.get("isPaid", False)),
            is_recurring=is_recurring,
            recurring_type=recurring_type,
            category=category,
            notes=data.get("notes"),
        )


def as_day(value: date | datetime | str) -> date:
    """Truncate a date, datetime or ISO string to its calendar day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value).date()
        except ValueError:
            raise ValidationError(f"Invalid date: {value!r}") from None
    raise ValidationError(f"Invalid date: {value!r}")


def as_amount(value: Decimal | float | int | str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"Invalid amount: {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"Invalid amount: {value!r}") from None
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}")
    return amount


def parse_category(value: Category | str) -> Category:
    if isinstance(value, Category):
        return value
    text = str(value).strip().lower()
    for category in Category:
        if text in (category.value.lower(), category.name.lower()):
            return category
    choices = ", ".join(c.value for c in Category)
    raise ValidationError(f"Unknown category {value!r} (choose from: {choices})")


def parse_recurring_type(value: RecurringType | str | None) -> Optional[RecurringType]:
    if value is None or value == "":
        return None
    if isinstance(value, RecurringType):
        return value
    text = str(value).strip().lower()
    for period in RecurringType:
        if text in (period.value, period.name.lower()):
            return period
    raise ValidationError(f"Unknown recurrence {value!r} (use monthly or yearly)")


TRUE_WORDS = ("1", "true", "yes", "y", "on")
FALSE_WORDS = ("0", "false", "no", "n", "off")


def parse_flag(value: bool | int | str) -> bool:
    """Read a yes/no value; anything other than a bool, 0/1 or a yes/no word is rejected."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in TRUE_WORDS:
            return True
        if text in FALSE_WORDS:
            return False
    raise ValidationError(f"Expected yes/no, got {value!r}")

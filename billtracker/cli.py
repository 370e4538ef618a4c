import calendar
import cmd
import shlex
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Optional

from dateutil.relativedelta import relativedelta

from billtracker import config
from billtracker.aggregates import summarize, totals_by_category
from billtracker.exceptions import BillTrackerError, NotFoundError, PersistenceError, ValidationError
from billtracker.logic import (
    BillStatus,
    DayStatus,
    bill_status,
    bills_for_date,
    due_soon_warning,
    due_today_bills,
    is_due_soon,
    month_day_statuses,
    overdue_bills,
    paid_bills,
    upcoming_bills,
)
from billtracker.models import Bill, Category, as_day, parse_flag
from billtracker.storage import JsonFileStorage, list_save_files
from billtracker.store import BillStore

DAY_MARKERS = {
    DayStatus.OVERDUE: "!",
    DayStatus.DUE_TODAY: "*",
    DayStatus.HAS_BILLS: "+",
}

EDIT_KEYS = {
    "name": "name",
    "amount": "amount",
    "due": "due_date",
    "date": "due_date",
    "category": "category",
    "notes": "notes",
    "paid": "is_paid",
}


def format_money(amount: Decimal) -> str:
    return f"${amount:,.2f}"


class BillTrackerCLI(cmd.Cmd):
    prompt = "(bills) "

    def __init__(self, store: BillStore, today: Optional[date] = None, saves_dir: Optional[Path] = None):
        super().__init__()
        self.intro = "Welcome to Bills & Reminders. Type 'help' for commands."
        self.store = store
        self.saves_dir = saves_dir or config.SAVES_DIR
        self._today = as_day(today) if today else None
        self.view_mode = "list"
        self.calendar_month = self.today + relativedelta(day=1)
        self.selected_date: Optional[date] = self.today

    @property
    def today(self) -> date:
        return self._today or date.today()

    # ===== BILL COMMANDS =====
    def do_add(self, arg):
        """Add a bill: add <name> <amount> [YYYY-MM-DD] [category] [--recur <monthly|yearly>] [--notes "text"]"""
        try:
            args = self._parse_add_args(arg)
            bill = self.store.add(**args)
            confirmation = f"✓ Added new bill: {bill.name} ({format_money(bill.amount)} due {bill.due_date:%b %d, %Y})"
            if bill.is_recurring:
                confirmation += f" (recurring {bill.recurring_type.value})"
            print(confirmation)
        except ValueError as e:
            print(f"Invalid input: {e}")
        except BillTrackerError as e:
            self._report_error(e)

    def do_edit(self, arg):
        """Edit a bill: edit <id> [name=..] [amount=..] [due=YYYY-MM-DD] [category=..] [recur=monthly|yearly|none] [notes=..] [paid=yes|no]"""
        try:
            args = shlex.split(arg)
            if len(args) < 2:
                raise ValueError("Usage: edit <id> field=value [field=value ...]")
            bill_id = self._resolve_id(args[0])
            patch = self._parse_edit_args(args[1:])
            bill = self.store.update(bill_id, patch)
            print(f"✓ Updated bill: {bill.name}")
        except ValueError as e:
            print(f"Invalid input: {e}")
        except BillTrackerError as e:
            self._report_error(e)

    def do_paid(self, arg):
        """Toggle a bill between paid and unpaid: paid <id>"""
        if not arg.strip():
            print("Usage: paid <id>")
            return
        try:
            bill = self.store.toggle_paid(self._resolve_id(arg.strip()))
            if bill.is_paid:
                print(f'✓ Marked "{bill.name}" as paid')
            else:
                print(f'Marked "{bill.name}" as unpaid')
        except BillTrackerError as e:
            self._report_error(e)

    def do_delete(self, arg):
        """Delete a bill: delete <id>"""
        if not arg.strip():
            print("Usage: delete <id>")
            return
        try:
            bill = self.store.remove(self._resolve_id(arg.strip()))
            print(f"✓ Bill deleted: {bill.name}")
        except BillTrackerError as e:
            self._report_error(e)

    # ===== LIST VIEW =====
    def do_list(self, arg):
        """List bills: list [upcoming|overdue|paid|today|all]"""
        bucket = arg.strip().lower() or "upcoming"
        bills = self.store.bills
        buckets = {
            "upcoming": ("Upcoming (30 days)", lambda: upcoming_bills(bills, self.today)),
            "overdue": ("Overdue", lambda: overdue_bills(bills, self.today)),
            "paid": ("Paid", lambda: paid_bills(bills)),
            "today": ("Due Today", lambda: due_today_bills(bills, self.today)),
            "all": ("All Bills", lambda: list(bills)),
        }
        if bucket not in buckets:
            print(f"Unknown list '{bucket}'. Use one of: {', '.join(buckets)}")
            return

        title, select = buckets[bucket]
        selected = select()
        print(f"\n{' ' + title + ' ':-^60}")
        if not selected:
            messages = {
                "upcoming": "No upcoming bills.",
                "overdue": "No overdue bills. Great job!",
                "paid": "No paid bills yet.",
            }
            print(messages.get(bucket, "No bills."))
            return
        for bill in selected:
            print(self._format_bill(bill))

    def do_summary(self, arg):
        """Show totals for today, the next 30 days, overdue and paid this month"""
        summary = summarize(self.store.bills, self.today)
        print(f"\n{' Summary ':-^60}")
        for label, bucket in (
                ("Due Today", summary.due_today),
                ("Upcoming (30 days)", summary.upcoming),
                ("Overdue", summary.overdue),
                ("Paid This Month", summary.paid_this_month),
        ):
            plural = "" if bucket.count == 1 else "s"
            print(f"  {label:<20} {format_money(bucket.total):>12}  {bucket.count} bill{plural}")

    def do_categories(self, arg):
        """Show bill totals per category"""
        print("\nBy Category:")
        for category, bucket in totals_by_category(self.store.bills).items():
            if bucket.count:
                print(f"  {category.value:<15} {format_money(bucket.total):>12}  ({bucket.count})")

    # ===== CALENDAR VIEW =====
    def do_view(self, arg):
        """Switch views: view <list|calendar>"""
        mode = arg.strip().lower()
        if mode not in ("list", "calendar"):
            print("Usage: view <list|calendar>")
            return
        self.view_mode = mode
        if mode == "calendar":
            self._show_calendar()
        else:
            self.do_list("upcoming")

    def do_calendar(self, arg):
        """Show the bill calendar: calendar [YYYY-MM]"""
        if arg.strip():
            try:
                year, month = (int(part) for part in arg.strip().split("-"))
                self.calendar_month = date(year, month, 1)
            except ValueError:
                print("Month must be in YYYY-MM format")
                return
        self.view_mode = "calendar"
        self._show_calendar()

    def do_next(self, arg):
        """Move the calendar forward one month"""
        self.calendar_month += relativedelta(months=1)
        self._show_calendar()

    def do_prev(self, arg):
        """Move the calendar back one month"""
        self.calendar_month -= relativedelta(months=1)
        self._show_calendar()

    def do_select(self, arg):
        """Show the bills due on a day: select YYYY-MM-DD"""
        try:
            self.selected_date = date.fromisoformat(arg.strip()) if arg.strip() else self.today
        except ValueError:
            print("Date must be in YYYY-MM-DD format")
            return
        self.calendar_month = self.selected_date + relativedelta(day=1)
        self._show_selected_date()

    # ===== DATA MANAGEMENT =====
    def do_saves(self, arg):
        """List saved bill snapshots"""
        saves = list_save_files(self.saves_dir)
        if not saves:
            print("No save files available")
            return
        print("Available saves:")
        for i, name in enumerate(saves, 1):
            print(f"{i}. {name}")

    def do_load(self, arg):
        """Switch to another saved snapshot: load <name>"""
        name = arg.strip()
        if not name:
            print("Usage: load <name>")
            return
        if name not in list_save_files(self.saves_dir):
            print(f"Save file '{name}' not found")
            return
        self.store.storage = JsonFileStorage(config.get_save_path(name, self.saves_dir))
        bills = self.store.load(self.today)
        print(f"✓ Loaded {len(bills)} bills from '{name}'")

    # ===== UTILITIES =====
    def do_exit(self, arg):
        """Exit the program"""
        print("Goodbye!")
        return True

    do_EOF = do_exit

    # ===== HELPERS =====
    def _show_calendar(self):
        statuses = month_day_statuses(self.store.bills, self.calendar_month, self.today)
        month = self.calendar_month
        print(f"\n{month:%B %Y}".center(36))
        print("".join(f"{name:>5}" for name in ("Su", "Mo", "Tu", "We", "Th", "Fr", "Sa")))
        grid = calendar.Calendar(firstweekday=calendar.SUNDAY).monthdatescalendar(month.year, month.month)
        for week in grid:
            cells = []
            for day in week:
                if day.month != month.month:
                    cells.append(" " * 5)
                    continue
                marker = DAY_MARKERS.get(statuses.get(day), " ")
                cells.append(f"{day.day:>4}{marker}")
            print("".join(cells))
        print("\n  ! overdue   * due today   + has bills")
        if self.selected_date and self.selected_date.month == month.month and self.selected_date.year == month.year:
            self._show_selected_date()

    def _show_selected_date(self):
        day = self.selected_date
        print(f"\nBills for {day:%B %d, %Y}:")
        selected = bills_for_date(self.store.bills, day)
        if not selected:
            print("  No bills for this date.")
        for bill in selected:
            print(self._format_bill(bill))
        if due_soon_warning(self.store.bills, day, self.today):
            print("\n⚠ You have unpaid bills coming up soon.")

    def _format_bill(self, bill: Bill) -> str:
        status = bill_status(bill, self.today)
        if status is BillStatus.DUE_TODAY:
            due = "Due today"
        elif is_due_soon(bill, self.today):
            due = f"Due {bill.due_date:%a}"
        else:
            due = f"Due {bill.due_date:%a, %b %d}"
        details = f"{due} • {bill.category.value}"
        if bill.is_recurring:
            details += " • Recurring"
        tag = {BillStatus.OVERDUE: " [Overdue]", BillStatus.PAID: " [Paid]"}.get(status, "")
        return f"  {bill.id[:8]:<8}  {bill.name:<20} {format_money(bill.amount):>12}  {details}{tag}"

    def _resolve_id(self, token: str) -> str:
        """Accept a full id or a unique prefix of one."""
        ids = [b.id for b in self.store.bills]
        if token in ids:
            return token
        matches = [bill_id for bill_id in ids if bill_id.startswith(token)]
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            raise ValidationError(f"Ambiguous id '{token}' matches {len(matches)} bills")
        raise NotFoundError(token)

    @staticmethod
    def _report_error(error: BillTrackerError):
        if isinstance(error, ValidationError):
            print(f"Invalid input: {error}")
        elif isinstance(error, NotFoundError):
            print(f"{error}")
        elif isinstance(error, PersistenceError):
            print(f"Warning: change kept for this session but not saved ({error})")
        else:
            print(f"Error: {error}")

    def _parse_add_args(self, arg):
        """Parse add command arguments with proper date handling"""
        args = shlex.split(arg)
        if len(args) < 2:
            raise ValueError("Missing required arguments (name and amount)")

        result = {
            'name': args[0],
            'amount': args[1],
            'due_date': self.today,
            'category': Category.OTHER,
            'is_recurring': False,
            'recurring_type': None,
            'notes': None,
        }
        category_set = False

        i = 2
        while i < len(args):
            if args[i] == '--recur':
                if i + 1 >= len(args):
                    raise ValueError("Missing recurrence interval after --recur")
                result['is_recurring'] = True
                result['recurring_type'] = args[i + 1]
                i += 2
            elif args[i] == '--notes':
                result['notes'] = ' '.join(args[i + 1:]) or None
                break
            elif args[i].startswith('--'):
                raise ValueError(f"Unknown flag: {args[i]}")
            else:
                try:
                    result['due_date'] = date.fromisoformat(args[i])
                    i += 1
                    continue
                except ValueError:
                    pass

                if not category_set:
                    result['category'] = args[i]
                    category_set = True
                    i += 1
                else:
                    raise ValueError(f"Unexpected argument: {args[i]}")

        return result

    @staticmethod
    def _parse_edit_args(args):
        patch = {}
        for token in args:
            key, sep, value = token.partition("=")
            if not sep:
                raise ValueError(f"Expected field=value, got {token!r}")
            key = key.strip().lower()
            if key == "recur":
                if value.strip().lower() in ("", "none", "no", "off"):
                    patch['is_recurring'] = False
                    patch['recurring_type'] = None
                else:
                    patch['is_recurring'] = True
                    patch['recurring_type'] = value
            elif key in EDIT_KEYS:
                field_name = EDIT_KEYS[key]
                if field_name == "due_date":
                    value = date.fromisoformat(value)
                elif field_name == "is_paid":
                    value = parse_flag(value)
                patch[field_name] = value
            else:
                raise ValueError(f"Unknown field: {key}")
        return patch


def main():
    config.configure_logging()
    store = BillStore(JsonFileStorage(config.get_save_path()), seed_defaults=config.SEED_DEFAULTS)
    store.load()
    BillTrackerCLI(store).cmdloop()


if __name__ == "__main__":
    main()

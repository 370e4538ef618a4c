from datetime import date, timedelta

from billtracker.aggregates import summarize
from billtracker.logic import overdue_bills, paid_bills, upcoming_bills
from billtracker.storage import MemoryStorage
from billtracker.store import BillStore

today = date.today()
storage = MemoryStorage()

# Start from the demonstration bills
store = BillStore(storage)
store.load(today)

# Add a bill that is already late and one due today
water = store.add("Water", 42.50, today - timedelta(days=1), category="Utilities")
store.add("Gym", 30, today, category="Healthcare", is_recurring=True, recurring_type="monthly")

print("Upcoming:", [(b.name, b.due_date.isoformat()) for b in upcoming_bills(store.bills, today)])
print("Overdue:", [b.name for b in overdue_bills(store.bills, today)])

# Pay the late one
store.toggle_paid(water.id)
print("Paid:", [b.name for b in paid_bills(store.bills)])

summary = summarize(store.bills, today)
print("Summary for", today.isoformat())
print(f"  due today: {summary.due_today.count} (${summary.due_today.total})")
print(f"  upcoming:  {summary.upcoming.count} (${summary.upcoming.total})")
print(f"  overdue:   {summary.overdue.count} (${summary.overdue.total})")
print(f"  paid this month: {summary.paid_this_month.count} (${summary.paid_this_month.total})")

# Reload from the saved snapshot
restored = BillStore(storage)
restored.load(today)
print("After loading:", [(b.name, b.is_paid) for b in restored.bills])

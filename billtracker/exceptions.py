"""Exception classes for the bill tracker."""


class BillTrackerError(Exception):
    """Base exception for the bill tracker."""
    pass


class ValidationError(BillTrackerError):
    """Bill input rejected: missing name, non-positive amount, unknown enum value."""
    pass


class NotFoundError(BillTrackerError):
    """No bill with the requested id."""

    def __init__(self, bill_id: str):
        super().__init__(f"Bill not found: {bill_id}")
        self.bill_id = bill_id


class PersistenceError(BillTrackerError):
    """Saving or loading the bill snapshot failed."""
    pass

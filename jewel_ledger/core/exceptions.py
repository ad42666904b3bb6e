"""Domain errors raised by the ledger core.

Routers never catch these one by one; ``main.py`` registers a handler per
class that maps it to an HTTP status.
"""


class LedgerError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(LedgerError):
    """Bad input. Raised before anything is written."""

    status_code = 400


class NotFoundError(LedgerError):
    status_code = 404


class ConflictError(LedgerError):
    """The account changed underneath the caller; retry with fresh state."""

    status_code = 409


class PartialAggregationFailure(LedgerError):
    """A referenced account could not be loaded while aggregating.

    Only ever logged and reported in the summary, never raised to callers.
    """

    status_code = 500

    def __init__(self, customer_id: int, account_id: int):
        super().__init__(
            f"account {account_id} referenced by customer {customer_id} could not be loaded"
        )
        self.customer_id = customer_id
        self.account_id = account_id

"""
Exceptions raised by the inventory core.

Nothing here is retried automatically: each error goes back to the immediate
caller, which decides whether to skip a router, abort a batch or stop.
"""


class InventoryError(Exception):
    """Base class for every error raised by this package."""


class ConsistencyError(InventoryError):
    """
    A unique-key lookup returned zero or several rows.

    This means the uniqueness invariant is broken (or another writer raced us);
    it is fatal to the calling operation.
    """

    def __init__(self, entity: str, key, count: int):
        self.entity = entity
        self.key = key
        self.count = count
        super().__init__(
            f"unexpected cardinality for unique key lookup: "
            f"{entity}[{key!r}] matched {count} row(s)"
        )


class MissingIdentityError(InventoryError):
    """An operation needs a storage-assigned id on a record that was never persisted."""

    def __init__(self, record, operation: str):
        self.record = record
        self.operation = operation
        super().__init__(
            f"{operation} requires a persisted {type(record).__name__}, "
            f"got one without id"
        )


class StoreError(InventoryError):
    """
    The persistence engine failed.

    `action` is the diff action being applied when the failure happened (if
    any) and `record` the record it was applied to. The original exception is
    chained as `__cause__`.
    """

    def __init__(self, message: str, action=None, record=None):
        self.action = action
        self.record = record
        super().__init__(message)

    def __str__(self) -> str:
        msg = super().__str__()
        if self.action is not None:
            msg = f"{msg} (while applying {self.action})"
        return msg


class SnmpError(InventoryError):
    """Raised when SNMP retrieval fails."""

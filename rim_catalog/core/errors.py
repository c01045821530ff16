"""Domain exceptions raised by the catalog services."""


class RowStoreError(Exception):
    """A call to the remote row store failed."""

    def __init__(self, operation: str, table: str, cause: Exception | None = None):
        self.operation = operation
        self.table = table
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"{operation} on {table} failed{detail}")


class WheelNotFoundError(LookupError):
    """No inventory row matched the given id."""

    def __init__(self, wheel_id: str):
        self.wheel_id = wheel_id
        super().__init__(f"Wheel {wheel_id} not found")

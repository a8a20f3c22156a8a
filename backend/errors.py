"""Error taxonomy raised by the store.

Every failure a caller can observe is one of four kinds. None of them carry
row contents, so a message can be shown to the caller as-is.
"""


class StoreError(Exception):
    """Base exception for store failures."""

    kind = "store"


class ValidationError(StoreError, ValueError):
    """Raised when a field value violates a constraint."""

    kind = "validation"

    def __init__(self, field: str, constraint: str, message: str | None = None) -> None:
        self.field = field
        self.constraint = constraint
        super().__init__(message or f"{field}: {constraint}")


class AuthorizationError(StoreError):
    """Raised when the caller may not perform a write on a row."""

    kind = "authorization"

    def __init__(self, operation: str, table: str) -> None:
        self.operation = operation
        self.table = table
        super().__init__(f"{operation} on {table} is not permitted")


class NotFoundError(StoreError):
    """Raised when a row is absent or not visible to the caller."""

    kind = "not_found"

    def __init__(self, entity: str, entity_id: int | str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class IntegrityViolationError(StoreError):
    """Raised when a write would break a foreign-key or cascade rule."""

    kind = "integrity"

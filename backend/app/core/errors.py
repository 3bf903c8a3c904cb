"""
Typed domain errors raised by the service layer.

Every error carries a machine-readable ``code`` and the HTTP status the API
layer answers with. Services raise these; ``app.main`` turns them into JSON
responses of the form ``{"detail": ..., "code": ...}``.

    AssetVerseError
    +-- ValidationError          400  malformed or missing input
    |   +-- NotReturnableError   400  return attempted on a non-returnable unit
    +-- NotFoundError            404  referenced entity absent
    +-- ForbiddenError           403  caller lacks ownership or role
    +-- ConflictError            409  state already resolved by another actor
    +-- CapacityExceededError    409  organization employee limit reached
    +-- OutOfStockError          409  no available units left
    +-- AlreadyReturnedError     409  assignment already returned
    +-- DuplicatePaymentError    200  redelivered payment event (absorbed)
"""


class AssetVerseError(Exception):
    """Base exception for all domain errors."""

    code: str = "ASSETVERSE_ERROR"
    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(AssetVerseError):
    code = "VALIDATION_ERROR"
    status_code = 400


class NotReturnableError(ValidationError):
    """Non-returnable units stay with the employee once approved."""

    code = "NOT_RETURNABLE"

    def __init__(self, assignment_id: int):
        self.assignment_id = assignment_id
        super().__init__(f"Assignment {assignment_id} is for a non-returnable asset")


class NotFoundError(AssetVerseError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class ForbiddenError(AssetVerseError):
    code = "FORBIDDEN"
    status_code = 403


class ConflictError(AssetVerseError):
    """The target changed state under us; callers should refresh, not retry blindly."""

    code = "CONFLICT"
    status_code = 409


class CapacityExceededError(AssetVerseError):
    code = "CAPACITY_EXCEEDED"
    status_code = 409

    def __init__(self, organization_id: int, employee_limit: int):
        self.organization_id = organization_id
        self.employee_limit = employee_limit
        super().__init__(
            f"Organization {organization_id} has reached its employee limit ({employee_limit})"
        )


class OutOfStockError(AssetVerseError):
    code = "OUT_OF_STOCK"
    status_code = 409

    def __init__(self, asset_id: int):
        self.asset_id = asset_id
        super().__init__(f"Asset {asset_id} has no available units")


class AlreadyReturnedError(AssetVerseError):
    code = "ALREADY_RETURNED"
    status_code = 409

    def __init__(self, assignment_id: int):
        self.assignment_id = assignment_id
        super().__init__(f"Assignment {assignment_id} is already returned")


class DuplicatePaymentError(AssetVerseError):
    """Same transaction delivered twice. Success from the provider's point of view."""

    code = "DUPLICATE_PAYMENT"
    status_code = 200

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Payment {transaction_id} already recorded")

from __future__ import annotations


class FedhaError(Exception):
    """Base class for typed errors raised by the service layer."""

    code = "error"
    status_code = 400
    default_message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotAuthorized(FedhaError):
    code = "not_authorized"
    status_code = 403
    # Same text for unknown tenants and for denials.
    default_message = "Not authorized for this tenant"


class PrincipalNotFound(FedhaError):
    code = "principal_not_found"
    status_code = 404
    default_message = "No registered user with this contact"


class AlreadyMember(FedhaError):
    code = "already_member"
    status_code = 409
    default_message = "User is already an active member of this tenant"


class MembershipNotFound(FedhaError):
    code = "membership_not_found"
    status_code = 404
    default_message = "No active membership for this user"


class NotFound(FedhaError):
    code = "not_found"
    status_code = 404
    default_message = "Record not found"


class InsufficientStock(FedhaError):
    code = "insufficient_stock"
    status_code = 409

    def __init__(self, item_id: int, requested: int | None = None, available: int | None = None) -> None:
        self.item_id = item_id
        self.requested = requested
        self.available = available
        super().__init__(f"Insufficient stock for catalog item {item_id}")


class ValidationError(FedhaError):
    code = "validation_error"
    status_code = 422
    default_message = "Invalid input"


class BookingConflict(ValidationError):
    code = "booking_conflict"
    status_code = 409
    default_message = "Resource unit is already reserved for these dates"


class ConcurrencyConflict(FedhaError):
    code = "concurrency_conflict"
    status_code = 409
    default_message = "A concurrent request changed the same records; resubmit"


class DuplicateAdmissionNumber(ValidationError):
    code = "duplicate_admission_number"
    status_code = 409
    default_message = "Admission number is already in use"

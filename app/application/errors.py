"""Domain errors raised by the application services.

Each error carries the HTTP status it maps to and a client-facing message;
the boundary handler in ``app.exceptions`` turns them into the standard
error envelope.
"""
from typing import Optional


class DomainError(Exception):
    status_code: int = 400
    default_detail: str = "Request could not be processed"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class InvalidPartyError(DomainError):
    status_code = 400
    default_detail = "Invalid patient or doctor"


class InvalidDateError(DomainError):
    status_code = 400
    default_detail = "Invalid date or in the past"


class SlotConflictError(DomainError):
    status_code = 409
    default_detail = "Time slot already booked"


class InvalidStatusError(DomainError):
    status_code = 400
    default_detail = "Invalid status"


class InvalidTransitionError(DomainError):
    status_code = 400
    default_detail = "Status change not allowed"


class NotFoundError(DomainError):
    status_code = 404
    default_detail = "Not found"


class NotAuthorizedError(DomainError):
    status_code = 403
    default_detail = "Not authorized"


class AuthenticationError(DomainError):
    status_code = 401
    default_detail = "Invalid email or password"


class DuplicateEmailError(DomainError):
    status_code = 409
    default_detail = "Email already registered"


class BillingError(DomainError):
    status_code = 500
    default_detail = "Invoice could not be created"


class InvalidReportError(DomainError):
    status_code = 400
    default_detail = "Invalid medical report"


class ExpiredRecommendationError(DomainError):
    status_code = 400
    default_detail = "This recommendation has expired"

from typing import Optional


class AppError(Exception):
    """Base class for errors rendered as {"success": false, "message": ...}."""

    status_code = 400
    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


# ── Configuration / auth ──────────────────────────────────

class ConfigurationError(AppError):
    status_code = 500
    default_message = "Server is not configured correctly"


class InvalidRoleError(AppError):
    default_message = "Invalid role. Must be 'user' or 'supervisor'"


class AuthenticationError(AppError):
    status_code = 401
    default_message = "Invalid email or password"


# ── Quotations ────────────────────────────────────────────

class QuotationNotFoundError(AppError):
    status_code = 404
    default_message = "Quotation not found"


class QuotationStateError(AppError):
    default_message = "Quotation cannot change status"


class AlreadyApprovedError(QuotationStateError):
    default_message = "Quotation is already approved"


class CannotApproveRejectedError(QuotationStateError):
    default_message = "Cannot approve a rejected quotation"


class AlreadyLockedError(QuotationStateError):
    default_message = "Quotation is already locked"


class OnlyPendingCanBeApprovedError(QuotationStateError):
    default_message = "Only pending quotations can be approved"


class CannotRejectApprovedError(QuotationStateError):
    default_message = "Cannot reject an approved quotation"


class AlreadyRejectedError(QuotationStateError):
    default_message = "Quotation is already rejected"


class OnlyPendingCanBeRejectedError(QuotationStateError):
    default_message = "Only pending quotations can be rejected"


class OnlyRejectedCanBeResubmittedError(QuotationStateError):
    default_message = "Only rejected quotations can be resubmitted"


class InvalidLineItemError(AppError):
    default_message = "Each line item must have 'description' (string) and 'amount' (number)"

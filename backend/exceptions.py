"""
Domain errors raised by the crud and workflow layers.

Every error carries a stable `kind` (returned to API callers as `error`), an
HTTP status used by the exception handler in main.py, and a `category`:
validation, reference, consistency or transient. Consistency errors indicate
data that should never exist and are logged at ERROR.
"""


class LedgerError(Exception):
    """Base class for all domain errors."""
    kind = "ledger_error"
    category = "consistency"
    status_code = 500
    retryable = False

    def __init__(self, detail: str, **context):
        super().__init__(detail)
        self.detail = detail
        self.context = context

    def to_dict(self) -> dict:
        payload = {"error": self.kind, "detail": self.detail}
        if self.retryable:
            payload["retryable"] = True
        payload.update(self.context)
        return payload


# --- Validation errors ---

class ValidationFailed(LedgerError, ValueError):
    kind = "validation_error"
    category = "validation"
    status_code = 400


class InvalidQuantity(ValidationFailed):
    kind = "invalid_quantity"


class InvalidAmount(ValidationFailed):
    kind = "invalid_amount"


class NoItemsSelected(ValidationFailed):
    kind = "no_items_selected"


class QuantityExceedsRemaining(ValidationFailed):
    kind = "quantity_exceeds_remaining"

    def __init__(self, product_name: str, requested, remaining):
        super().__init__(
            f"Cannot invoice {requested} of '{product_name}'; only {remaining} remaining.",
            product=product_name,
            requested=str(requested),
            remaining=str(remaining),
        )


class PaymentExceedsBalance(ValidationFailed):
    kind = "payment_exceeds_balance"


class CreditExceedsBalance(ValidationFailed):
    kind = "credit_exceeds_balance"


# --- Reference errors ---

class NotFound(LedgerError):
    kind = "not_found"
    category = "reference"
    status_code = 404


class AccountNotFound(LedgerError):
    kind = "account_not_found"
    category = "reference"
    status_code = 422


class MissingRequiredAccount(LedgerError):
    kind = "missing_required_account"
    category = "reference"
    status_code = 422

    def __init__(self, account_code: str, purpose: str, company_id: int):
        super().__init__(
            f"Company {company_id} has no active account {account_code} ({purpose}).",
            account_code=account_code,
            purpose=purpose,
            company_id=company_id,
        )


# --- Consistency errors ---

class UnbalancedEntryError(LedgerError):
    """Raised when a journal entry fails the double-entry balance check."""
    kind = "unbalanced_entry"
    status_code = 422


class InvalidStatusTransition(LedgerError):
    kind = "invalid_status_transition"
    status_code = 409

    def __init__(self, document: str, current, requested):
        super().__init__(
            f"{document} cannot move from '{current}' to '{requested}'.",
            current_status=str(current),
            requested_status=str(requested),
        )


class DocumentLocked(LedgerError):
    kind = "document_locked"
    status_code = 409


class IntegrityViolation(LedgerError):
    """A write broke a database constraint other than document numbering."""
    kind = "integrity_violation"
    status_code = 409


# --- Transient errors ---

class DocumentNumberConflict(LedgerError):
    kind = "document_number_conflict"
    category = "transient"
    status_code = 409
    retryable = True


class OperationTimedOut(LedgerError):
    kind = "operation_timed_out"
    category = "transient"
    status_code = 504
    retryable = True

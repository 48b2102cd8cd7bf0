"""Domain exception hierarchy for SMB Ledger.

All domain-specific exceptions inherit from SMBLedgerError. Each carries an
error_code and an HTTP-style status_code so that a controller layer can turn
them into responses without knowing every subclass.
"""

from typing import Any
from uuid import UUID


class SMBLedgerError(Exception):
    """Base exception for all SMB Ledger errors.

    Includes optional error_code for API responses and extra context.
    """

    error_code: str = "SMB_LEDGER_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        if status_code:
            self.status_code = status_code
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Not Found Errors
# =============================================================================


class NotFoundError(SMBLedgerError):
    """Base exception for lookups that found nothing."""

    error_code = "NOT_FOUND"
    status_code = 404


class BusinessNotFoundError(NotFoundError):
    """Raised when a business cannot be found."""

    error_code = "BUSINESS_NOT_FOUND"

    def __init__(self, business_id: UUID | str) -> None:
        super().__init__(
            f"Business not found: {business_id}",
            context={"business_id": str(business_id)},
        )


class AccountNotFoundError(NotFoundError):
    """Raised when an account cannot be found by id or code."""

    error_code = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_ref: UUID | str) -> None:
        super().__init__(
            f"Account not found: {account_ref}",
            context={"account": str(account_ref)},
        )


class TransactionNotFoundError(NotFoundError):
    """Raised when a transaction cannot be found."""

    error_code = "TRANSACTION_NOT_FOUND"

    def __init__(self, transaction_id: UUID | str) -> None:
        super().__init__(
            f"Transaction not found: {transaction_id}",
            context={"transaction_id": str(transaction_id)},
        )


class CategoryNotFoundError(NotFoundError):
    """Raised when a category does not exist or belongs to another business."""

    error_code = "CATEGORY_NOT_FOUND"

    def __init__(self, category_ref: UUID | str) -> None:
        super().__init__(
            f"Category not found: {category_ref}",
            context={"category": str(category_ref)},
        )


# =============================================================================
# Account Errors
# =============================================================================


class AccountError(SMBLedgerError):
    """Base exception for account-related errors."""

    error_code = "ACCOUNT_ERROR"
    status_code = 400


class InvalidAccountError(AccountError):
    """Raised when a referenced account cannot be posted to.

    Covers ids that do not resolve and accounts owned by another business.
    """

    error_code = "INVALID_ACCOUNT"

    def __init__(self, account_id: UUID | str | None, reason: str) -> None:
        super().__init__(
            f"Invalid account {account_id}: {reason}",
            context={"account_id": str(account_id), "reason": reason},
        )


class InactiveAccountError(InvalidAccountError):
    """Raised when posting to a soft-disabled account."""

    error_code = "INACTIVE_ACCOUNT"

    def __init__(self, account_id: UUID | str, account_name: str) -> None:
        super().__init__(account_id, f"account '{account_name}' is inactive")


class AccountRoleError(InvalidAccountError):
    """Raised when strict role checking rejects an account for a transaction type."""

    error_code = "ACCOUNT_ROLE_MISMATCH"

    def __init__(
        self, account_id: UUID | str, role: str, account_type: str, transaction_type: str
    ) -> None:
        super().__init__(
            account_id,
            f"{account_type} account cannot be the {role} account "
            f"of a {transaction_type} transaction",
        )
        self.context.update(
            {
                "role": role,
                "account_type": account_type,
                "transaction_type": transaction_type,
            }
        )


class DuplicateAccountCodeError(AccountError):
    """Raised when an account code is already used within the business."""

    error_code = "DUPLICATE_ACCOUNT_CODE"
    status_code = 409

    def __init__(self, code: str, business_id: UUID | str) -> None:
        super().__init__(
            f"Account code already exists: {code}",
            context={"code": code, "business_id": str(business_id)},
        )


class AccountInUseError(AccountError):
    """Raised when deleting an account that still has postings."""

    error_code = "ACCOUNT_IN_USE"
    status_code = 409

    def __init__(self, account_id: UUID | str, reference_count: int) -> None:
        super().__init__(
            "Cannot delete account with transactions. Deactivate it instead.",
            context={
                "account_id": str(account_id),
                "reference_count": reference_count,
            },
        )


class NormalBalanceMismatchError(AccountError):
    """Raised when an account's normal balance contradicts its type."""

    error_code = "NORMAL_BALANCE_MISMATCH"

    def __init__(self, account_type: str, normal_balance: str, expected: str) -> None:
        super().__init__(
            f"{account_type} accounts carry a {expected} normal balance, "
            f"got {normal_balance}",
            context={
                "account_type": account_type,
                "normal_balance": normal_balance,
                "expected": expected,
            },
        )


# =============================================================================
# Transaction Errors
# =============================================================================


class TransactionError(SMBLedgerError):
    """Base exception for transaction-related errors."""

    error_code = "TRANSACTION_ERROR"
    status_code = 400


class ReconciledTransactionError(TransactionError):
    """Raised when deleting a transaction that has been bank-reconciled."""

    error_code = "RECONCILED_TRANSACTION"
    status_code = 409

    def __init__(self, transaction_id: UUID | str) -> None:
        super().__init__(
            "Cannot delete reconciled transaction",
            context={"transaction_id": str(transaction_id)},
        )


class UnbalancedTransactionError(TransactionError):
    """Raised when a transaction's debits don't equal credits."""

    error_code = "UNBALANCED_TRANSACTION"

    def __init__(self, debit_total: str, credit_total: str) -> None:
        super().__init__(
            f"Transaction is unbalanced: debits={debit_total}, credits={credit_total}",
            context={"debit_total": debit_total, "credit_total": credit_total},
        )


# =============================================================================
# Database Errors
# =============================================================================


class DatabaseError(SMBLedgerError):
    """Base exception for database-related errors."""

    error_code = "DATABASE_ERROR"
    status_code = 500


class AtomicityFailure(DatabaseError):
    """Raised when a storage error aborts an atomic scope.

    The scope has been rolled back; the driver error is chained as __cause__.
    """

    error_code = "ATOMICITY_FAILURE"

    def __init__(self, message: str) -> None:
        super().__init__(f"Atomic operation rolled back: {message}")


class AtomicTimeoutError(AtomicityFailure):
    """Raised when an atomic scope exceeds its time allowance."""

    error_code = "ATOMIC_TIMEOUT"

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"exceeded {timeout_seconds:g}s timeout")
        self.context["timeout_seconds"] = timeout_seconds


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(SMBLedgerError):
    """Base exception for validation errors."""

    error_code = "VALIDATION_ERROR"
    status_code = 422


class InvalidAmountError(ValidationError):
    """Raised when an invalid monetary amount is provided."""

    error_code = "INVALID_AMOUNT"

    def __init__(self, amount: str, reason: str) -> None:
        super().__init__(
            f"Invalid amount '{amount}': {reason}",
            context={"amount": amount, "reason": reason},
        )


class InvalidTransactionTypeError(ValidationError):
    """Raised when a transaction type is not INCOME, EXPENSE or TRANSFER."""

    error_code = "INVALID_TRANSACTION_TYPE"

    def __init__(self, value: str) -> None:
        super().__init__(
            f"Type must be INCOME, EXPENSE, or TRANSFER (got '{value}')",
            context={"value": value},
        )

"""
Canonical field definitions for the Receivables Audit Engine.

This module is the single source of truth for all field names used throughout
the audit engine, rules, metrics, and API. Header names from uploaded files
are matched against these values after lower-casing.

Using Enum provides:
- Type safety and IDE autocomplete
- Easy discovery of available fields
- Clear documentation
"""
from enum import Enum
from typing import Tuple, FrozenSet


class RecordKind(str, Enum):
    """Primary record sets owned by the audit state store."""

    ACCOUNTS = "coa"
    CUSTOMERS = "customers"
    INVOICES = "invoices"
    TRANSACTIONS = "transactions"


class CanonicalField(str, Enum):
    """
    Canonical field names used throughout the audit engine.

    Inheriting from str makes these usable as dictionary keys and
    compatible with pandas DataFrame column operations.
    """

    # ==================== Chart of Accounts ====================
    ACCOUNT_ID = "account_id"
    """Ledger account identifier"""

    ACCOUNT_NAME = "account_name"
    """Ledger account name"""

    ACCOUNT_TYPE = "account_type"
    """Asset, Liability, Equity, Revenue or Expense"""

    # ==================== Customers ====================
    CUSTOMER_ID = "customer_id"
    """Unique identifier for a customer"""

    NAME = "name"
    """Customer name"""

    EMAIL = "email"
    """Customer billing email"""

    RISK_SCORE_HISTORY = "risk_score_history"
    """Semicolon separated risk scores (0-100), most recent last"""

    # ==================== Invoices ====================
    INVOICE_ID = "invoice_id"
    """Invoice identifier"""

    INVOICE_DATE = "invoice_date"
    """Date the invoice was issued"""

    DUE_DATE = "due_date"
    """Date the invoice falls due"""

    ORIGINAL_AMOUNT = "original_amount"
    """Invoiced amount"""

    AMOUNT_PAID = "amount_paid"
    """Amount collected to date"""

    BALANCE_DUE = "balance_due"
    """Outstanding balance (original_amount - amount_paid at ingestion)"""

    STATUS = "status"
    """Open, Paid or Void"""

    # ==================== Transactions ====================
    TRANSACTION_ID = "transaction_id"
    """Journal entry identifier"""

    TRANSACTION_DATE = "transaction_date"
    """Date the entry was recorded"""

    DEBIT_ACCOUNT_ID = "debit_account_id"
    """Account debited"""

    CREDIT_ACCOUNT_ID = "credit_account_id"
    """Account credited"""

    AMOUNT = "amount"
    """Entry amount"""

    REFERENCE_INVOICE_ID = "reference_invoice_id"
    """Optional invoice the entry settles or raises"""

    DESCRIPTION = "description"
    """Free-text memo; also used for issue descriptions"""

    # ==================== Derived: Aging ====================
    BUCKET = "bucket"
    """Aging bucket label"""

    TOTAL_AMOUNT = "total_amount"
    """Sum of balance_due in a bucket"""

    INVOICE_COUNT = "invoice_count"
    """Number of invoices in a bucket"""

    ALLOWANCE_RATE = "allowance_rate"
    """Historical loss rate applied to a bucket"""

    ESTIMATED_ALLOWANCE = "estimated_allowance"
    """total_amount x allowance_rate"""

    AGE_DAYS = "age_days"
    """Whole days past due as of the reference date"""

    # ==================== Derived: Compliance ====================
    ISSUE_TYPE = "issue_type"
    """Compliance issue kind"""

    SEVERITY = "severity"
    """High, Medium or Low"""


# ==================== Field Groups ====================

# Parsed as float, defaulting to 0 on failure
NUMERIC_FIELDS: FrozenSet[CanonicalField] = frozenset({
    CanonicalField.ORIGINAL_AMOUNT,
    CanonicalField.AMOUNT_PAID,
    CanonicalField.BALANCE_DUE,
    CanonicalField.AMOUNT,
})
"""Fields coerced to floating-point numbers"""

# Semicolon separated lists of floats
SCORE_LIST_FIELDS: FrozenSet[CanonicalField] = frozenset({
    CanonicalField.RISK_SCORE_HISTORY,
})
"""Fields coerced to sequences of floats"""

ACCOUNT_TYPES: Tuple[str, ...] = ("Asset", "Liability", "Equity", "Revenue", "Expense")
"""Expected values for account_type"""

INVOICE_STATUSES: Tuple[str, ...] = ("Open", "Paid", "Void")
"""Expected values for invoice status"""

COMPLIANCE_ISSUE_FIELDS: Tuple[CanonicalField, ...] = (
    CanonicalField.TRANSACTION_ID,
    CanonicalField.ISSUE_TYPE,
    CanonicalField.DESCRIPTION,
    CanonicalField.SEVERITY,
)
"""Column order for compliance issue exports"""

AGING_BUCKET_FIELDS: Tuple[CanonicalField, ...] = (
    CanonicalField.BUCKET,
    CanonicalField.TOTAL_AMOUNT,
    CanonicalField.INVOICE_COUNT,
    CanonicalField.ALLOWANCE_RATE,
    CanonicalField.ESTIMATED_ALLOWANCE,
)
"""Column order for aging bucket exports"""


def get_field_names(fields) -> Tuple[str, ...]:
    """
    Convert a group of CanonicalField enums to a tuple of string names.

    Useful for pandas operations that require string column names.

    Example:
        >>> names = get_field_names(AGING_BUCKET_FIELDS)
        >>> df[list(names)]
    """
    return tuple(f.value for f in fields)

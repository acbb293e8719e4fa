"""
Typed records and canonical dataset containers for the Receivables Audit Engine.

Every record that crosses the normalization boundary is one of the frozen
dataclasses below. Raw mappings never leave the normalizer.
"""
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Tuple

from .canonical_fields import RecordKind


class NormalizationError(ValueError):
    """Raised when a payload yields no recognized dataset."""


@dataclass(frozen=True)
class Account:
    """Chart of accounts entry."""
    account_id: str
    account_name: str
    account_type: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Customer:
    """Customer master record."""
    customer_id: str
    name: str
    email: str
    risk_score_history: Tuple[float, ...] = ()

    def latest_risk_score(self) -> Optional[float]:
        return self.risk_score_history[-1] if self.risk_score_history else None

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['risk_score_history'] = list(self.risk_score_history)
        return d


@dataclass(frozen=True)
class Invoice:
    """Accounts receivable invoice."""
    invoice_id: str
    customer_id: str
    invoice_date: str
    due_date: str
    original_amount: float
    amount_paid: float
    balance_due: float
    status: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Transaction:
    """Journal entry."""
    transaction_id: str
    transaction_date: str
    debit_account_id: str
    credit_account_id: str
    amount: float
    description: str
    reference_invoice_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AgingBucket:
    """Aggregated receivables for one day-range of overdue age."""
    label: str
    total_amount: float
    invoice_count: int
    allowance_rate: float
    estimated_allowance: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary using the export column names."""
        return {
            "bucket": self.label,
            "total_amount": self.total_amount,
            "invoice_count": self.invoice_count,
            "allowance_rate": self.allowance_rate,
            "estimated_allowance": self.estimated_allowance,
        }


@dataclass(frozen=True)
class CoercionWarning:
    """A field value that was defaulted or passed through unexpected during normalization."""
    record_kind: str
    row_number: int  # 1-based data row (header excluded)
    field: str
    raw_value: Any
    message: str

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        if d['raw_value'] is not None and not isinstance(d['raw_value'], (str, int, float, bool)):
            d['raw_value'] = str(d['raw_value'])
        return d


RECORD_TYPES = {
    RecordKind.ACCOUNTS: Account,
    RecordKind.CUSTOMERS: Customer,
    RecordKind.INVOICES: Invoice,
    RecordKind.TRANSACTIONS: Transaction,
}


@dataclass(frozen=True)
class CanonicalDataSet:
    """
    Immutable snapshot of the four primary record sets.

    Example:
        >>> dataset = store.current_dataset()
        >>> dataset.summary()
        {'coa': 5, 'customers': 3, 'invoices': 4, 'transactions': 4}
    """
    accounts: Tuple[Account, ...] = ()
    customers: Tuple[Customer, ...] = ()
    invoices: Tuple[Invoice, ...] = ()
    transactions: Tuple[Transaction, ...] = ()

    def get(self, kind: RecordKind) -> tuple:
        """Get the record set for a kind."""
        return {
            RecordKind.ACCOUNTS: self.accounts,
            RecordKind.CUSTOMERS: self.customers,
            RecordKind.INVOICES: self.invoices,
            RecordKind.TRANSACTIONS: self.transactions,
        }[RecordKind(kind)]

    def summary(self) -> Dict[str, int]:
        """Record counts per kind."""
        return {kind.value: len(self.get(kind)) for kind in RecordKind}

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            kind.value: [record.to_dict() for record in self.get(kind)]
            for kind in RecordKind
        }


@dataclass
class PartialDataset:
    """
    Result of normalizing one payload.

    Holds only the record kinds the payload provided; a kind absent from
    `records` leaves the corresponding primary set untouched when applied.
    """
    source_format: str
    records: Dict[RecordKind, Tuple[Any, ...]] = field(default_factory=dict)
    warnings: List[CoercionWarning] = field(default_factory=list)

    def kinds(self) -> List[RecordKind]:
        """Record kinds present, in canonical order."""
        return [kind for kind in RecordKind if kind in self.records]

    def is_empty(self) -> bool:
        return not self.records

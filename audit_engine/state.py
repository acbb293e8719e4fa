"""
Audit state store - owns the primary record sets for a session and
recomputes derived results lazily after invalidation.
"""
from datetime import date
import dataclasses
from typing import Any, Iterable, Optional, Tuple, Union
import logging
import pandas as pd

from config import config
from .aging import compute_aging, parse_reference_date
from .canonical_fields import RecordKind
from .findings import ComplianceIssue
from .rules import check_compliance
from .schemas import RECORD_TYPES, AgingBucket, CanonicalDataSet, PartialDataset

logger = logging.getLogger(__name__)

# Derived collections that depend on each primary set
_DEPENDENTS = {
    RecordKind.ACCOUNTS: ("compliance",),
    RecordKind.TRANSACTIONS: ("compliance",),
    RecordKind.INVOICES: ("aging",),
    RecordKind.CUSTOMERS: (),
}


class AuditStateStore:
    """
    Holds the current normalized dataset and its derived collections.

    Primary sets are replaced wholesale, never patched. Each replacement marks
    the dependent derived collection dirty; it is recomputed on the next read.

    Example:
        >>> store = AuditStateStore(reference_date="2024-07-01")
        >>> store.replace(RecordKind.INVOICES, invoices)
        >>> store.aging_buckets()  # recomputed here
    """

    def __init__(self, dataset: Optional[CanonicalDataSet] = None,
                 reference_date: Union[date, str, pd.Timestamp] = None):
        if reference_date is None:
            reference_date = config.aging.default_reference_date
        self._dataset = dataset or CanonicalDataSet()
        self._reference_date = parse_reference_date(reference_date).date()
        self._compliance: Optional[Tuple[ComplianceIssue, ...]] = None
        self._aging: Optional[Tuple[AgingBucket, ...]] = None
        self._dirty = {"compliance": True, "aging": True}

    @classmethod
    def from_samples(cls, reference_date: Union[date, str, pd.Timestamp] = None) -> "AuditStateStore":
        """Create the session-start state from the built-in sample dataset."""
        from .samples import sample_dataset
        return cls(dataset=sample_dataset(), reference_date=reference_date)

    # ==================== Primary Sets ====================

    def current_dataset(self) -> CanonicalDataSet:
        """Immutable snapshot of the four primary sets."""
        return self._dataset

    def replace(self, kind: Union[RecordKind, str], records: Iterable[Any]) -> None:
        """
        Replace one primary set wholesale.

        Raises:
            TypeError: If a record is not of the kind's record type
        """
        kind = RecordKind(kind)
        records = tuple(records)
        record_type = RECORD_TYPES[kind]
        for record in records:
            if not isinstance(record, record_type):
                raise TypeError(
                    f"{kind.value} records must be {record_type.__name__}, got {type(record).__name__}"
                )

        field_name = {
            RecordKind.ACCOUNTS: "accounts",
            RecordKind.CUSTOMERS: "customers",
            RecordKind.INVOICES: "invoices",
            RecordKind.TRANSACTIONS: "transactions",
        }[kind]
        self._dataset = dataclasses.replace(self._dataset, **{field_name: records})

        for derived in _DEPENDENTS[kind]:
            self._dirty[derived] = True
        logger.info(f"[STATE] Replaced {kind.value} ({len(records)} records)")

    def apply(self, partial: PartialDataset) -> None:
        """Replace every record set present in a partial dataset."""
        for kind in partial.kinds():
            self.replace(kind, partial.records[kind])

    def reset(self, dataset: CanonicalDataSet) -> None:
        """Replace all four primary sets."""
        for kind in RecordKind:
            self.replace(kind, dataset.get(kind))

    # ==================== Reference Date ====================

    @property
    def reference_date(self) -> date:
        return self._reference_date

    def set_reference_date(self, value: Union[date, str, pd.Timestamp]) -> None:
        """
        Change the aging reference date.

        Raises:
            ValueError: If the value is not a date
        """
        new_date = parse_reference_date(value).date()
        if new_date != self._reference_date:
            self._reference_date = new_date
            self._dirty["aging"] = True
            logger.info(f"[STATE] Reference date set to {new_date.isoformat()}")

    # ==================== Derived Collections ====================

    def compliance_issues(self) -> Tuple[ComplianceIssue, ...]:
        """Compliance issues, recomputed if accounts or transactions changed."""
        if self._dirty["compliance"] or self._compliance is None:
            self._compliance = check_compliance(self._dataset.transactions, self._dataset.accounts)
            self._dirty["compliance"] = False
            logger.debug(f"[STATE] Recomputed compliance issues: {len(self._compliance)}")
        return self._compliance

    def aging_buckets(self) -> Tuple[AgingBucket, ...]:
        """Aging buckets, recomputed if invoices or the reference date changed."""
        if self._dirty["aging"] or self._aging is None:
            self._aging = compute_aging(self._dataset.invoices, self._reference_date)
            self._dirty["aging"] = False
            logger.debug("[STATE] Recomputed aging buckets")
        return self._aging

    def is_dirty(self, derived: str) -> bool:
        """Whether a derived collection ('compliance' or 'aging') awaits recomputation."""
        return self._dirty[derived]

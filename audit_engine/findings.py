"""
Compliance issue records and tabular exports of audit results.
"""
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Iterable
import pandas as pd

from .canonical_fields import (
    CanonicalField,
    AGING_BUCKET_FIELDS,
    COMPLIANCE_ISSUE_FIELDS,
    get_field_names,
)
from .schemas import AgingBucket


class IssueKind(str, Enum):
    """Compliance issue taxonomy."""
    INVALID_DEBIT_ACCOUNT = "InvalidDebitAccount"
    INVALID_CREDIT_ACCOUNT = "InvalidCreditAccount"
    DATA_INTEGRITY = "DataIntegrity"

    @property
    def label(self) -> str:
        return {
            "InvalidDebitAccount": "Invalid Debit Account",
            "InvalidCreditAccount": "Invalid Credit Account",
            "DataIntegrity": "Data Integrity",
        }[self.value]


@dataclass(frozen=True)
class ComplianceIssue:
    """Structured compliance issue record."""
    transaction_id: str
    kind: IssueKind
    description: str
    severity: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        d = asdict(self)
        d['kind'] = self.kind.value
        d['issue_type'] = self.kind.label
        return d


def issues_to_frame(issues: Iterable[ComplianceIssue]) -> pd.DataFrame:
    """
    Convert compliance issues to a DataFrame for export.

    Returns an empty DataFrame with the export columns when there are no issues.
    """
    columns = list(get_field_names(COMPLIANCE_ISSUE_FIELDS))
    rows = [
        {
            CanonicalField.TRANSACTION_ID.value: issue.transaction_id,
            CanonicalField.ISSUE_TYPE.value: issue.kind.label,
            CanonicalField.DESCRIPTION.value: issue.description,
            CanonicalField.SEVERITY.value: issue.severity,
        }
        for issue in issues
    ]
    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows, columns=columns)


def buckets_to_frame(buckets: Iterable[AgingBucket]) -> pd.DataFrame:
    """Convert aging buckets to a DataFrame in bucket order."""
    columns = list(get_field_names(AGING_BUCKET_FIELDS))
    rows = [bucket.to_dict() for bucket in buckets]
    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows, columns=columns)

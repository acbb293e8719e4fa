"""
Audit Engine - Core audit processing modules.
"""
from .io import DataSourceLoader, CsvSourceLoader, JsonSourceLoader, parse_csv_line, parse_csv_text
from .normalize import normalize, normalize_records
from .rules import RuleContext, Rule, RuleRegistry, CoaComplianceRule, check_compliance
from .aging import compute_aging, aging_detail
from .findings import ComplianceIssue, IssueKind, issues_to_frame, buckets_to_frame
from .metrics import calculate_kpis, calculate_customer_exposure
from .canonical_fields import CanonicalField, RecordKind
from .schemas import (
    Account,
    Customer,
    Invoice,
    Transaction,
    AgingBucket,
    CanonicalDataSet,
    PartialDataset,
    CoercionWarning,
    NormalizationError,
)
from .state import AuditStateStore
from .ingest import IngestionResult, ingest_files
from .samples import sample_dataset

__all__ = [
    "DataSourceLoader",
    "CsvSourceLoader",
    "JsonSourceLoader",
    "parse_csv_line",
    "parse_csv_text",
    "normalize",
    "normalize_records",
    "RuleContext",
    "Rule",
    "RuleRegistry",
    "CoaComplianceRule",
    "check_compliance",
    "compute_aging",
    "aging_detail",
    "ComplianceIssue",
    "IssueKind",
    "issues_to_frame",
    "buckets_to_frame",
    "calculate_kpis",
    "calculate_customer_exposure",
    "CanonicalField",
    "RecordKind",
    "Account",
    "Customer",
    "Invoice",
    "Transaction",
    "AgingBucket",
    "CanonicalDataSet",
    "PartialDataset",
    "CoercionWarning",
    "NormalizationError",
    "AuditStateStore",
    "IngestionResult",
    "ingest_files",
    "sample_dataset",
]

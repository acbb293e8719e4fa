"""
Centralized configuration for the Receivables Audit Workbench.
All header contracts, aging rates, and collaborator settings are defined here.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import os


@dataclass
class ColumnMapping:
    """Maps required columns for a data source."""
    required_columns: List[str]
    optional_columns: List[str] = field(default_factory=list)

    def validate(self, columns: List[str]) -> Tuple[bool, List[str]]:
        """Check if all required columns are present."""
        missing = [col for col in self.required_columns if col not in columns]
        return len(missing) == 0, missing


@dataclass
class DataSourceConfig:
    """Configuration for a record source (one CSV file or one JSON key)."""
    name: str
    label: str
    json_key: str
    column_mapping: ColumnMapping  # Detection headers; both must be present
    header_contract: List[str]     # Full template header row


@dataclass
class AgingConfig:
    """Aging buckets and allowance rates (historical loss rates)."""
    bucket_labels: Tuple[str, ...] = ("Current", "1-30 Days", "31-60 Days", "61-90 Days", "90+ Days")
    # Inclusive upper bound of days overdue per bucket; the last bucket is open-ended
    bucket_upper_bounds: Tuple[Optional[int], ...] = (0, 30, 60, 90, None)
    allowance_rates: Tuple[float, ...] = (0.01, 0.05, 0.10, 0.25, 0.50)
    default_reference_date: str = field(
        default_factory=lambda: os.getenv('AGING_REFERENCE_DATE', '2024-07-01')
    )


@dataclass
class SeverityMapping:
    """Map compliance issue kind to severity level."""
    severity_by_kind: Dict[str, str] = field(default_factory=lambda: {
        "InvalidDebitAccount": "High",
        "InvalidCreditAccount": "High",
        "DataIntegrity": "Medium"
    })

    def get_severity(self, kind: str) -> str:
        return self.severity_by_kind.get(kind, "Medium")


@dataclass
class IngestionConfig:
    """Configuration for uploaded file handling."""
    allowed_extensions: Tuple[str, ...] = (".csv", ".json")
    text_encoding: str = "utf-8-sig"  # Tolerates a leading BOM from Excel exports
    max_upload_mb: int = field(default_factory=lambda: int(os.getenv('MAX_UPLOAD_MB', '20')))


@dataclass
class AISummaryConfig:
    """Gemini generative AI collaborator settings."""
    api_key: Optional[str] = field(
        default_factory=lambda: os.getenv('GEMINI_API_KEY') or os.getenv('API_KEY')
    )
    model: str = field(default_factory=lambda: os.getenv('GEMINI_MODEL', 'gemini-2.5-flash'))
    endpoint_template: str = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
    credit_risk_temperature: float = 0.2  # Low temperature for analytical consistency
    audit_summary_temperature: float = 0.3
    request_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv('AI_REQUEST_TIMEOUT_SECONDS', '60'))
    )

    def is_configured(self) -> bool:
        """Check if the Gemini API key is available."""
        return bool(self.api_key)

    def get_endpoint(self) -> str:
        return self.endpoint_template.format(model=self.model)


@dataclass
class SessionConfig:
    """Per-session audit state settings."""
    idle_timeout_minutes: int = field(
        default_factory=lambda: int(os.getenv('SESSION_IDLE_TIMEOUT_MINUTES', '30'))
    )
    state_cache_prefix: str = "audit_state"

    def get_state_timeout_seconds(self) -> int:
        return self.idle_timeout_minutes * 60


@dataclass
class AuditConfig:
    """Main audit configuration container."""
    # Record sources, in header detection order
    accounts_source: DataSourceConfig = field(default_factory=lambda: DataSourceConfig(
        name="coa",
        label="COA",
        json_key="coa",
        column_mapping=ColumnMapping(required_columns=["account_id", "account_type"]),
        header_contract=["account_id", "account_name", "account_type"]
    ))

    customers_source: DataSourceConfig = field(default_factory=lambda: DataSourceConfig(
        name="customers",
        label="Customers",
        json_key="customers",
        column_mapping=ColumnMapping(required_columns=["customer_id", "risk_score_history"]),
        header_contract=["customer_id", "name", "email", "risk_score_history"]
    ))

    invoices_source: DataSourceConfig = field(default_factory=lambda: DataSourceConfig(
        name="invoices",
        label="Invoices",
        json_key="invoices",
        column_mapping=ColumnMapping(required_columns=["invoice_id", "balance_due"]),
        header_contract=[
            "invoice_id", "customer_id", "invoice_date", "due_date",
            "original_amount", "amount_paid", "balance_due", "status"
        ]
    ))

    transactions_source: DataSourceConfig = field(default_factory=lambda: DataSourceConfig(
        name="transactions",
        label="Transactions",
        json_key="transactions",
        column_mapping=ColumnMapping(required_columns=["transaction_id", "debit_account_id"]),
        header_contract=[
            "transaction_id", "transaction_date", "debit_account_id", "credit_account_id",
            "amount", "reference_invoice_id", "description"
        ]
    ))

    # Aging settings
    aging: AgingConfig = field(default_factory=AgingConfig)

    # Severity mapping
    severity: SeverityMapping = field(default_factory=SeverityMapping)

    # Upload settings
    ingestion: IngestionConfig = field(default_factory=IngestionConfig)

    # AI commentary settings
    ai: AISummaryConfig = field(default_factory=AISummaryConfig)

    # Session state settings
    session: SessionConfig = field(default_factory=SessionConfig)

    def get_sources(self) -> List[DataSourceConfig]:
        """Record sources in detection order (first match wins)."""
        return [
            self.accounts_source,
            self.customers_source,
            self.invoices_source,
            self.transactions_source,
        ]

    def get_source(self, name: str) -> Optional[DataSourceConfig]:
        for source in self.get_sources():
            if source.name == name:
                return source
        return None


# Global configuration instance
config = AuditConfig()

"""
KPI and metrics calculation.
"""
import pandas as pd
from datetime import date
from typing import Dict, Any, Sequence, Union

from .aging import aging_detail
from .canonical_fields import CanonicalField
from .findings import ComplianceIssue
from .schemas import AgingBucket, CanonicalDataSet, Customer, Invoice

EXPOSURE_COLUMNS = [
    "customer_id",
    "name",
    "total_due",
    "open_invoices",
    "overdue_invoices",
    "latest_risk_score",
    "risk_trend",
]


def calculate_kpis(
    dataset: CanonicalDataSet,
    issues: Sequence[ComplianceIssue],
    buckets: Sequence[AgingBucket]
) -> Dict[str, Any]:
    """
    Calculate dashboard KPIs from the dataset and its derived collections.

    Args:
        dataset: Current primary record sets
        issues: Compliance issues
        buckets: Aging buckets

    Returns:
        Dictionary with KPI values
    """
    total_receivables = sum(b.total_amount for b in buckets)
    total_allowance = sum(b.estimated_allowance for b in buckets)
    allowance_pct = (total_allowance / total_receivables) * 100 if total_receivables > 0 else 0.0

    high_severity_count = len([i for i in issues if i.severity == "High"])
    open_invoice_count = len([inv for inv in dataset.invoices if inv.balance_due > 0])

    return {
        "total_receivables": float(total_receivables),
        "total_allowance": float(total_allowance),
        "allowance_pct_of_ar": float(allowance_pct),
        "compliance_issue_count": int(len(issues)),
        "high_severity_count": int(high_severity_count),
        "invoice_count": len(dataset.invoices),
        "open_invoice_count": int(open_invoice_count),
        "transaction_count": len(dataset.transactions),
        "account_count": len(dataset.accounts),
        "customer_count": len(dataset.customers),
    }


def calculate_customer_exposure(
    customers: Sequence[Customer],
    invoices: Sequence[Invoice],
    reference_date: Union[date, str]
) -> pd.DataFrame:
    """
    Calculate receivables exposure by customer.

    Args:
        customers: Customer master records
        invoices: Invoice records
        reference_date: Date overdue status is measured at

    Returns:
        DataFrame with one row per customer
    """
    detail = aging_detail(invoices, reference_date)
    customer_id_col = CanonicalField.CUSTOMER_ID.value

    summaries = []
    for customer in customers:
        cust_detail = detail[detail[customer_id_col] == customer.customer_id]
        overdue = cust_detail[CanonicalField.AGE_DAYS.value]
        # Unreadable due dates have no age and are not counted as overdue
        overdue_count = int((pd.to_numeric(overdue, errors='coerce') > 0).sum())

        history = customer.risk_score_history
        risk_trend = history[-1] - history[0] if len(history) >= 2 else 0.0

        summaries.append({
            "customer_id": customer.customer_id,
            "name": customer.name,
            "total_due": float(cust_detail[CanonicalField.BALANCE_DUE.value].sum()),
            "open_invoices": int(len(cust_detail)),
            "overdue_invoices": overdue_count,
            "latest_risk_score": customer.latest_risk_score(),
            "risk_trend": float(risk_trend),
        })

    return pd.DataFrame(summaries, columns=EXPOSURE_COLUMNS)

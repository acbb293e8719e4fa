import pytest

from conftest import make_invoice

from audit_engine.aging import compute_aging
from audit_engine.metrics import EXPOSURE_COLUMNS, calculate_customer_exposure, calculate_kpis
from audit_engine.rules import check_compliance
from audit_engine.samples import sample_dataset
from audit_engine.schemas import CanonicalDataSet, Customer


def test_kpis_for_sample_data():
    dataset = sample_dataset()
    issues = check_compliance(dataset.transactions, dataset.accounts)
    buckets = compute_aging(dataset.invoices, "2024-07-01")

    kpis = calculate_kpis(dataset, issues, buckets)

    assert kpis["total_receivables"] == 23500.0
    assert kpis["total_allowance"] == pytest.approx(9750.0)
    assert kpis["allowance_pct_of_ar"] == pytest.approx(9750.0 / 23500.0 * 100)
    assert kpis["compliance_issue_count"] == 2
    assert kpis["high_severity_count"] == 2
    assert kpis["invoice_count"] == 4
    assert kpis["open_invoice_count"] == 3
    assert kpis["transaction_count"] == 4


def test_kpis_for_empty_dataset():
    kpis = calculate_kpis(CanonicalDataSet(), (), compute_aging([], "2024-07-01"))

    assert kpis["total_receivables"] == 0.0
    assert kpis["allowance_pct_of_ar"] == 0.0


def test_customer_exposure_for_sample_data():
    dataset = sample_dataset()

    df = calculate_customer_exposure(dataset.customers, dataset.invoices, "2024-07-01")

    assert list(df.columns) == EXPOSURE_COLUMNS
    rows = df.set_index("customer_id")
    assert rows.loc["CUST-002", "total_due"] == 18500.0
    assert rows.loc["CUST-002", "overdue_invoices"] == 2
    assert rows.loc["CUST-002", "risk_trend"] == 20.0
    assert rows.loc["CUST-003", "open_invoices"] == 0
    assert rows.loc["CUST-003", "total_due"] == 0.0


def test_exposure_ignores_not_yet_due_invoices_for_overdue_count():
    customers = [Customer("C1", "One", "one@example.com", (50.0,))]
    invoices = [make_invoice("I1", "2024-08-01", 100.0, customer_id="C1")]

    row = calculate_customer_exposure(customers, invoices, "2024-07-01").iloc[0]

    assert row["open_invoices"] == 1
    assert row["overdue_invoices"] == 0
    assert row["latest_risk_score"] == 50.0
    assert row["risk_trend"] == 0.0

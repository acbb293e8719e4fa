from datetime import date

import pytest

from conftest import make_invoice

from audit_engine.aging import age_in_days, aging_detail, classify_age, compute_aging, parse_reference_date
from audit_engine.findings import buckets_to_frame
from audit_engine.samples import SAMPLE_INVOICES

LABELS = ["Current", "1-30 Days", "31-60 Days", "61-90 Days", "90+ Days"]
RATES = [0.01, 0.05, 0.10, 0.25, 0.50]


def by_label(buckets):
    return {b.label: b for b in buckets}


def test_fixed_bucket_order_and_rates():
    buckets = compute_aging([], "2024-07-01")

    assert [b.label for b in buckets] == LABELS
    assert [b.allowance_rate for b in buckets] == RATES
    assert all(b.total_amount == 0 and b.invoice_count == 0 and b.estimated_allowance == 0 for b in buckets)


def test_92_days_lands_in_90_plus():
    buckets = by_label(compute_aging([make_invoice("I1", "2024-03-31", 100.0)], "2024-07-01"))

    assert buckets["90+ Days"].invoice_count == 1


def test_31_days_lands_in_31_60_with_allowance():
    buckets = by_label(compute_aging([make_invoice("I1", "2024-05-31", 5000.0)], date(2024, 7, 1)))

    bucket = buckets["31-60 Days"]
    assert bucket.total_amount == 5000.0
    assert bucket.invoice_count == 1
    assert bucket.estimated_allowance == 500.0


@pytest.mark.parametrize("age,label", [
    (-10, "Current"),
    (0, "Current"),
    (1, "1-30 Days"),
    (30, "1-30 Days"),
    (31, "31-60 Days"),
    (60, "31-60 Days"),
    (61, "61-90 Days"),
    (90, "61-90 Days"),
    (91, "90+ Days"),
])
def test_bucket_boundaries(age, label):
    assert classify_age(age) == label


def test_age_is_whole_calendar_days():
    ref = parse_reference_date("2024-07-01T18:30:00")
    due = parse_reference_date("2024-06-30T23:00:00")

    assert age_in_days(ref, due) == 1


def test_paid_and_void_invoices_excluded():
    invoices = [
        make_invoice("I1", "2024-06-15", 200.0),
        make_invoice("I2", "2024-06-15", 0.0, status="Paid"),
        make_invoice("I3", "2024-06-15", -25.0, status="Void"),
    ]

    buckets = compute_aging(invoices, "2024-07-01")

    assert sum(b.invoice_count for b in buckets) == 1
    assert sum(b.total_amount for b in buckets) == 200.0


def test_partition_is_exhaustive_and_disjoint():
    due_dates = ["2024-08-01", "2024-07-01", "2024-06-20", "2024-05-15", "2024-04-10", "2023-01-01"]
    invoices = [make_invoice(f"I{i}", d, 10.0 * (i + 1)) for i, d in enumerate(due_dates)]

    buckets = compute_aging(invoices, "2024-07-01")

    assert sum(b.invoice_count for b in buckets) == len(invoices)
    assert sum(b.total_amount for b in buckets) == pytest.approx(sum(i.balance_due for i in invoices))
    assert [b.invoice_count for b in buckets] == [2, 1, 1, 1, 1]


def test_allowance_equals_total_times_rate():
    invoices = [make_invoice(f"I{i}", "2024-02-01", 333.33) for i in range(7)]
    invoices.append(make_invoice("J", "2024-06-20", 1234.56))

    for bucket in compute_aging(invoices, "2024-07-01"):
        assert bucket.estimated_allowance == bucket.total_amount * bucket.allowance_rate


def test_unreadable_due_date_goes_to_oldest_bucket():
    buckets = by_label(compute_aging([make_invoice("I1", "not a date", 50.0)], "2024-07-01"))

    assert buckets["90+ Days"].invoice_count == 1


def test_reference_date_is_required_to_parse():
    with pytest.raises(ValueError):
        compute_aging([], "someday")


def test_sample_invoices():
    buckets = by_label(compute_aging(SAMPLE_INVOICES, "2024-07-01"))

    assert buckets["31-60 Days"].total_amount == 5000.0
    assert buckets["90+ Days"].total_amount == 18500.0
    assert buckets["90+ Days"].invoice_count == 2
    assert buckets["90+ Days"].estimated_allowance == 9250.0


def test_aging_detail_rows():
    detail = aging_detail([make_invoice("I1", "2024-05-31", 10.0), make_invoice("I2", "2024-05-31", 0.0)], "2024-07-01")

    assert list(detail["invoice_id"]) == ["I1"]
    assert list(detail["age_days"]) == [31]
    assert list(detail["bucket"]) == ["31-60 Days"]


def test_buckets_to_frame():
    df = buckets_to_frame(compute_aging(SAMPLE_INVOICES, "2024-07-01"))

    assert list(df["bucket"]) == LABELS
    assert df["estimated_allowance"].sum() == pytest.approx(9750.0)

"""
Aging and allowance logic - bucket outstanding invoices by days overdue.

Two levels are provided:
1. aging_detail: one row per outstanding invoice with its age and bucket
2. compute_aging: bucket totals with the estimated allowance for doubtful accounts
"""
from dataclasses import replace
from datetime import date
from typing import Any, Optional, Sequence, Tuple, Union
import logging
import math
import pandas as pd

from config import config as app_config
from .canonical_fields import CanonicalField
from .schemas import AgingBucket, Invoice

logger = logging.getLogger(__name__)

ONE_DAY = pd.Timedelta(days=1)

DETAIL_COLUMNS = [
    CanonicalField.INVOICE_ID.value,
    CanonicalField.CUSTOMER_ID.value,
    CanonicalField.DUE_DATE.value,
    CanonicalField.BALANCE_DUE.value,
    CanonicalField.AGE_DAYS.value,
    CanonicalField.BUCKET.value,
]


def parse_reference_date(value: Union[date, str, pd.Timestamp]) -> pd.Timestamp:
    """
    Parse the aging reference date to a midnight timestamp.

    Raises:
        ValueError: If the value is empty or not a date
    """
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid reference date: {value!r}") from e
    if pd.isna(ts):
        raise ValueError(f"Invalid reference date: {value!r}")
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts.normalize()


def parse_due_date(value: Any) -> Optional[pd.Timestamp]:
    """Parse a due date leniently; None when it cannot be read."""
    if value is None or str(value).strip() == "":
        return None
    ts = pd.to_datetime(value, errors='coerce')
    if pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts.normalize()


def age_in_days(reference_date: pd.Timestamp, due_date: Optional[pd.Timestamp]) -> Optional[int]:
    """Whole days past due, ceil((reference - due) / 1 day); None for an unreadable due date."""
    if due_date is None or pd.isna(due_date):
        return None
    return math.ceil((reference_date - due_date) / ONE_DAY)


def classify_age(age_days: Optional[int]) -> str:
    """
    Assign an aging bucket label.

    Rules:
    - Current if age <= 0 (not yet due)
    - 1-30, 31-60, 61-90 Days by inclusive upper bound
    - 90+ Days otherwise, including unreadable due dates
    """
    labels = app_config.aging.bucket_labels
    bounds = app_config.aging.bucket_upper_bounds

    if age_days is None or pd.isna(age_days):
        return labels[-1]

    for label, upper in zip(labels, bounds):
        if upper is None or age_days <= upper:
            return label
    return labels[-1]


def aging_detail(invoices: Sequence[Invoice],
                 reference_date: Union[date, str, pd.Timestamp]) -> pd.DataFrame:
    """
    Build per-invoice aging detail for invoices with a positive balance.

    Invoices with balance_due <= 0 (paid or void in effect) are excluded.
    """
    ref = parse_reference_date(reference_date)

    outstanding = [inv for inv in invoices if inv.balance_due > 0]
    if not outstanding:
        return pd.DataFrame(columns=DETAIL_COLUMNS)

    df = pd.DataFrame([inv.to_dict() for inv in outstanding])

    due_dates = df[CanonicalField.DUE_DATE.value].map(parse_due_date)
    unreadable = int(due_dates.isna().sum())
    if unreadable:
        logger.warning(f"[AGING] {unreadable} invoice(s) with unreadable due_date assigned to oldest bucket")

    df[CanonicalField.AGE_DAYS.value] = due_dates.map(lambda d: age_in_days(ref, d))
    df[CanonicalField.BUCKET.value] = df[CanonicalField.AGE_DAYS.value].map(classify_age)

    return df[DETAIL_COLUMNS].copy()


def compute_aging(invoices: Sequence[Invoice],
                  reference_date: Union[date, str, pd.Timestamp]) -> Tuple[AgingBucket, ...]:
    """
    Bucket outstanding invoices and estimate the allowance per bucket.

    Always returns the five buckets in fixed order:
    Current, 1-30 Days, 31-60 Days, 61-90 Days, 90+ Days.

    Args:
        invoices: Invoice records
        reference_date: Date the aging is measured at (no implicit "today")

    Returns:
        Tuple of AgingBucket
    """
    aging_cfg = app_config.aging
    labels = list(aging_cfg.bucket_labels)
    detail = aging_detail(invoices, reference_date)

    if detail.empty:
        totals = pd.DataFrame({"total": 0.0, "count": 0}, index=labels)
    else:
        grouped = detail.groupby(CanonicalField.BUCKET.value)[CanonicalField.BALANCE_DUE.value]
        totals = pd.DataFrame({
            "total": grouped.sum(),
            "count": grouped.count(),
        }).reindex(labels, fill_value=0)

    buckets = [
        AgingBucket(
            label=label,
            total_amount=float(totals.at[label, "total"]),
            invoice_count=int(totals.at[label, "count"]),
            allowance_rate=rate,
            estimated_allowance=0.0
        )
        for label, rate in zip(labels, aging_cfg.allowance_rates)
    ]

    # Allowance is computed once over the final totals
    buckets = [
        replace(bucket, estimated_allowance=bucket.total_amount * bucket.allowance_rate)
        for bucket in buckets
    ]

    logger.info(
        f"[AGING] {len(detail)} outstanding invoice(s) as of {parse_reference_date(reference_date).date()}; "
        f"total allowance {sum(b.estimated_allowance for b in buckets):.2f}"
    )
    return tuple(buckets)

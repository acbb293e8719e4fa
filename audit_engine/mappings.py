"""
Raw-to-canonical record mappings for the Receivables Audit Engine.

This module is the ONLY place where loose field values (strings from CSV,
arbitrary JSON scalars) are turned into typed records. Every other module
works with the dataclasses in schemas.py.

Mappings define:
1. Field coercion (numbers, score lists, trimmed strings)
2. One decoder per record kind
3. Warnings for values that were defaulted rather than parsed
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple
import logging
import math

from .canonical_fields import (
    CanonicalField,
    RecordKind,
    ACCOUNT_TYPES,
    INVOICE_STATUSES,
)
from .schemas import (
    Account,
    Customer,
    Invoice,
    Transaction,
    CoercionWarning,
    NormalizationError,
)

logger = logging.getLogger(__name__)

RawRecord = Mapping[str, Any]


# ==================== Field Coercion ====================

def coerce_float(value: Any) -> Optional[float]:
    """
    Parse a value as a finite float.

    Returns None when the value is absent, empty, not numeric, or not finite.
    Digit separators ("1_000", "5,000.00") are not accepted.
    Callers decide the default.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text or "_" in text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def split_score_history(value: Any) -> List[Any]:
    """Split a risk score history into raw segments (';' separated or a JSON list)."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    text = str(value).strip()
    if not text:
        return []
    return text.split(';')


def coerce_text(value: Any) -> str:
    """Pass a value through as a trimmed string; absent becomes empty."""
    if value is None:
        return ""
    return str(value).strip()


@dataclass
class DecodeContext:
    """Tracks the row being decoded and collects coercion warnings."""
    kind: RecordKind
    row_number: int
    warnings: List[CoercionWarning] = field(default_factory=list)

    def _warn(self, name: CanonicalField, raw_value: Any, message: str) -> None:
        self.warnings.append(CoercionWarning(
            record_kind=self.kind.value,
            row_number=self.row_number,
            field=name.value,
            raw_value=raw_value,
            message=message
        ))

    def text(self, row: RawRecord, name: CanonicalField) -> str:
        return coerce_text(row.get(name.value))

    def optional_text(self, row: RawRecord, name: CanonicalField) -> Optional[str]:
        return self.text(row, name) or None

    def number(self, row: RawRecord, name: CanonicalField) -> float:
        raw_value = row.get(name.value)
        number = coerce_float(raw_value)
        if number is None:
            if coerce_text(raw_value):
                self._warn(name, raw_value, "Not a number; defaulted to 0")
            else:
                self._warn(name, raw_value, "Missing value; defaulted to 0")
            return 0.0
        return number

    def scores(self, row: RawRecord, name: CanonicalField) -> Tuple[float, ...]:
        scores = []
        for segment in split_score_history(row.get(name.value)):
            score = coerce_float(segment)
            if score is None:
                self._warn(name, segment, "Risk score is not a number; defaulted to 0")
                score = 0.0
            scores.append(score)
        return tuple(scores)

    def expect_one_of(self, value: str, name: CanonicalField, allowed: Tuple[str, ...]) -> str:
        """Pass the value through, warning when it is outside the expected set."""
        if value not in allowed:
            self._warn(name, value, f"Unexpected value; expected one of {', '.join(allowed)}")
        return value


# ==================== Record Decoders ====================

def decode_account(row: RawRecord, ctx: DecodeContext) -> Account:
    return Account(
        account_id=ctx.text(row, CanonicalField.ACCOUNT_ID),
        account_name=ctx.text(row, CanonicalField.ACCOUNT_NAME),
        account_type=ctx.expect_one_of(
            ctx.text(row, CanonicalField.ACCOUNT_TYPE),
            CanonicalField.ACCOUNT_TYPE,
            ACCOUNT_TYPES
        )
    )


def decode_customer(row: RawRecord, ctx: DecodeContext) -> Customer:
    return Customer(
        customer_id=ctx.text(row, CanonicalField.CUSTOMER_ID),
        name=ctx.text(row, CanonicalField.NAME),
        email=ctx.text(row, CanonicalField.EMAIL),
        risk_score_history=ctx.scores(row, CanonicalField.RISK_SCORE_HISTORY)
    )


def decode_invoice(row: RawRecord, ctx: DecodeContext) -> Invoice:
    return Invoice(
        invoice_id=ctx.text(row, CanonicalField.INVOICE_ID),
        customer_id=ctx.text(row, CanonicalField.CUSTOMER_ID),
        invoice_date=ctx.text(row, CanonicalField.INVOICE_DATE),
        due_date=ctx.text(row, CanonicalField.DUE_DATE),
        original_amount=ctx.number(row, CanonicalField.ORIGINAL_AMOUNT),
        amount_paid=ctx.number(row, CanonicalField.AMOUNT_PAID),
        balance_due=ctx.number(row, CanonicalField.BALANCE_DUE),
        status=ctx.expect_one_of(
            ctx.text(row, CanonicalField.STATUS),
            CanonicalField.STATUS,
            INVOICE_STATUSES
        )
    )


def decode_transaction(row: RawRecord, ctx: DecodeContext) -> Transaction:
    return Transaction(
        transaction_id=ctx.text(row, CanonicalField.TRANSACTION_ID),
        transaction_date=ctx.text(row, CanonicalField.TRANSACTION_DATE),
        debit_account_id=ctx.text(row, CanonicalField.DEBIT_ACCOUNT_ID),
        credit_account_id=ctx.text(row, CanonicalField.CREDIT_ACCOUNT_ID),
        amount=ctx.number(row, CanonicalField.AMOUNT),
        description=ctx.text(row, CanonicalField.DESCRIPTION),
        reference_invoice_id=ctx.optional_text(row, CanonicalField.REFERENCE_INVOICE_ID)
    )


RECORD_DECODERS: Dict[RecordKind, Callable[[RawRecord, DecodeContext], Any]] = {
    RecordKind.ACCOUNTS: decode_account,
    RecordKind.CUSTOMERS: decode_customer,
    RecordKind.INVOICES: decode_invoice,
    RecordKind.TRANSACTIONS: decode_transaction,
}


def decode_records(
    kind: RecordKind,
    rows: Iterable[Any]
) -> Tuple[Tuple[Any, ...], List[CoercionWarning]]:
    """
    Decode raw rows into typed records of one kind.

    Args:
        kind: Record kind to decode
        rows: Mappings of lower-case field name to raw value

    Returns:
        Tuple of (records, coercion warnings)

    Raises:
        NormalizationError: If a row is not a mapping
    """
    decoder = RECORD_DECODERS[RecordKind(kind)]
    records = []
    warnings: List[CoercionWarning] = []

    for row_number, row in enumerate(rows, start=1):
        if not isinstance(row, Mapping):
            raise NormalizationError(
                f"{kind.value} row {row_number} is not an object: {type(row).__name__}"
            )
        # JSON keys may arrive in any case; CSV headers are already lower-cased
        normalized_row = {str(key).strip().lower(): value for key, value in row.items()}
        ctx = DecodeContext(kind=kind, row_number=row_number)
        records.append(decoder(normalized_row, ctx))
        warnings.extend(ctx.warnings)

    if warnings:
        logger.warning(
            f"[MAPPING] {len(warnings)} coercion warning(s) while decoding {len(records)} {kind.value} rows"
        )

    return tuple(records), warnings

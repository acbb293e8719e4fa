"""
Normalization logic for uploaded payloads.
Converts raw CSV/JSON data into typed, canonical record sets.
"""
from typing import Any, Iterable, List, Optional, Tuple, Union
import logging

from .canonical_fields import RecordKind
from .io import decode_payload, detect_format, get_loader
from .mappings import decode_records
from .schemas import CoercionWarning, NormalizationError, PartialDataset

logger = logging.getLogger(__name__)


def normalize(raw_payload: Union[bytes, str], source_format: Optional[str] = None,
              filename: Optional[str] = None) -> PartialDataset:
    """
    Normalize one payload into a partial dataset.

    Input: CSV text (one record kind, detected from headers) or a JSON
    document with any of the keys coa, customers, invoices, transactions.
    Output: PartialDataset holding typed records for each kind found.

    Args:
        raw_payload: File bytes or decoded text
        source_format: 'csv' or 'json'; detected from filename/content when None
        filename: Original file name, used for format detection

    Raises:
        NormalizationError: If the payload yields no recognized dataset
    """
    text = decode_payload(raw_payload)
    if source_format is None:
        source_format = detect_format(filename, text)

    dataset = get_loader(source_format).load(text)

    if dataset.warnings:
        for warning in dataset.warnings:
            logger.warning(
                f"[NORMALIZE] {warning.record_kind} row {warning.row_number} "
                f"field '{warning.field}': {warning.message} (raw={warning.raw_value!r})"
            )

    logger.info(
        f"[NORMALIZE] {filename or source_format}: "
        f"{', '.join(f'{k.value}={len(dataset.records[k])}' for k in dataset.kinds())}"
    )
    return dataset


def normalize_records(kind: Union[RecordKind, str],
                      rows: Iterable[Any]) -> Tuple[Tuple[Any, ...], List[CoercionWarning]]:
    """
    Normalize already-structured rows (e.g. a JSON array from the API) for one kind.

    Raises:
        NormalizationError: If the kind is unknown or rows are not objects
    """
    try:
        kind = RecordKind(kind)
    except ValueError as e:
        raise NormalizationError(f"Unknown record kind: {kind}") from e

    if isinstance(rows, (str, bytes)) or not isinstance(rows, Iterable):
        raise NormalizationError(f"{kind.value} records must be an array")

    return decode_records(kind, rows)

"""
Data source abstraction and CSV/JSON payload loading.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple, Union
from pathlib import PurePath
import json
import logging
import re

from config import DataSourceConfig, config
from .canonical_fields import RecordKind
from .mappings import decode_records
from .schemas import NormalizationError, PartialDataset

logger = logging.getLogger(__name__)

FORMAT_CSV = "csv"
FORMAT_JSON = "json"

_LINE_SPLIT = re.compile(r'\r?\n')


def decode_payload(raw_payload: Union[bytes, str]) -> str:
    """Decode uploaded bytes to text; text passes through."""
    if isinstance(raw_payload, bytes):
        return raw_payload.decode(config.ingestion.text_encoding, errors='replace')
    return raw_payload


def detect_format(filename: Optional[str], text: str = "") -> str:
    """
    Detect the payload format.

    Uses the file extension first, then falls back to sniffing the content:
    a payload whose first non-blank character is '{' is JSON.
    """
    if filename:
        suffix = PurePath(filename).suffix.lower()
        if suffix == ".json":
            return FORMAT_JSON
        if suffix == ".csv":
            return FORMAT_CSV
    return FORMAT_JSON if text.lstrip().startswith("{") else FORMAT_CSV


def _unquote(value: str) -> str:
    """Strip enclosing double quotes and surrounding whitespace."""
    value = value.strip()
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        value = value[1:-1]
    return value.strip()


def parse_csv_line(line: str) -> List[str]:
    """
    Split one CSV line on commas outside quoted spans.

    A double quote toggles quote mode and is dropped from the value;
    there is no escaped-quote handling. Values are trimmed.

    Example:
        >>> parse_csv_line('C-1,"Acme, Inc", ap@acme.com')
        ['C-1', 'Acme, Inc', 'ap@acme.com']
    """
    values = []
    in_quote = False
    current = []

    for char in line:
        if char == '"':
            in_quote = not in_quote
        elif char == ',' and not in_quote:
            values.append(''.join(current).strip())
            current = []
        else:
            current.append(char)

    values.append(''.join(current).strip())
    return values


def parse_csv_text(text: str) -> Tuple[List[str], List[Dict[str, Optional[str]]]]:
    """
    Parse CSV text into lower-cased headers and row mappings.

    Blank lines are ignored. Fewer than two non-blank lines yields no headers
    and no rows. Rows shorter than the header get None for the missing values.

    Returns:
        Tuple of (headers, rows)
    """
    lines = [line for line in _LINE_SPLIT.split(text) if line.strip() != '']
    if len(lines) < 2:
        return [], []

    headers = [_unquote(h).lower() for h in parse_csv_line(lines[0])]

    rows = []
    for line in lines[1:]:
        values = parse_csv_line(line)
        row = {}
        for i, header in enumerate(headers):
            row[header] = _unquote(values[i]) if i < len(values) else None
        rows.append(row)

    return headers, rows


class DataSourceLoader(ABC):
    """Abstract base for payload loaders."""

    source_format: str = ""

    @abstractmethod
    def load(self, text: str) -> PartialDataset:
        """Load records from payload text and return a partial dataset."""
        pass


class CsvSourceLoader(DataSourceLoader):
    """Load one record kind from CSV text, detected from its headers."""

    source_format = FORMAT_CSV

    def detect_source(self, headers: List[str]) -> Optional[DataSourceConfig]:
        """
        Detect which record source matches a header row.

        Sources are tried in configured order; the first whose detection
        columns are all present wins.
        """
        for source in config.get_sources():
            is_valid, _ = source.column_mapping.validate(headers)
            if is_valid:
                return source
        return None

    def load(self, text: str) -> PartialDataset:
        headers, rows = parse_csv_text(text)
        source = self.detect_source(headers)

        if source is None:
            logger.warning(f"[IO] Unrecognized CSV headers: {headers}")
            raise NormalizationError(
                f"Unrecognized CSV headers: {headers}. "
                f"Expected one of: {[s.header_contract for s in config.get_sources()]}"
            )

        kind = RecordKind(source.name)
        records, warnings = decode_records(kind, rows)
        logger.info(f"[IO] Detected {source.label} CSV with {len(records)} rows")

        return PartialDataset(
            source_format=self.source_format,
            records={kind: records},
            warnings=warnings
        )


class JsonSourceLoader(DataSourceLoader):
    """Load any of the record kinds from a JSON document keyed by kind."""

    source_format = FORMAT_JSON

    def load(self, text: str) -> PartialDataset:
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise NormalizationError(f"Malformed JSON: {e}") from e

        if not isinstance(document, dict):
            raise NormalizationError(
                f"JSON document must be an object, got {type(document).__name__}"
            )

        dataset = PartialDataset(source_format=self.source_format)
        for source in config.get_sources():
            # A null value counts as an absent key
            if document.get(source.json_key) is None:
                continue
            rows: Any = document[source.json_key]
            if not isinstance(rows, list):
                raise NormalizationError(
                    f"JSON key '{source.json_key}' must be an array, got {type(rows).__name__}"
                )
            kind = RecordKind(source.name)
            records, warnings = decode_records(kind, rows)
            dataset.records[kind] = records
            dataset.warnings.extend(warnings)
            logger.info(f"[IO] Loaded {len(records)} {source.label} records from JSON")

        if dataset.is_empty():
            raise NormalizationError(
                f"JSON document has none of the keys: {[s.json_key for s in config.get_sources()]}"
            )

        return dataset


LOADERS: Dict[str, DataSourceLoader] = {
    FORMAT_CSV: CsvSourceLoader(),
    FORMAT_JSON: JsonSourceLoader(),
}


def get_loader(source_format: str) -> DataSourceLoader:
    """Get the loader for a payload format."""
    loader = LOADERS.get(str(source_format).lower())
    if loader is None:
        raise NormalizationError(f"Unsupported source format: {source_format}")
    return loader

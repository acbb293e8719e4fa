"""
Batch ingestion of uploaded files into the audit state store.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Tuple, Union
import logging

from config import config
from .normalize import normalize
from .schemas import CoercionWarning, NormalizationError
from .state import AuditStateStore

logger = logging.getLogger(__name__)


@dataclass
class IngestionResult:
    """Outcome of one ingestion batch."""
    loaded: List[str] = field(default_factory=list)              # e.g. "COA (CSV)"
    rejected: List[Dict[str, str]] = field(default_factory=list)  # {"filename", "reason"}
    warnings: List[CoercionWarning] = field(default_factory=list)

    @property
    def recognized(self) -> bool:
        """False when no file in the batch yielded a recognized dataset."""
        return bool(self.loaded)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recognized": self.recognized,
            "loaded": list(self.loaded),
            "rejected": list(self.rejected),
            "warnings": [w.to_dict() for w in self.warnings],
        }


def ingest_files(store: AuditStateStore,
                 files: Iterable[Tuple[str, Union[bytes, str]]]) -> IngestionResult:
    """
    Normalize files in order and apply each to the store before the next is parsed.

    Each detected record set replaces the matching primary set (last writer
    wins when a batch holds the same kind twice). A file that fails to
    normalize is rejected without touching the store; the batch continues.

    Args:
        store: Session state store
        files: (filename, payload) pairs in upload order

    Returns:
        IngestionResult
    """
    result = IngestionResult()

    for filename, payload in files:
        try:
            partial = normalize(payload, filename=filename)
        except NormalizationError as e:
            logger.warning(f"[INGEST] Rejected '{filename}': {e}")
            result.rejected.append({"filename": filename, "reason": str(e)})
            continue

        store.apply(partial)

        format_label = partial.source_format.upper()
        for kind in partial.kinds():
            source = config.get_source(kind.value)
            result.loaded.append(f"{source.label} ({format_label})")
        result.warnings.extend(partial.warnings)

    if result.recognized:
        logger.info(f"[INGEST] Loaded: {', '.join(result.loaded)}")
    else:
        logger.warning("[INGEST] No recognized data found in batch")

    return result

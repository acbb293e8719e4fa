"""
Per-session audit state held in the Flask cache.

Each request loads the session's AuditStateStore, works on it, and writes
it back whole, so readers never see a half-replaced dataset.
"""
import logging
from flask import g

from app import cache
from audit_engine.state import AuditStateStore
from config import config

logger = logging.getLogger(__name__)


def _cache_key(session_id: str) -> str:
    return f"{config.session.state_cache_prefix}:{session_id}"


def load_store() -> AuditStateStore:
    """Get this session's store, seeding it from the sample dataset on first use."""
    session_id = g.session_id
    store = cache.get(_cache_key(session_id))
    if store is None:
        logger.info(f"[SESSION] Seeding audit state from sample data (session_id={session_id})")
        store = AuditStateStore.from_samples()
    return store


def save_store(store: AuditStateStore) -> None:
    """Write the session's store back to the cache."""
    cache.set(
        _cache_key(g.session_id),
        store,
        timeout=config.session.get_state_timeout_seconds()
    )


def discard_store(session_id: str) -> None:
    """Drop a session's store (session end or expiry)."""
    cache.delete(_cache_key(session_id))

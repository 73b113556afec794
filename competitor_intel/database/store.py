"""SQLAlchemy-backed cache store."""

from contextlib import contextmanager
from datetime import datetime
from typing import Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from competitor_intel.core.cache import CacheStore
from competitor_intel.core.errors import CacheUnavailable
from competitor_intel.core.models import CacheEntry, CompositeKey, SubjectType
from competitor_intel.database.models import MetricCache
from competitor_intel.database.session import get_db_session, get_session_factory
from competitor_intel.utils.helpers import ensure_utc, to_naive_utc


class SQLCacheStore(CacheStore):
    """Persists cache entries in the ``metric_cache`` table."""

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.session_factory = session_factory or get_session_factory()

    @contextmanager
    def _guard(self, action: str):
        try:
            yield
        except SQLAlchemyError as e:
            raise CacheUnavailable(f"Cache {action} failed: {e}") from e

    def _query(self, session, key: CompositeKey):
        return session.query(MetricCache).filter_by(
            subject_type=key.subject_type.value,
            owner_id=key.owner_id,
            domain=key.domain,
            metric_kind=key.metric_kind,
        )

    def load(self, key: CompositeKey) -> Optional[CacheEntry]:
        with self._guard("read"), get_db_session(self.session_factory) as session:
            row = self._query(session, key).first()
            return self._to_entry(row) if row else None

    def save(self, entry: CacheEntry) -> None:
        with self._guard("write"):
            try:
                self._upsert(entry)
            except IntegrityError:
                # A concurrent writer inserted the same key between our read and insert
                logger.debug("Cache insert raced for {}, updating instead", entry.key.as_tuple())
                self._upsert(entry)

    def _upsert(self, entry: CacheEntry) -> None:
        with get_db_session(self.session_factory) as session:
            row = self._query(session, entry.key).first()
            if row is None:
                row = MetricCache(
                    subject_type=entry.key.subject_type.value,
                    owner_id=entry.key.owner_id,
                    domain=entry.key.domain,
                    metric_kind=entry.key.metric_kind,
                )
                session.add(row)
            row.payload = entry.payload
            row.source = entry.source
            row.created_at = to_naive_utc(entry.created_at)
            row.expires_at = to_naive_utc(entry.expires_at)

    def delete(self, key: CompositeKey) -> bool:
        with self._guard("delete"), get_db_session(self.session_factory) as session:
            return self._query(session, key).delete(synchronize_session=False) > 0

    def purge_expired(self, now: datetime) -> int:
        with self._guard("purge"), get_db_session(self.session_factory) as session:
            return (
                session.query(MetricCache)
                .filter(MetricCache.expires_at <= to_naive_utc(now))
                .delete(synchronize_session=False)
            )

    @staticmethod
    def _to_entry(row: MetricCache) -> CacheEntry:
        return CacheEntry(
            key=CompositeKey(
                subject_type=SubjectType(row.subject_type),
                owner_id=row.owner_id,
                domain=row.domain,
                metric_kind=row.metric_kind,
            ),
            payload=row.payload,
            created_at=ensure_utc(row.created_at),
            expires_at=ensure_utc(row.expires_at),
            source=row.source or "",
        )

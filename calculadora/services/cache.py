"""
Time-boxed cache of index series, keyed by index type.

- Fresh entries (younger than the TTL, 24h by default) are served filtered to
  the requested window without touching the data source.
- Fetched records are merged into the entry: only periods not yet cached are
  added, and the entry is re-sorted and re-stamped.
- When the source fails, whatever is cached for the type (even expired) is
  served; with nothing cached the error propagates.

Merges are read-modify-write under a per-type ``threading.Lock``. Fetches run
outside the lock, so concurrent callers may both fetch, but neither
overwrites the other's additions.

Usage:

    cache = IndexCache(BCBClient())
    cache.load()                      # optional snapshot from CACHE_PATH
    points = await cache.get_series(IndexType.IPCA, inicio, fim)
    cache.flush()                     # on shutdown
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field, ValidationError

from calculadora.config import Settings
from calculadora.core.datas import add_years
from calculadora.core.series import filter_window, merge_series
from calculadora.errors import DataSourceUnavailable
from calculadora.schemas.indices import CacheEntryInfo, IndexPoint, IndexType

logger = logging.getLogger(__name__)

SeriesFetcher = Callable[[IndexType, date, date], Awaitable[List[IndexPoint]]]

PRELOAD_TYPES = (IndexType.IPCA, IndexType.INPC, IndexType.IGPM, IndexType.SELIC)


@dataclass
class CachedSeries:
    points: List[IndexPoint]
    updated_at: float


class _SnapshotEntry(BaseModel):
    points: List[IndexPoint] = Field(default_factory=list)
    updated_at: float


class _Snapshot(BaseModel):
    entries: Dict[IndexType, _SnapshotEntry] = Field(default_factory=dict)


class IndexCache:
    """Process-wide index cache in front of a series fetch function."""

    def __init__(
        self,
        fetcher: SeriesFetcher,
        ttl_hours: float = 24.0,
        path: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._fetcher = fetcher
        self._ttl_seconds = ttl_hours * 3600
        self._path = Path(path) if path else None
        self._clock = clock
        self._entries: Dict[IndexType, CachedSeries] = {}
        self._locks: Dict[IndexType, Lock] = {}
        self._locks_guard = Lock()
        self._stats = {"hits": 0, "misses": 0, "stale": 0}

    @classmethod
    def from_settings(cls, fetcher: SeriesFetcher, settings: Settings) -> "IndexCache":
        return cls(fetcher, ttl_hours=settings.cache_ttl_hours, path=settings.cache_path)

    def _lock_for(self, index_type: IndexType) -> Lock:
        with self._locks_guard:
            lock = self._locks.get(index_type)
            if lock is None:
                lock = self._locks[index_type] = Lock()
            return lock

    def _snapshot_entry(self, index_type: IndexType) -> Optional[CachedSeries]:
        with self._lock_for(index_type):
            entry = self._entries.get(index_type)
            if entry is None:
                return None
            return CachedSeries(points=list(entry.points), updated_at=entry.updated_at)

    def _count(self, name: str) -> None:
        with self._locks_guard:
            self._stats[name] += 1

    def is_expired(self, entry: CachedSeries) -> bool:
        return self._clock() - entry.updated_at > self._ttl_seconds

    def store(self, index_type: IndexType, points: Iterable[IndexPoint]) -> int:
        """Merge ``points`` into the entry for ``index_type``; returns the entry size."""
        with self._lock_for(index_type):
            current = self._entries.get(index_type)
            merged = merge_series(current.points if current else [], points)
            self._entries[index_type] = CachedSeries(points=merged, updated_at=self._clock())
            return len(merged)

    async def get_series(
        self,
        index_type: IndexType,
        start: date,
        end: date,
        force_refresh: bool = False,
    ) -> List[IndexPoint]:
        """Index points of ``index_type`` within [start, end], cache first."""
        entry = self._snapshot_entry(index_type)

        if not force_refresh and entry is not None and not self.is_expired(entry):
            cached = filter_window(entry.points, start, end)
            if cached:
                self._count("hits")
                return cached

        self._count("misses")
        try:
            fetched = await self._fetcher(index_type, start, end)
        except DataSourceUnavailable as exc:
            stale = self._snapshot_entry(index_type)
            if stale is not None:
                self._count("stale")
                logger.warning(
                    f"[IndexCache] Usando cache expirado de {index_type.value} devido a erro na API: {exc}"
                )
                return filter_window(stale.points, start, end)
            raise

        size = self.store(index_type, fetched)
        logger.info(f"[IndexCache] {index_type.value} atualizado: {size} registros em cache")
        return filter_window(sorted(fetched, key=lambda p: p.period), start, end)

    async def __call__(self, index_type: IndexType, start: date, end: date) -> List[IndexPoint]:
        return await self.get_series(index_type, start, end)

    def clear(self) -> None:
        with self._locks_guard:
            count = len(self._entries)
            self._entries.clear()
        logger.info(f"[IndexCache] Cache limpo: {count} séries removidas")

    def info(self) -> List[CacheEntryInfo]:
        with self._locks_guard:
            items = list(self._entries.items())
        return [
            CacheEntryInfo(
                index_type=index_type,
                records=len(entry.points),
                updated_at=datetime.fromtimestamp(entry.updated_at, tz=timezone.utc).isoformat(),
            )
            for index_type, entry in items
        ]

    def get_stats(self) -> Dict[str, int]:
        with self._locks_guard:
            return dict(self._stats, series=len(self._entries))

    async def preload(
        self,
        types: Iterable[IndexType] = PRELOAD_TYPES,
        years: int = 5,
        today: Optional[date] = None,
    ) -> Dict[IndexType, bool]:
        """Force-refresh the last ``years`` years of each type; failures are logged, not raised."""
        end = today or date.today()
        start = add_years(end, -years)
        outcome: Dict[IndexType, bool] = {}
        for index_type in types:
            try:
                await self.get_series(index_type, start, end, force_refresh=True)
                outcome[index_type] = True
            except DataSourceUnavailable as exc:
                logger.error(f"[IndexCache] Erro ao pré-carregar {index_type.value}: {exc}")
                outcome[index_type] = False
        return outcome

    def load(self) -> int:
        """Read the JSON snapshot at ``path`` if there is one; returns series loaded."""
        if self._path is None or not self._path.exists():
            return 0
        try:
            snapshot = _Snapshot.model_validate_json(self._path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            logger.error(f"[IndexCache] Erro ao carregar cache de {self._path}: {exc}")
            return 0
        with self._locks_guard:
            for index_type, item in snapshot.entries.items():
                self._entries[index_type] = CachedSeries(points=item.points, updated_at=item.updated_at)
        logger.info(f"[IndexCache] {len(snapshot.entries)} séries carregadas de {self._path}")
        return len(snapshot.entries)

    def flush(self) -> bool:
        """Write the JSON snapshot to ``path``; no-op without a path."""
        if self._path is None:
            return False
        with self._locks_guard:
            snapshot = _Snapshot(
                entries={
                    index_type: _SnapshotEntry(points=entry.points, updated_at=entry.updated_at)
                    for index_type, entry in self._entries.items()
                }
            )
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(snapshot.model_dump_json(), encoding="utf-8")
        except OSError as exc:
            logger.error(f"[IndexCache] Erro ao salvar cache em {self._path}: {exc}")
            return False
        return True

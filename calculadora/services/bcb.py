"""
Client for the Banco Central do Brasil time-series API (SGS).

Fetches monthly index series (IPCA, INPC, IGP-M, Selic, TR) for a date range.
The SGS limits each query to a 10-year window, so longer ranges are split
into consecutive requests and concatenated.

Usage:

    async with BCBClient() as client:
        points = await client.fetch_series(IndexType.IPCA, inicio, fim)

Without ``async with`` every call opens and closes its own HTTP client.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional

import httpx

from calculadora.config import Settings, get_settings
from calculadora.core.datas import format_date_br, parse_date_br, split_windows
from calculadora.errors import DataSourceUnavailable
from calculadora.schemas.indices import IndexPoint, IndexType

logger = logging.getLogger(__name__)

# SGS caps the "ultimos" endpoint at 20 records.
MAX_LATEST = 20


def parse_points(payload: Any) -> List[IndexPoint]:
    """Convert SGS records ``{"data": "DD/MM/YYYY", "valor": "0.21"}``."""
    if not isinstance(payload, list):
        raise DataSourceUnavailable(f"Resposta inesperada do BCB: {type(payload).__name__}")
    points: List[IndexPoint] = []
    for record in payload:
        try:
            points.append(
                IndexPoint(period=parse_date_br(record["data"]), value=float(record["valor"]))
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise DataSourceUnavailable(f"Registro inválido do BCB: {record!r}") from exc
    return points


class BCBClient:
    """Async SGS client. Implements the index fetch contract used by the cache."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.bcb_timeout, connect=10.0),
            transport=self._transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "BCBClient":
        if self._client is None:
            self._client = self._new_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _series_url(self, index_type: IndexType) -> str:
        return f"{self.settings.bcb_api_base}.{index_type.sgs_code}/dados"

    async def _get_json(self, url: str, params: Optional[Dict[str, str]] = None) -> Any:
        try:
            if self._client is not None:
                response = await self._client.get(url, params=params)
            else:
                async with self._new_client() as client:
                    response = await client.get(url, params=params)
        except httpx.HTTPError as exc:
            logger.warning(f"[BCB] Falha de conexão em {url}: {exc}")
            raise DataSourceUnavailable(f"Erro de conexão com o BCB: {exc}") from exc

        # SGS answers 404 when a window has no observations.
        if response.status_code == 404:
            return []
        if response.status_code >= 400:
            logger.warning(f"[BCB] HTTP {response.status_code} em {url}")
            raise DataSourceUnavailable(
                f"Erro ao buscar série no BCB: HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise DataSourceUnavailable("Resposta do BCB não é JSON") from exc

    async def fetch_series(self, index_type: IndexType, start: date, end: date) -> List[IndexPoint]:
        """Monthly points of ``index_type`` between ``start`` and ``end`` (inclusive)."""
        windows = split_windows(start, end, self.settings.bcb_max_window_years)
        if len(windows) > 1:
            logger.info(f"[BCB] {index_type.value}: período dividido em {len(windows)} consultas")

        points: List[IndexPoint] = []
        seen = set()
        for window_start, window_end in windows:
            payload = await self._get_json(
                self._series_url(index_type),
                params={
                    "formato": "json",
                    "dataInicial": format_date_br(window_start),
                    "dataFinal": format_date_br(window_end),
                },
            )
            for point in parse_points(payload):
                if point.period not in seen:
                    seen.add(point.period)
                    points.append(point)

        logger.info(
            f"[BCB] {index_type.value} {format_date_br(start)}-{format_date_br(end)}: "
            f"{len(points)} registros"
        )
        return sorted(points, key=lambda p: p.period)

    async def fetch_latest(self, index_type: IndexType, count: int = 12) -> List[IndexPoint]:
        """Last ``count`` points of a series (at most 20)."""
        count = max(1, min(count, MAX_LATEST))
        payload = await self._get_json(
            f"{self._series_url(index_type)}/ultimos/{count}", params={"formato": "json"}
        )
        return parse_points(payload)

    async def check_connection(self) -> bool:
        """True when the SGS answers; never raises."""
        try:
            await self.fetch_latest(IndexType.IPCA, 1)
        except DataSourceUnavailable:
            return False
        return True

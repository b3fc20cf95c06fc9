"""Data contracts for economic index series."""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Annotated, Dict, List

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer

from calculadora.core.datas import format_date_br, parse_date_br


def _coerce_date(value: object) -> object:
    if isinstance(value, str):
        return parse_date_br(value)
    return value


# Dates travel as DD/MM/YYYY strings and are compared as ``date`` objects.
DateBR = Annotated[
    date,
    BeforeValidator(_coerce_date),
    PlainSerializer(format_date_br, return_type=str),
]


class IndexType(str, Enum):
    IPCA = "IPCA"
    INPC = "INPC"
    IGPM = "IGP-M"
    SELIC = "SELIC"
    TR = "TR"

    @property
    def sgs_code(self) -> int:
        return SGS_SERIES_CODES[self]

    @property
    def display_name(self) -> str:
        return INDEX_NAMES[self]


DEFAULT_INDEX = IndexType.IPCA

# SGS series codes. SELIC uses 4390 (monthly accumulated rate) so every
# series in this table is monthly.
SGS_SERIES_CODES: Dict[IndexType, int] = {
    IndexType.IPCA: 433,
    IndexType.INPC: 188,
    IndexType.IGPM: 189,
    IndexType.SELIC: 4390,
    IndexType.TR: 226,
}

INDEX_NAMES: Dict[IndexType, str] = {
    IndexType.IPCA: "IPCA (Índice de Preços ao Consumidor Amplo)",
    IndexType.INPC: "INPC (Índice Nacional de Preços ao Consumidor)",
    IndexType.IGPM: "IGP-M (Índice Geral de Preços do Mercado)",
    IndexType.SELIC: "Taxa Selic",
    IndexType.TR: "TR (Taxa Referencial)",
}


class IndexPoint(BaseModel):
    """One monthly observation; ``value`` is a percentage (0.5 means 0.5%)."""

    model_config = ConfigDict(frozen=True)

    period: DateBR
    value: float


IndexSeries = List[IndexPoint]


class CacheEntryInfo(BaseModel):
    index_type: IndexType
    records: int = Field(..., ge=0)
    updated_at: str


class SeriesResponse(BaseModel):
    index_type: IndexType
    name: str
    points: IndexSeries

"""Pydantic schemas for health and data-source status endpoints."""

from typing import Dict, List

from pydantic import BaseModel

from calculadora.schemas.indices import CacheEntryInfo


class PingResponse(BaseModel):
    message: str


class SourceStatusResponse(BaseModel):
    online: bool


class CacheInfoResponse(BaseModel):
    entries: List[CacheEntryInfo]
    stats: Dict[str, int]


class PreloadResponse(BaseModel):
    loaded: Dict[str, bool]

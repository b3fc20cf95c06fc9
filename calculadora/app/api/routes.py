"""HTTP routes for the Flask API."""

from http import HTTPStatus
from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from calculadora.core.agregacao import calculate_batch, compute_totals
from calculadora.core.datas import parse_date_br
from calculadora.domain.extracao import normalize_extraction, parse_extraction_response
from calculadora.errors import ClaimValidationError, DataSourceUnavailable, ExtractionFormatError
from calculadora.schemas.calculo import BatchResponse, CalculationRequest
from calculadora.schemas.indices import IndexType, SeriesResponse
from calculadora.schemas.status import (
    CacheInfoResponse,
    PingResponse,
    PreloadResponse,
    SourceStatusResponse,
)
from calculadora.services.bcb import BCBClient
from calculadora.services.cache import IndexCache

api_bp = Blueprint("api", __name__)


def _cache() -> IndexCache:
    return current_app.extensions["index_cache"]


def _client() -> BCBClient:
    return current_app.extensions["bcb_client"]


@api_bp.errorhandler(ValidationError)
def _handle_validation_error(exc: ValidationError):
    """Convert Pydantic validation errors into JSON responses."""
    return jsonify({"detail": exc.errors(include_url=False, include_context=False)}), HTTPStatus.UNPROCESSABLE_ENTITY


@api_bp.errorhandler(ClaimValidationError)
def _handle_claim_error(exc: ClaimValidationError):
    return jsonify({"detail": exc.errors}), HTTPStatus.BAD_REQUEST


@api_bp.errorhandler(ExtractionFormatError)
def _handle_extraction_error(exc: ExtractionFormatError):
    return jsonify({"detail": str(exc)}), HTTPStatus.BAD_REQUEST


@api_bp.errorhandler(DataSourceUnavailable)
def _handle_source_error(exc: DataSourceUnavailable):
    return jsonify({"detail": str(exc)}), HTTPStatus.BAD_GATEWAY


@api_bp.get("/ping")
def ping() -> Any:
    """Health-check endpoint."""
    return jsonify(PingResponse(message="pong").model_dump())


@api_bp.get("/bcb/status")
async def bcb_status() -> Any:
    """Whether the Banco Central API answers; the UI falls back to cache when offline."""
    online = await _client().check_connection()
    return jsonify(SourceStatusResponse(online=online).model_dump())


@api_bp.post("/calculo")
async def calculo() -> Any:
    """Correction and interest for every claimant with a positive amount."""
    raw_payload: Dict[str, Any] = request.get_json(force=True, silent=False)
    payload = CalculationRequest.model_validate(raw_payload)
    settings = current_app.config["CALC_SETTINGS"]

    results = await calculate_batch(
        payload.claimants,
        payload.calculation_date,
        _cache(),
        case_dates=payload.case_dates,
        concurrency=payload.concurrency or settings.calc_concurrency,
    )
    response = BatchResponse(
        results=results,
        totals=compute_totals(results),
        warnings=[warning for result in results for warning in result.warnings],
    )
    return jsonify(response.model_dump(mode="json"))


@api_bp.get("/indices/<tipo>")
async def indices(tipo: str) -> Any:
    """Cached index series for a period (``?inicio=DD/MM/AAAA&fim=DD/MM/AAAA``)."""
    try:
        index_type = IndexType(tipo.upper())
        start = parse_date_br(request.args.get("inicio", ""))
        end = parse_date_br(request.args.get("fim", ""))
    except ValueError as exc:
        return jsonify({"detail": str(exc)}), HTTPStatus.BAD_REQUEST

    force = request.args.get("forcar", "").lower() in {"1", "true", "sim"}
    points = await _cache().get_series(index_type, start, end, force_refresh=force)
    response = SeriesResponse(index_type=index_type, name=index_type.display_name, points=points)
    return jsonify(response.model_dump(mode="json"))


@api_bp.get("/cache")
def cache_info() -> Any:
    cache = _cache()
    response = CacheInfoResponse(entries=cache.info(), stats=cache.get_stats())
    return jsonify(response.model_dump(mode="json"))


@api_bp.delete("/cache")
def cache_clear() -> Any:
    _cache().clear()
    return "", HTTPStatus.NO_CONTENT


@api_bp.post("/cache/preload")
async def cache_preload() -> Any:
    outcome = await _cache().preload()
    response = PreloadResponse(loaded={index_type.value: ok for index_type, ok in outcome.items()})
    return jsonify(response.model_dump())


@api_bp.post("/extracao/normalizar")
def extracao_normalizar() -> Any:
    """
    Normalize an extraction record.

    Accepts the record itself or ``{"text": "<raw model output>"}``.
    """
    raw_payload = request.get_json(force=True, silent=False)
    if isinstance(raw_payload, dict) and isinstance(raw_payload.get("text"), str):
        record = parse_extraction_response(raw_payload["text"])
    elif isinstance(raw_payload, dict):
        record = raw_payload
    else:
        raise ExtractionFormatError("Não foi possível extrair dados do documento")
    return jsonify(normalize_extraction(record).model_dump(mode="json"))

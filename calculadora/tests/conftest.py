from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional, Sequence

import pytest
from flask.testing import FlaskClient

from calculadora.app import create_app
from calculadora.config import Settings
from calculadora.core.datas import add_months
from calculadora.schemas.indices import IndexPoint, IndexType
from calculadora.services.cache import IndexCache


def monthly_series(first: date, values: Sequence[float]) -> List[IndexPoint]:
    """Consecutive monthly points starting at ``first`` (day 1 of each month)."""
    start = first.replace(day=1)
    return [IndexPoint(period=add_months(start, offset), value=value) for offset, value in enumerate(values)]


class FakeSource:
    """In-memory stand-in for the index fetch function; records every call."""

    def __init__(self, series: Optional[Dict[IndexType, List[IndexPoint]]] = None):
        self.series: Dict[IndexType, List[IndexPoint]] = dict(series or {})
        self.calls: List[tuple] = []
        self.fail_with: Optional[Exception] = None

    async def __call__(self, index_type: IndexType, start: date, end: date) -> List[IndexPoint]:
        self.calls.append((index_type, start, end))
        if self.fail_with is not None:
            raise self.fail_with
        return [p for p in self.series.get(index_type, []) if start <= p.period <= end]


@pytest.fixture()
def series_factory():
    return monthly_series


@pytest.fixture()
def fake_source() -> FakeSource:
    """Two years of flat series: IPCA 0.5%, INPC 0.4%, SELIC 1.0% a month from 01/2020."""
    first = date(2020, 1, 1)
    return FakeSource(
        {
            IndexType.IPCA: monthly_series(first, [0.5] * 24),
            IndexType.INPC: monthly_series(first, [0.4] * 24),
            IndexType.SELIC: monthly_series(first, [1.0] * 24),
        }
    )


@pytest.fixture()
def client(fake_source: FakeSource) -> FlaskClient:
    app = create_app(settings=Settings(), cache=IndexCache(fake_source))
    app.config["TESTING"] = True
    with app.test_client() as test_client:
        yield test_client

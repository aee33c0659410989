from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Request

from fxrates.core.security import Operation
from fxrates.models.rates import (
    ExchangeRate,
    ExchangeRateIn,
    ExchangeRateList,
    ExchangeRateUpdateIn,
    PaginationMeta,
)
from fxrates.services.pagination import paginate
from fxrates.services.rates.store import RateStore
from .deps import get_store, require

router = APIRouter(prefix="/exchange_rates", tags=["exchange_rates"])


@router.post(
    "",
    response_model=ExchangeRate,
    status_code=201,
    summary="Create an exchange rate",
    dependencies=[Depends(require(Operation.CREATE))],
)
async def create_rate(payload: ExchangeRateIn, store: RateStore = Depends(get_store)):
    return store.create(
        payload.from_currency, payload.to_currency, payload.rate, source=payload.source
    )


@router.get(
    "",
    response_model=ExchangeRateList,
    summary="List exchange rates with optional filters",
    dependencies=[Depends(require(Operation.READ))],
)
async def list_rates(
    request: Request,
    from_currency: Optional[str] = Query(None, description="Filter by source currency"),
    to_currency: Optional[str] = Query(None, description="Filter by target currency"),
    page: int = Query(1, description="1-based page number"),
    limit: Optional[int] = Query(None, description="Page size"),
    store: RateStore = Depends(get_store),
):
    settings = request.app.state.settings
    if limit is None:
        limit = settings.default_page_limit
    rows = store.list(from_currency=from_currency, to_currency=to_currency)
    result = paginate(rows, page, limit, max_limit=settings.max_page_limit)
    return ExchangeRateList(
        data=result.data,
        pagination=PaginationMeta(
            page=result.meta.page,
            limit=result.meta.limit,
            total=result.meta.total,
            total_pages=result.meta.total_pages,
        ),
    )


@router.get(
    "/{from_currency}/{to_currency}",
    response_model=ExchangeRate,
    summary="Get the rate for one currency pair",
    dependencies=[Depends(require(Operation.READ))],
)
async def get_rate(
    from_currency: str = Path(..., description="Source currency code"),
    to_currency: str = Path(..., description="Target currency code"),
    store: RateStore = Depends(get_store),
):
    return store.find(from_currency, to_currency)


@router.put(
    "/{from_currency}/{to_currency}",
    response_model=ExchangeRate,
    summary="Update the rate for one currency pair",
    dependencies=[Depends(require(Operation.UPDATE))],
)
async def update_rate(
    payload: ExchangeRateUpdateIn,
    from_currency: str = Path(..., description="Source currency code"),
    to_currency: str = Path(..., description="Target currency code"),
    store: RateStore = Depends(get_store),
):
    return store.update(from_currency, to_currency, payload.rate, source=payload.source)


@router.delete(
    "/{from_currency}/{to_currency}",
    summary="Delete the rate for one currency pair",
    dependencies=[Depends(require(Operation.DELETE))],
)
async def delete_rate(
    from_currency: str = Path(..., description="Source currency code"),
    to_currency: str = Path(..., description="Target currency code"),
    store: RateStore = Depends(get_store),
):
    store.delete(from_currency, to_currency)
    return {
        "status": "deleted",
        "from_currency": from_currency.strip().upper(),
        "to_currency": to_currency.strip().upper(),
    }

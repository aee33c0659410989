from fastapi import APIRouter, Depends, Query

from fxrates.core.security import Operation
from fxrates.models.rates import ConversionOut
from fxrates.services.rates.conversion import ConversionResolver
from .deps import get_resolver, require

router = APIRouter(tags=["convert"])


@router.get(
    "/convert",
    response_model=ConversionOut,
    summary="Convert an amount between two currencies",
    dependencies=[Depends(require(Operation.CONVERT))],
)
async def convert(
    from_currency: str = Query(..., alias="from", description="Source currency code"),
    to_currency: str = Query(..., alias="to", description="Target currency code"),
    amount: float = Query(..., description="Amount in the source currency (> 0)"),
    resolver: ConversionResolver = Depends(get_resolver),
):
    result = resolver.convert(from_currency, to_currency, amount)
    return ConversionOut(
        from_currency=result.from_currency,
        from_amount=result.from_amount,
        to_currency=result.to_currency,
        to_amount=result.to_amount,
        rate=result.rate,
        path=list(result.path),
        conversion_path=result.conversion_path,
    )

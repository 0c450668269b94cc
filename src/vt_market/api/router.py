"""vt_market REST endpoints.

GET /market            — current quote set (short cache dropped first)
GET /market/{symbol}   — one quote, by coin id or ticker
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.vt_common.response import ApiResponse, success_response
from src.vt_market.application.feed import MarketFeed
from src.vt_market.application.schemas import MarketResponse, QuoteItem

router = APIRouter(prefix="/market", tags=["market"])


def get_market_feed(request: Request) -> MarketFeed:
    return request.app.state.market_feed


@router.get("")
async def get_market(
    request: Request,
    feed: Annotated[MarketFeed, Depends(get_market_feed)],
) -> ApiResponse:
    # A view is about to render prices; make sure they come from the store.
    feed.invalidate()
    quotes = await feed.read()
    return success_response(MarketResponse.build(quotes, feed.status()).model_dump(), request)


@router.get("/{symbol}")
async def get_quote(
    symbol: str,
    request: Request,
    feed: Annotated[MarketFeed, Depends(get_market_feed)],
) -> ApiResponse:
    quote = await feed.get_quote(symbol)
    return success_response(QuoteItem.from_quote(quote).model_dump(), request)

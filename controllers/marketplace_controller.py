"""Marketplace listing bookkeeping. Nothing is sent to external marketplaces."""

from typing import Any, Dict, List, Optional

from fastapi import Request

from dal.artwork_dal import ArtworkDAL
from models.analysis_result import MAX_PRICE
from models.errors import InvalidInputError, NotFoundError


async def create_listing(
    request: Request,
    owner_id: str,
    artwork_id: int,
    platform: str,
    price: Optional[int] = None,
) -> Dict[str, Any]:
    """Mark an owned artwork as listed on `platform`.

    Args:
        price: Listing price in cents; defaults to the artwork's suggested price.
    """
    platform = (platform or "").strip()
    if not platform:
        raise InvalidInputError("A marketplace platform is required.")
    if price is not None and price < 0:
        raise InvalidInputError("Listing price must not be negative.")
    if price is not None and price > MAX_PRICE * 100:
        raise InvalidInputError("Listing price is too large.")

    dal = ArtworkDAL(request.app.state.db_initializer)
    record = await dal.get(artwork_id, owner_id)
    if record is None:
        raise NotFoundError(f"Artwork {artwork_id} not found")

    listing_price = price if price is not None else (record.suggested_price or 0)
    await dal.set_listing(artwork_id, owner_id, platform, listing_price)
    updated = await dal.get(artwork_id, owner_id)
    return updated.to_api()


async def list_listings(request: Request, owner_id: str) -> List[Dict[str, Any]]:
    records = await ArtworkDAL(request.app.state.db_initializer).list_listings(owner_id)
    return [r.to_api() for r in records]


async def withdraw_listing(request: Request, owner_id: str, artwork_id: int) -> Dict[str, Any]:
    dal = ArtworkDAL(request.app.state.db_initializer)
    record = await dal.get(artwork_id, owner_id)
    if record is None or not record.marketplace_listed:
        raise NotFoundError(f"Listing for artwork {artwork_id} not found")
    await dal.clear_listing(artwork_id, owner_id)
    updated = await dal.get(artwork_id, owner_id)
    return updated.to_api()

"""FastAPI routes for marketplace listing bookkeeping."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from controllers import marketplace_controller as controller
from utils.http_errors import to_http_exception
from utils.security import require_user_id

router = APIRouter(prefix="/api/marketplace", tags=["marketplace"])


class ListingPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    artwork_id: int
    platform: str
    price: Optional[int] = Field(None, description="Listing price in cents.")


@router.post("/listings")
async def create_listing_route(request: Request, payload: ListingPayload, user_id: str = Depends(require_user_id)):
    try:
        return await controller.create_listing(request, user_id, payload.artwork_id, payload.platform, payload.price)
    except HTTPException:
        raise
    except Exception as exc:
        raise to_http_exception(exc) from exc


@router.get("/listings")
async def list_listings_route(request: Request, user_id: str = Depends(require_user_id)):
    try:
        return await controller.list_listings(request, user_id)
    except HTTPException:
        raise
    except Exception as exc:
        raise to_http_exception(exc) from exc


@router.delete("/listings/{artwork_id}")
async def withdraw_listing_route(request: Request, artwork_id: int, user_id: str = Depends(require_user_id)):
    try:
        return await controller.withdraw_listing(request, user_id, artwork_id)
    except HTTPException:
        raise
    except Exception as exc:
        raise to_http_exception(exc) from exc

"""FastAPI routes for uploading, reading, editing and analysing artworks."""

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from controllers import artwork_controller as controller
from models.analysis_result import MAX_PRICE
from utils.http_errors import to_http_exception
from utils.security import current_user_id, require_user_id

router = APIRouter(tags=["artworks"])


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Base64UploadPayload(CamelModel):
    image_data: str
    additional_images: List[str] = []
    mime_type: Optional[str] = None
    description: Optional[str] = None


class ArtworkUpdatePayload(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    title: Optional[str] = Field(None, min_length=1)
    artist: Optional[str] = None
    medium: Optional[str] = None
    dimensions: Optional[str] = None
    year: Optional[str] = None
    condition: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    suggested_price: Optional[int] = Field(None, ge=0, le=MAX_PRICE * 100)
    visibility: Optional[Literal["public", "private"]] = None


@router.post("/api/artworks/upload")
async def upload_artwork(
    request: Request,
    image: UploadFile = File(...),
    additional_images: Optional[List[UploadFile]] = File(None, alias="additionalImages"),
    description: Optional[str] = Form(None),
    user_id: str = Depends(require_user_id),
):
    """Store the image, create a placeholder artwork and start analysis in the background."""
    try:
        return await controller.upload_image(request, user_id, image, additional_images or [], description)
    except HTTPException:
        raise
    except Exception as exc:
        raise to_http_exception(exc) from exc


@router.post("/api/artworks/upload-base64")
async def upload_artwork_base64(
    request: Request,
    payload: Base64UploadPayload,
    user_id: str = Depends(require_user_id),
):
    """Same as the multipart upload, for clients sending base64 or data-URL images."""
    try:
        return await controller.upload_base64(
            request,
            user_id,
            payload.image_data,
            payload.additional_images,
            payload.mime_type,
            payload.description,
        )
    except HTTPException:
        raise
    except Exception as exc:
        raise to_http_exception(exc) from exc


@router.get("/api/artworks/recent")
async def recent_artworks(request: Request, limit: int = Query(6, ge=1, le=100)):
    try:
        return await controller.list_recent_artworks(request, current_user_id(request), limit)
    except HTTPException:
        raise
    except Exception as exc:
        raise to_http_exception(exc) from exc


@router.get("/api/artworks/search")
async def search_artworks(request: Request, q: str = ""):
    try:
        return await controller.search_artworks(request, q, current_user_id(request))
    except HTTPException:
        raise
    except Exception as exc:
        raise to_http_exception(exc) from exc


@router.get("/api/user/artworks")
async def user_artworks(request: Request, user_id: str = Depends(require_user_id)):
    try:
        return await controller.list_user_artworks(request, user_id)
    except HTTPException:
        raise
    except Exception as exc:
        raise to_http_exception(exc) from exc


@router.get("/api/showroom/artworks")
async def showroom_artworks(request: Request):
    try:
        return await controller.list_showroom_artworks(request)
    except HTTPException:
        raise
    except Exception as exc:
        raise to_http_exception(exc) from exc


@router.get("/api/artworks/{artwork_id}")
async def get_artwork(request: Request, artwork_id: int):
    try:
        return await controller.get_artwork(request, artwork_id, current_user_id(request))
    except HTTPException:
        raise
    except Exception as exc:
        raise to_http_exception(exc) from exc


@router.get("/api/artworks/{artwork_id}/image")
async def get_artwork_image(request: Request, artwork_id: int):
    """Return the stored primary JPEG."""
    try:
        return await controller.get_image(request, artwork_id, current_user_id(request))
    except HTTPException:
        raise
    except Exception as exc:
        raise to_http_exception(exc) from exc


@router.get("/api/artworks/{artwork_id}/images/{index}")
async def get_additional_image(request: Request, artwork_id: int, index: int):
    try:
        return await controller.get_image(request, artwork_id, current_user_id(request), index=index)
    except HTTPException:
        raise
    except Exception as exc:
        raise to_http_exception(exc) from exc


@router.get("/api/artworks/{artwork_id}/thumbnail")
async def get_artwork_thumbnail(request: Request, artwork_id: int):
    """Return the JPEG thumbnail bytes for the specified artwork."""
    try:
        return await controller.get_thumbnail(request, artwork_id, current_user_id(request))
    except HTTPException:
        raise
    except Exception as exc:
        raise to_http_exception(exc) from exc


@router.patch("/api/artworks/{artwork_id}")
async def update_artwork(
    request: Request,
    artwork_id: int,
    payload: ArtworkUpdatePayload,
    user_id: str = Depends(require_user_id),
):
    """Edit artwork fields directly; does not touch the analysis state."""
    fields = payload.model_dump(exclude_unset=True)
    if "title" in fields and fields["title"] is None:
        raise HTTPException(status_code=400, detail="Title cannot be empty")
    try:
        return await controller.update_artwork(request, artwork_id, user_id, fields)
    except HTTPException:
        raise
    except Exception as exc:
        raise to_http_exception(exc) from exc


@router.delete("/api/artworks/{artwork_id}")
async def delete_artwork(request: Request, artwork_id: int, user_id: str = Depends(require_user_id)):
    try:
        return await controller.delete_artwork(request, artwork_id, user_id)
    except HTTPException:
        raise
    except Exception as exc:
        raise to_http_exception(exc) from exc


@router.post("/api/artworks/{artwork_id}/analyze", status_code=202)
async def reanalyze_artwork(request: Request, artwork_id: int, user_id: str = Depends(require_user_id)):
    """Reset the artwork to a placeholder and queue a fresh analysis."""
    try:
        return await controller.reanalyze_artwork(request, artwork_id, user_id)
    except HTTPException:
        raise
    except Exception as exc:
        raise to_http_exception(exc) from exc


@router.post("/api/artworks/{artwork_id}/description")
async def regenerate_description(request: Request, artwork_id: int, user_id: str = Depends(require_user_id)):
    try:
        return await controller.regenerate_description(request, artwork_id, user_id)
    except HTTPException:
        raise
    except Exception as exc:
        raise to_http_exception(exc) from exc


@router.post("/api/artworks/{artwork_id}/price")
async def suggest_price(request: Request, artwork_id: int, user_id: str = Depends(require_user_id)):
    try:
        return await controller.suggest_price(request, artwork_id, user_id)
    except HTTPException:
        raise
    except Exception as exc:
        raise to_http_exception(exc) from exc

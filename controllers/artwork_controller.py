from typing import Any, Dict, List, Optional, Sequence

from fastapi import HTTPException, Request, UploadFile
from fastapi.responses import Response

from dal.artwork_dal import ArtworkDAL
from models.artwork_record import ArtworkRecord
from models.errors import NotFoundError
from services.analysis_pipeline import AnalysisPipeline
from utils.media_validation import decode_base64_image, read_image_upload


def _pipeline(request: Request) -> AnalysisPipeline:
    return request.app.state.pipeline


def _artwork_dal(request: Request) -> ArtworkDAL:
    return ArtworkDAL(request.app.state.db_initializer)


async def upload_image(
    request: Request,
    owner_id: str,
    file: UploadFile,
    additional_files: Sequence[UploadFile] = (),
    description: Optional[str] = None,
) -> Dict[str, Any]:
    """Handle a multipart upload and return the placeholder artwork.

    Args:
        request: FastAPI Request object (used to access app.state for shared services).
        owner_id: Id of the signed-in user.
        file: Primary image upload.
        additional_files: Optional extra images of the same work.
        description: Optional owner description passed to the model as context.

    Returns:
        The placeholder artwork; analysis continues in the background.
    """
    raw, mime_type = await read_image_upload(file)
    extras = [await read_image_upload(extra) for extra in additional_files]
    cleaned = description.strip() if description else None
    record = await _pipeline(request).ingest(owner_id, raw, mime_type, extras, description=cleaned or None)
    return record.to_api()


async def upload_base64(
    request: Request,
    owner_id: str,
    image_data: str,
    additional_images: Sequence[str] = (),
    mime_type: Optional[str] = None,
    description: Optional[str] = None,
) -> Dict[str, Any]:
    """Handle a JSON upload carrying base64 or data-URL images."""
    raw, embedded_mime = decode_base64_image(image_data)
    extras = []
    for item in additional_images:
        extra_raw, extra_mime = decode_base64_image(item)
        extras.append((extra_raw, extra_mime or "image/jpeg"))
    cleaned = description.strip() if description else None
    record = await _pipeline(request).ingest(
        owner_id,
        raw,
        mime_type or embedded_mime or "image/jpeg",
        extras,
        description=cleaned or None,
    )
    return record.to_api()


async def get_artwork(request: Request, artwork_id: int, viewer_id: Optional[str]) -> Dict[str, Any]:
    """Return an artwork the viewer owns, or any public artwork."""
    record = await _visible(request, artwork_id, viewer_id)
    return record.to_api()


async def list_user_artworks(request: Request, owner_id: str) -> List[Dict[str, Any]]:
    records = await _artwork_dal(request).list_by_owner(owner_id)
    return [r.to_api() for r in records]


async def list_recent_artworks(request: Request, viewer_id: Optional[str], limit: int) -> List[Dict[str, Any]]:
    records = await _artwork_dal(request).list_recent(viewer_id, limit=limit)
    return [r.to_api() for r in records]


async def list_showroom_artworks(request: Request) -> List[Dict[str, Any]]:
    records = await _artwork_dal(request).list_public()
    return [r.to_api() for r in records]


async def search_artworks(request: Request, query: str, viewer_id: Optional[str]) -> List[Dict[str, Any]]:
    if not query or not query.strip():
        raise HTTPException(status_code=400, detail="Search query is required")
    records = await _artwork_dal(request).search(query, viewer_id)
    return [r.to_api() for r in records]


async def update_artwork(request: Request, artwork_id: int, owner_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    """Apply a direct edit to an owned artwork, bypassing the analysis pipeline."""
    dal = _artwork_dal(request)
    if fields:
        changed = await dal.update_fields(artwork_id, owner_id, fields)
        if not changed:
            raise NotFoundError(f"Artwork {artwork_id} not found")
    record = await dal.get(artwork_id, owner_id)
    if record is None:
        raise NotFoundError(f"Artwork {artwork_id} not found")
    return record.to_api()


async def delete_artwork(request: Request, artwork_id: int, owner_id: str) -> Dict[str, Any]:
    await _pipeline(request).delete(artwork_id, owner_id)
    return {"message": "Artwork deleted successfully"}


async def reanalyze_artwork(request: Request, artwork_id: int, owner_id: str) -> Dict[str, Any]:
    record = await _pipeline(request).reanalyze(artwork_id, owner_id)
    return {"message": "Re-analysis started", "artwork": record.to_api()}


async def regenerate_description(request: Request, artwork_id: int, owner_id: str) -> Dict[str, Any]:
    description = await _pipeline(request).regenerate_description(artwork_id, owner_id)
    return {"description": description}


async def suggest_price(request: Request, artwork_id: int, owner_id: str) -> Dict[str, Any]:
    cents = await _pipeline(request).suggest_price(artwork_id, owner_id)
    return {"suggestedPrice": cents}


async def get_image(request: Request, artwork_id: int, viewer_id: Optional[str], index: Optional[int] = None) -> Response:
    """Return stored JPEG bytes for the primary image or an additional image.

    Raises:
        HTTPException(404) if the artwork is not visible or the image is missing.
    """
    record = await _visible(request, artwork_id, viewer_id)
    if index is None:
        name = record.image_path
    elif 0 <= index < len(record.additional_images):
        name = record.additional_images[index]
    else:
        raise HTTPException(status_code=404, detail="Image not found")

    try:
        data = await request.app.state.image_storage.read(name)
    except FileNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Image not found") from exc
    return Response(content=data, media_type="image/jpeg")


async def get_thumbnail(request: Request, artwork_id: int, viewer_id: Optional[str]) -> Response:
    """Return the JPEG thumbnail stored inline with the artwork."""
    record = await _visible(request, artwork_id, viewer_id)
    if not record.thumbnail:
        raise HTTPException(status_code=404, detail="Thumbnail not available for this artwork")
    return Response(content=record.thumbnail, media_type="image/jpeg")


async def _visible(request: Request, artwork_id: int, viewer_id: Optional[str]) -> ArtworkRecord:
    record = await _artwork_dal(request).get_visible(artwork_id, viewer_id)
    if record is None:
        raise NotFoundError(f"Artwork {artwork_id} not found")
    return record

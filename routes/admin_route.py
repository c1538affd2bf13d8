from fastapi import APIRouter, Depends, HTTPException, Request

from controllers.admin_controller import get_stats
from utils.http_errors import to_http_exception
from utils.security import require_user_id

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/stats")
async def admin_stats(request: Request, user_id: str = Depends(require_user_id)):
    """Aggregate user and artwork statistics for the admin dashboard."""
    try:
        return await get_stats(request, user_id)
    except HTTPException:
        raise
    except Exception as exc:
        raise to_http_exception(exc) from exc

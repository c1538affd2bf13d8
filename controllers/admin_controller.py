from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import Request

from dal.artwork_dal import ArtworkDAL
from dal.user_dal import UserDAL
from models.errors import AccessDeniedError
from utils.security import admin_emails


async def get_stats(request: Request, user_id: str) -> Dict[str, Any]:
    """Return catalog-wide statistics for an admin user.

    Raises:
        AccessDeniedError: If the user is not listed in ADMIN_EMAILS.
    """
    user = await UserDAL(request.app.state.db_initializer).get_by_id(user_id)
    if user is None or user.email not in admin_emails():
        raise AccessDeniedError("Admin access required")

    midnight = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    stats = await ArtworkDAL(request.app.state.db_initializer).stats(since=int(midnight.timestamp()))
    stats["analysisQueue"] = request.app.state.analysis_queue.stats()
    return stats

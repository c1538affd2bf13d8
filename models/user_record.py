from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class UserRecord:
    """Row in the users table. `password_hash` never leaves the server."""

    id: str
    email: str
    password_hash: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    created_at: Optional[int] = None

    def to_api(self, is_admin: bool = False) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "isAdmin": is_admin,
            "createdAt": self.created_at,
        }

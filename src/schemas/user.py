from typing import Optional

from pydantic import BaseModel

from src.utils.constants import AdminConst


class TokenInfo(BaseModel):
    """Claims of a verified bearer token issued by the identity service."""
    id: str
    email: Optional[str] = None
    role: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == AdminConst.ROLE

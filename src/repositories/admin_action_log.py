from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from src.models import AdminActionLog
from src.utils.utils import utc_now


class AdminActionLogRepository:
    def __init__(self, db: Session):
        self.db = db

    def create_no_commit(
        self,
        admin_id: str,
        action_type: str,
        target_user_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> AdminActionLog:
        entry = AdminActionLog(
            admin_id=admin_id,
            action_type=action_type,
            target_user_id=target_user_id,
            details=details,
            created_at=utc_now(),
        )
        self.db.add(entry)
        self.db.flush()
        return entry

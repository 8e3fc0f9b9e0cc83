from datetime import datetime
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from src.models import ProjectClass
from src.utils.constants import ScheduleConst


class ProjectClassRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, class_id: int) -> Optional[ProjectClass]:
        return self.db.query(ProjectClass).filter(ProjectClass.id == class_id).first()

    def get_for_user(self, class_id: int, user_id: str) -> Optional[ProjectClass]:
        return (
            self.db.query(ProjectClass)
            .filter(ProjectClass.id == class_id, ProjectClass.user_id == user_id)
            .first()
        )

    def list_scheduled(self) -> List[ProjectClass]:
        """Classes with a recurring cadence, oldest first."""
        cadences = [
            ScheduleConst.DAILY.value,
            ScheduleConst.WEEKLY.value,
            ScheduleConst.MONTHLY.value,
        ]
        return (
            self.db.query(ProjectClass)
            .filter(ProjectClass.schedule.in_(cadences))
            .order_by(ProjectClass.id.asc())
            .all()
        )

    def touch_last_checked(self, class_id: int, checked_at: datetime, commit: bool = True) -> None:
        self.db.execute(
            update(ProjectClass)
            .where(ProjectClass.id == class_id)
            .values(last_checked_at=checked_at)
            .execution_options(synchronize_session=False)
        )
        if commit:
            self.db.commit()

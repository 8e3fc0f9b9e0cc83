from typing import List, Optional

from sqlalchemy.orm import Session

from src.models import RankingCheck


class RankingCheckRepository:
    def __init__(self, db: Session):
        self.db = db

    def create_no_commit(self, **values) -> RankingCheck:
        record = RankingCheck(**values)
        self.db.add(record)
        self.db.flush()
        return record

    def get_for_user(self, check_id: int, user_id: str) -> Optional[RankingCheck]:
        return (
            self.db.query(RankingCheck)
            .filter(RankingCheck.id == check_id, RankingCheck.user_id == user_id)
            .first()
        )

    def list_for_user(self, user_id: str, skip: int = 0, limit: int | None = 50) -> List[RankingCheck]:
        query = (
            self.db.query(RankingCheck)
            .filter(RankingCheck.user_id == user_id)
            .order_by(RankingCheck.created_at.desc(), RankingCheck.id.desc())
            .offset(skip)
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def delete(self, record: RankingCheck) -> None:
        self.db.delete(record)
        self.db.commit()

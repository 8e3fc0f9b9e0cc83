from typing import List

from sqlalchemy.orm import Session

from src.models import KeywordRankingHistory


class KeywordRankingHistoryRepository:
    def __init__(self, db: Session):
        self.db = db

    def create_no_commit(self, **values) -> KeywordRankingHistory:
        record = KeywordRankingHistory(**values)
        self.db.add(record)
        self.db.flush()
        return record

    def list_for_keyword(self, keyword_id: int, skip: int = 0, limit: int | None = None) -> List[KeywordRankingHistory]:
        query = (
            self.db.query(KeywordRankingHistory)
            .filter(KeywordRankingHistory.keyword_id == keyword_id)
            .order_by(KeywordRankingHistory.checked_at.desc(), KeywordRankingHistory.id.desc())
            .offset(skip)
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

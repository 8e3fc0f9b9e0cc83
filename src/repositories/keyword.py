from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from src.models import Keyword


class KeywordRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, keyword_id: int) -> Optional[Keyword]:
        return self.db.query(Keyword).filter(Keyword.id == keyword_id).first()

    def _class_query(self, class_id: int, keyword_ids: Optional[List[int]] = None):
        query = self.db.query(Keyword).filter(Keyword.class_id == class_id)
        if keyword_ids:
            query = query.filter(Keyword.id.in_(keyword_ids))
        return query

    def list_by_class(self, class_id: int, keyword_ids: Optional[List[int]] = None) -> List[Keyword]:
        """Keywords of a class in insertion order, the order batches are cut from."""
        return (
            self._class_query(class_id, keyword_ids)
            .order_by(Keyword.created_at.asc(), Keyword.id.asc())
            .all()
        )

    def count_by_class(self, class_id: int, keyword_ids: Optional[List[int]] = None) -> int:
        query = self.db.query(func.count(Keyword.id)).filter(Keyword.class_id == class_id)
        if keyword_ids:
            query = query.filter(Keyword.id.in_(keyword_ids))
        return query.scalar() or 0

    def list_values(self, class_id: int) -> List[str]:
        return [row[0] for row in self.db.query(Keyword.keyword).filter(Keyword.class_id == class_id).all()]

    def bulk_insert_ignore(self, class_id: int, user_id: str, keywords: List[str]) -> int:
        """Insert keywords not yet tracked for the class; returns rows inserted."""
        if not keywords:
            return 0
        existing = set(self.list_values(class_id))
        fresh = [kw for kw in keywords if kw not in existing]
        total = 0
        chunk_size = 200
        for i in range(0, len(fresh), chunk_size):
            chunk = fresh[i:i + chunk_size]
            self.db.add_all(Keyword(class_id=class_id, user_id=user_id, keyword=kw) for kw in chunk)
            # Commit per chunk to avoid long-running transactions on very large imports
            self.db.commit()
            total += len(chunk)
        return total

    def update_no_commit(self, db_keyword: Keyword, values: Dict[str, Any]) -> Keyword:
        """Update keyword without committing - for use within transactions"""
        for field, value in values.items():
            setattr(db_keyword, field, value)
        self.db.flush()
        return db_keyword

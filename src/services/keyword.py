import logging
from typing import List

from sqlalchemy.orm import Session

from src.models import Keyword, KeywordRankingHistory
from src.repositories import KeywordRankingHistoryRepository, KeywordRepository, ProjectClassRepository
from src.schemas import KeywordBulkResult
from src.utils.exceptions import ClassNotFoundError, KeywordNotFoundError
from src.utils.utils import dedupe_preserving_order

logger = logging.getLogger(__name__)


def normalize_keywords(raw_keywords: List[str]) -> List[str]:
    """Lower-case, trim, drop blanks and duplicates, keep first-seen order."""
    cleaned = (" ".join((kw or "").split()).lower() for kw in raw_keywords)
    return dedupe_preserving_order(kw for kw in cleaned if kw)


class KeywordService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = KeywordRepository(db)
        self.class_repo = ProjectClassRepository(db)
        self.history_repo = KeywordRankingHistoryRepository(db)

    def _require_class(self, class_id: int, user_id: str):
        project_class = self.class_repo.get_for_user(class_id, user_id)
        if project_class is None:
            raise ClassNotFoundError(class_id)
        return project_class

    def add_keywords(self, class_id: int, raw_keywords: List[str], user_id: str) -> KeywordBulkResult:
        self._require_class(class_id, user_id)
        keywords = normalize_keywords(raw_keywords)
        inserted = self.repo.bulk_insert_ignore(class_id, user_id, keywords)
        logger.info("Added %s keywords to class %s (%s submitted)", inserted, class_id, len(raw_keywords))
        return KeywordBulkResult(inserted=inserted, skipped=len(keywords) - inserted)

    def list_keywords(self, class_id: int, user_id: str) -> List[Keyword]:
        self._require_class(class_id, user_id)
        return self.repo.list_by_class(class_id)

    def get_keyword(self, keyword_id: int, user_id: str) -> Keyword:
        keyword = self.repo.get(keyword_id)
        if keyword is None or keyword.user_id != user_id:
            raise KeywordNotFoundError(keyword_id)
        return keyword

    def get_history(self, keyword_id: int, user_id: str, skip: int = 0, limit: int | None = 100) -> List[KeywordRankingHistory]:
        self.get_keyword(keyword_id, user_id)
        return self.history_repo.list_for_keyword(keyword_id, skip=skip, limit=limit)

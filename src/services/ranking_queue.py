import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.models import RankingCheckJob
from src.repositories import KeywordRepository, ProjectClassRepository, RankingCheckJobRepository
from src.utils.exceptions import ClassNotFoundError, ConflictError, JobNotFoundError, NoWorkError
from src.utils.utils import dedupe_preserving_order

logger = logging.getLogger(__name__)


class RankingQueueService:
    """Admission control for ranking checks: one active job per class."""

    def __init__(self, db: Session):
        self.db = db
        self.class_repo = ProjectClassRepository(db)
        self.keyword_repo = KeywordRepository(db)
        self.job_repo = RankingCheckJobRepository(db)

    def enqueue(self, class_id: int, user_id: str, keyword_ids: Optional[List[int]] = None) -> RankingCheckJob:
        """Admit a check of *class_id*.

        Raises:
            ClassNotFoundError: the class does not exist or is not the caller's
            ConflictError: a pending or processing job already exists
            NoWorkError: nothing to check
        """
        project_class = self.class_repo.get_for_user(class_id, user_id)
        if project_class is None:
            raise ClassNotFoundError(class_id)

        active = self.job_repo.get_active_for_class(class_id)
        if active is not None:
            logger.info("Class %s already has active job %s (%s)", class_id, active.id, active.status)
            raise ConflictError(active.id, active.status)

        ids = dedupe_preserving_order(keyword_ids or [])
        total_keywords = self.keyword_repo.count_by_class(class_id, ids or None)
        if total_keywords == 0:
            raise NoWorkError()

        try:
            job = self.job_repo.create(class_id, user_id, total_keywords, ids or None)
        except IntegrityError:
            # Lost the race against a concurrent enqueue for the same class
            self.db.rollback()
            active = self.job_repo.get_active_for_class(class_id)
            if active is None:
                raise
            raise ConflictError(active.id, active.status)

        logger.info(
            "Enqueued ranking job %s for class %s (%s keywords, user %s)",
            job.id, class_id, total_keywords, user_id,
        )
        return job

    def get_job(self, job_id: int, user_id: str) -> RankingCheckJob:
        job = self.job_repo.get(job_id)
        if job is None or job.user_id != user_id:
            raise JobNotFoundError(job_id)
        return job

    def get_active_job(self, class_id: int, user_id: str) -> Optional[RankingCheckJob]:
        if self.class_repo.get_for_user(class_id, user_id) is None:
            raise ClassNotFoundError(class_id)
        return self.job_repo.get_active_for_class(class_id)

    def list_jobs(self, user_id: str, limit: int = 20) -> List[RankingCheckJob]:
        return self.job_repo.list_for_user(user_id, limit=limit)

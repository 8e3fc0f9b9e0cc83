from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from src.models import RankingCheckJob
from src.utils.constants import JobStatusConst
from src.utils.utils import utc_now


class RankingCheckJobRepository:
    """Persistence for the ranking job queue.

    Every state change is a conditional UPDATE whose WHERE clause encodes the
    allowed source states, so a transition that lost a race simply affects no
    rows and the caller sees ``False``.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, job_id: int) -> Optional[RankingCheckJob]:
        return self.db.query(RankingCheckJob).filter(RankingCheckJob.id == job_id).first()

    def get_active_for_class(self, class_id: int) -> Optional[RankingCheckJob]:
        return (
            self.db.query(RankingCheckJob)
            .filter(
                RankingCheckJob.class_id == class_id,
                RankingCheckJob.status.in_(JobStatusConst.active()),
            )
            .order_by(RankingCheckJob.created_at.asc(), RankingCheckJob.id.asc())
            .first()
        )

    def get_next_active(self) -> Optional[RankingCheckJob]:
        """Oldest pending or processing job across all classes."""
        return (
            self.db.query(RankingCheckJob)
            .filter(RankingCheckJob.status.in_(JobStatusConst.active()))
            .order_by(RankingCheckJob.created_at.asc(), RankingCheckJob.id.asc())
            .first()
        )

    def list_for_user(self, user_id: str, limit: int = 20) -> List[RankingCheckJob]:
        return (
            self.db.query(RankingCheckJob)
            .filter(RankingCheckJob.user_id == user_id)
            .order_by(RankingCheckJob.created_at.desc(), RankingCheckJob.id.desc())
            .limit(limit)
            .all()
        )

    def create(
        self,
        class_id: int,
        user_id: str,
        total_keywords: int,
        keyword_ids: Optional[List[int]] = None,
    ) -> RankingCheckJob:
        """Insert a pending job. IntegrityError means another job is active."""
        job = RankingCheckJob(
            class_id=class_id,
            user_id=user_id,
            keyword_ids=keyword_ids or None,
            total_keywords=total_keywords,
            processed_keywords=0,
            claimed_keywords=0,
            status=JobStatusConst.PENDING.value,
            active_class_id=class_id,
            created_at=utc_now(),
        )
        self.db.add(job)
        self.db.commit()
        self.db.refresh(job)
        return job

    def _transition(self, job_id: int, allowed: tuple, extra_where=(), **values) -> bool:
        result = self.db.execute(
            update(RankingCheckJob)
            .where(RankingCheckJob.id == job_id, RankingCheckJob.status.in_(allowed), *extra_where)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return (result.rowcount or 0) > 0

    def mark_processing(self, job_id: int, started_at: Optional[datetime] = None) -> bool:
        return self._transition(
            job_id,
            (JobStatusConst.PENDING.value,),
            status=JobStatusConst.PROCESSING.value,
            started_at=started_at or utc_now(),
        )

    def claim_batch(
        self,
        job_id: int,
        seen: int,
        claim_to: int,
        token: str,
        stale_before: datetime,
        now: Optional[datetime] = None,
    ) -> bool:
        """Take ownership of keywords ``[seen, claim_to)`` before paying for them.

        Succeeds only while progress is still *seen* and nobody else holds a
        live claim past it. A claim older than *stale_before* belongs to a run
        that died mid-batch and may be taken over.
        """
        return self._transition(
            job_id,
            JobStatusConst.active(),
            extra_where=(
                RankingCheckJob.processed_keywords == seen,
                or_(
                    RankingCheckJob.claimed_keywords <= seen,
                    RankingCheckJob.claimed_at.is_(None),
                    RankingCheckJob.claimed_at < stale_before,
                ),
            ),
            claimed_keywords=claim_to,
            claimed_at=now or utc_now(),
            claim_token=token,
        )

    def renew_claim(self, job_id: int, token: str, now: Optional[datetime] = None) -> bool:
        """Push ``claimed_at`` forward while *token* still holds the claim."""
        return self._transition(
            job_id,
            JobStatusConst.active(),
            extra_where=(RankingCheckJob.claim_token == token,),
            claimed_at=now or utc_now(),
        )

    def advance_progress(self, job_id: int, processed_keywords: int, token: str) -> bool:
        """Move processed_keywords forward for the run holding *token*; never backwards."""
        return self._transition(
            job_id,
            (JobStatusConst.PROCESSING.value,),
            extra_where=(
                RankingCheckJob.processed_keywords < processed_keywords,
                RankingCheckJob.claim_token == token,
            ),
            processed_keywords=processed_keywords,
        )

    def shrink_total(self, job_id: int, total_keywords: int) -> bool:
        """Lower total_keywords when keywords vanished after admission."""
        return self._transition(
            job_id,
            JobStatusConst.active(),
            extra_where=(
                RankingCheckJob.total_keywords > total_keywords,
                RankingCheckJob.processed_keywords <= total_keywords,
            ),
            total_keywords=total_keywords,
        )

    def mark_completed(self, job_id: int, completed_at: Optional[datetime] = None) -> bool:
        return self._transition(
            job_id,
            JobStatusConst.active(),
            status=JobStatusConst.COMPLETED.value,
            completed_at=completed_at or utc_now(),
            active_class_id=None,
        )

    def mark_failed(self, job_id: int, error_message: str, completed_at: Optional[datetime] = None) -> bool:
        return self._transition(
            job_id,
            JobStatusConst.active(),
            status=JobStatusConst.FAILED.value,
            error_message=error_message[:1000],
            completed_at=completed_at or utc_now(),
            active_class_id=None,
        )

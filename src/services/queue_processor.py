import logging
import threading
import time
import uuid
from datetime import timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.config.config import RankingConfig
from src.config.database import SessionLocal
from src.models import RankingCheckJob
from src.repositories import KeywordRepository, ProjectClassRepository, RankingCheckJobRepository
from src.schemas.ranking import ProcessResult
from src.services.credit import CreditService
from src.services.ranking_check import RankingCheckService
from src.services.serp import SerpService
from src.utils.constants import JobStatusConst, ProcessStatusConst
from src.utils.exceptions import InsufficientCreditsError, SerpFetchError
from src.utils.utils import utc_now

logger = logging.getLogger(__name__)


class QueueProcessor:
    """Advances the ranking job queue by one bounded batch per call.

    ``process_next`` picks the oldest active job, checks at most
    ``batch_size`` of its remaining keywords and returns. Whoever drives the
    queue (the SQS worker, a background task, the hourly trigger) calls it
    again until it reports ``idle``.
    """

    def __init__(
        self,
        db: Session,
        serp_service: Optional[SerpService] = None,
        config: Optional[RankingConfig] = None,
    ):
        self.db = db
        self.config = config or RankingConfig.from_env()
        self.job_repo = RankingCheckJobRepository(db)
        self.class_repo = ProjectClassRepository(db)
        self.keyword_repo = KeywordRepository(db)
        self.credit_service = CreditService(db)
        self.ranking_check = RankingCheckService(db, serp_service=serp_service)

    def _complete(self, job: RankingCheckJob, processed: int, total: int, checked: int = 0, skipped: int = 0) -> ProcessResult:
        now = utc_now()
        self.job_repo.mark_completed(job.id, completed_at=now)
        self.class_repo.touch_last_checked(job.class_id, now)
        logger.info("✅ Job %s completed (%s/%s keywords)", job.id, processed, total)
        return ProcessResult(
            status=ProcessStatusConst.COMPLETED,
            job_id=job.id,
            processed=processed,
            total=total,
            checked=checked,
            skipped=skipped,
        )

    def _fail(self, job: RankingCheckJob, message: str) -> ProcessResult:
        self.job_repo.mark_failed(job.id, message)
        logger.error("❌ Job %s failed: %s", job.id, message)
        return ProcessResult(
            status=ProcessStatusConst.FAILED,
            job_id=job.id,
            processed=job.processed_keywords,
            total=job.total_keywords,
            message=message,
        )

    def _claim_lost(self, job_id: int, processed: int, claim_to: int, total: int, checked: int, skipped: int) -> ProcessResult:
        logger.warning("Job %s: claim on keywords %s-%s was taken over, stopping", job_id, processed, claim_to)
        return ProcessResult(
            status=ProcessStatusConst.IDLE,
            job_id=job_id,
            processed=processed,
            total=total,
            checked=checked,
            skipped=skipped,
            message="Batch claim lost",
        )

    def process_next(self) -> ProcessResult:
        job = self.job_repo.get_next_active()
        if job is None:
            return ProcessResult(status=ProcessStatusConst.IDLE, message="No jobs to process")

        job_id = job.id
        logger.info("=" * 60)
        logger.info("📥 Processing ranking job %s for class %s", job_id, job.class_id)
        logger.info("  Status: %s, progress %s/%s", job.status, job.processed_keywords, job.total_keywords)
        logger.info("=" * 60)

        if job.status == JobStatusConst.PENDING.value:
            self.job_repo.mark_processing(job_id)

        project_class = self.class_repo.get(job.class_id)
        if project_class is None:
            return self._fail(job, "Class not found")

        keywords = self.keyword_repo.list_by_class(job.class_id, job.keyword_ids or None)
        processed = job.processed_keywords or 0
        total = job.total_keywords or 0
        universe = keywords[:total]

        if len(universe) < total:
            # Keywords were deleted after admission; never let total drop below progress
            new_total = max(len(universe), processed)
            logger.warning("Job %s: %s of %s keywords remain, total lowered to %s", job_id, len(universe), total, new_total)
            self.job_repo.shrink_total(job_id, new_total)
            total = new_total

        batch = universe[processed:processed + self.config.batch_size]
        if not batch:
            return self._complete(job, processed, total)

        now = utc_now()
        stale_before = now - timedelta(seconds=self.config.claim_timeout)
        claim_to = processed + len(batch)
        token = str(uuid.uuid4())
        if not self.job_repo.claim_batch(job_id, processed, claim_to, token, stale_before, now=now):
            logger.info("Job %s: keywords from %s are claimed by another run", job_id, processed)
            return ProcessResult(
                status=ProcessStatusConst.IDLE,
                job_id=job_id,
                processed=processed,
                total=total,
                message="Batch already claimed by another run",
            )

        needed = self.credit_service.credits_needed(project_class.top_results, len(batch))
        try:
            self.credit_service.debit(job.user_id, needed, description=f"Check {len(batch)} keywords (job {job_id})")
        except InsufficientCreditsError as e:
            return self._fail(job, str(e))

        checked = 0
        skipped = 0
        for index, keyword in enumerate(batch):
            try:
                self.ranking_check.check_keyword(keyword, project_class)
                checked += 1
            except SerpFetchError as e:
                skipped += 1
                logger.warning("⚠️ Skipping keyword %s %r in job %s: %s", keyword.id, keyword.keyword, job_id, e)
            except SQLAlchemyError as e:
                self.db.rollback()
                skipped += 1
                logger.error("Failed to save keyword %s in job %s: %s", keyword.id, job_id, e, exc_info=True)

            if index == len(batch) - 1:
                continue
            if not self.job_repo.renew_claim(job_id, token):
                return self._claim_lost(job_id, processed, claim_to, total, checked, skipped)
            if self.config.keyword_delay > 0:
                time.sleep(self.config.keyword_delay)

        new_processed = processed + len(batch)
        if not self.job_repo.advance_progress(job_id, new_processed, token):
            return self._claim_lost(job_id, processed, claim_to, total, checked, skipped)
        logger.info("Job %s progress: %s/%s (checked %s, skipped %s)", job_id, new_processed, total, checked, skipped)

        if new_processed >= total:
            return self._complete(job, new_processed, total, checked, skipped)

        return ProcessResult(
            status=ProcessStatusConst.PROCESSING,
            job_id=job_id,
            processed=new_processed,
            total=total,
            checked=checked,
            skipped=skipped,
        )


_drain_lock = threading.Lock()
_drain_requested = threading.Event()


def _run_until_idle(max_invocations: int, serp_service: SerpService, session_factory) -> int:
    invocations = 0
    while invocations < max_invocations:
        db = session_factory()
        try:
            result = QueueProcessor(db, serp_service=serp_service).process_next()
        except Exception:
            db.rollback()
            logger.exception("Queue processor invocation failed")
            raise
        finally:
            db.close()
        if result.status == ProcessStatusConst.IDLE:
            break
        invocations += 1
    return invocations


def drain_queue(
    max_invocations: int = 1000,
    serp_service: Optional[SerpService] = None,
    session_factory=SessionLocal,
) -> int:
    """Call ``process_next`` until the queue is idle or the cap is reached.

    Used as a FastAPI background task when no SQS queue is configured and by
    the worker. Each invocation gets its own session from *session_factory*;
    a request session is already closed by the time a background task runs.

    Only one drain runs per process. A call that finds one running leaves a
    request behind and returns 0; the running drain goes round again before
    it lets go of the lock.
    """
    _drain_requested.set()
    invocations = 0
    while _drain_requested.is_set() and invocations < max_invocations:
        if not _drain_lock.acquire(blocking=False):
            logger.info("Queue drain already running, leaving it a wake-up request")
            return invocations
        try:
            serp_service = serp_service or SerpService()
            while _drain_requested.is_set() and invocations < max_invocations:
                _drain_requested.clear()
                invocations += _run_until_idle(max_invocations - invocations, serp_service, session_factory)
        finally:
            _drain_lock.release()
    return invocations

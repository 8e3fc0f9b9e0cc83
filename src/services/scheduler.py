import logging
import math
from datetime import datetime, timezone
from typing import Optional

import pytz
from sqlalchemy.orm import Session

from src.config.config import RankingConfig
from src.models import ProjectClass
from src.repositories import KeywordRepository, ProjectClassRepository, UserCreditRepository
from src.schemas.ranking import ScheduledCheckResult
from src.services.ranking_queue import RankingQueueService
from src.utils.constants import (
    DEFAULT_SCHEDULE_TIME,
    MONTHLY_ANCHOR_DAY,
    SCHEDULE_MIN_ELAPSED_HOURS,
    WEEKLY_ANCHOR_WEEKDAY,
    ScheduleConst,
)
from src.utils.exceptions import ConflictError, NoWorkError
from src.utils.utils import credits_needed, parse_schedule_hour

logger = logging.getLogger(__name__)


def hours_since(last_checked_at: Optional[datetime], now_utc: datetime) -> float:
    if last_checked_at is None:
        return math.inf
    if last_checked_at.tzinfo is None:
        last_checked_at = last_checked_at.replace(tzinfo=timezone.utc)
    return (now_utc - last_checked_at).total_seconds() / 3600


def is_due(project_class: ProjectClass, now_utc: datetime, tz) -> bool:
    """Whether the cadence of *project_class* fires in the hour containing *now_utc*."""
    schedule = project_class.schedule
    min_hours = SCHEDULE_MIN_ELAPSED_HOURS.get(schedule)
    if min_hours is None:
        return False

    local_now = now_utc.astimezone(tz)
    if local_now.hour != parse_schedule_hour(project_class.schedule_time, DEFAULT_SCHEDULE_TIME):
        return False
    if hours_since(project_class.last_checked_at, now_utc) < min_hours:
        return False

    if schedule == ScheduleConst.WEEKLY.value:
        return local_now.weekday() == WEEKLY_ANCHOR_WEEKDAY
    if schedule == ScheduleConst.MONTHLY.value:
        return local_now.day == MONTHLY_ANCHOR_DAY
    return True


class SchedulerService:
    """Hourly trigger that enqueues checks for classes whose cadence is due.

    Missed windows are not caught up: a class whose hour passed without a
    trigger run waits for its next window.
    """

    def __init__(self, db: Session, config: Optional[RankingConfig] = None):
        self.db = db
        self.config = config or RankingConfig.from_env()
        self.class_repo = ProjectClassRepository(db)
        self.keyword_repo = KeywordRepository(db)
        self.credit_repo = UserCreditRepository(db)
        self.queue_service = RankingQueueService(db)

    def run(self, now: Optional[datetime] = None) -> ScheduledCheckResult:
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        now_utc = now.astimezone(timezone.utc)
        tz = pytz.timezone(self.config.timezone)
        stamp = now_utc.replace(tzinfo=None)
        result = ScheduledCheckResult()

        logger.info("Scheduled check at %s (%s)", now_utc.astimezone(tz).strftime("%Y-%m-%d %H:%M"), self.config.timezone)

        for project_class in self.class_repo.list_scheduled():
            if not is_due(project_class, now_utc, tz):
                continue
            result.checked_count += 1
            class_id = project_class.id
            user_id = project_class.user_id

            keyword_count = self.keyword_repo.count_by_class(class_id)
            if keyword_count == 0:
                logger.info("Skipping class %s - no keywords", class_id)
                result.skipped_count += 1
                continue

            needed = credits_needed(project_class.top_results, keyword_count)
            available = self.credit_repo.get_balance(user_id)
            if available < needed:
                logger.info("Skipping class %s - insufficient credits (need %s, have %s)", class_id, needed, available)
                # Stamp anyway so the class is not retried every hour
                self.class_repo.touch_last_checked(class_id, stamp)
                result.skipped_count += 1
                continue

            # Provisional stamp narrows the window for overlapping trigger runs
            self.class_repo.touch_last_checked(class_id, stamp)
            try:
                job = self.queue_service.enqueue(class_id, user_id)
            except ConflictError as e:
                logger.info("Skipping class %s - job %s already %s", class_id, e.existing_job_id, e.status)
                result.skipped_count += 1
                continue
            except NoWorkError:
                result.skipped_count += 1
                continue

            result.enqueued_count += 1
            result.job_ids.append(job.id)

        logger.info(
            "Scheduled check done: %s due, %s enqueued, %s skipped",
            result.checked_count, result.enqueued_count, result.skipped_count,
        )
        return result

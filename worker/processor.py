import logging
from typing import Optional

from sqlalchemy.orm import sessionmaker

from src.config.database import build_engine
from src.services.queue_processor import drain_queue
from src.services.serp import SerpService
from worker.config import config

logger = logging.getLogger(__name__)


class QueueRunner:
    """Drains the ranking queue with the worker's own engine and SERP client.

    Each ``process_next`` call runs in a fresh session, so a failure in one
    batch never leaves stale state behind for the next.
    """

    def __init__(self, serp_service: Optional[SerpService] = None, session_factory=None):
        if session_factory is None:
            session_factory = self._setup_database_engine()
        self.SessionLocal = session_factory
        self.serp_service = serp_service or SerpService()

    def _setup_database_engine(self):
        config.validate()
        self.engine = build_engine(config.database_url)
        return sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def drain(self, max_invocations: Optional[int] = None) -> int:
        limit = max_invocations or config.WORKER_MAX_INVOCATIONS
        invocations = drain_queue(
            max_invocations=limit,
            serp_service=self.serp_service,
            session_factory=self.SessionLocal,
        )
        if invocations:
            logger.info("~" * 60)
            logger.info(f"🏁 Queue drained after {invocations} invocation(s)")
            logger.info("~" * 60)
        if invocations >= limit:
            logger.warning(f"Stopped after {limit} invocations with work possibly remaining")
        return invocations

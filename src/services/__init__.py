from .auth import AuthService
from .serp import SerpService
from .credit import CreditService
from .keyword import KeywordService
from .ranking_check import RankingCheckService
from .ranking_queue import RankingQueueService
from .queue_processor import QueueProcessor
from .scheduler import SchedulerService
from .billing import BillingService
from .adhoc_check import AdHocCheckService

__all__ = [
    "AuthService",
    "SerpService",
    "CreditService",
    "KeywordService",
    "RankingCheckService",
    "RankingQueueService",
    "QueueProcessor",
    "SchedulerService",
    "BillingService",
    "AdHocCheckService",
]

from .project_class import ProjectClassRepository
from .keyword import KeywordRepository
from .keyword_ranking_history import KeywordRankingHistoryRepository
from .ranking_check_job import RankingCheckJobRepository
from .ranking_check import RankingCheckRepository
from .user_credit import UserCreditRepository
from .credit_transaction import CreditTransactionRepository
from .billing_order import BillingOrderRepository
from .admin_action_log import AdminActionLogRepository

__all__ = [
    "ProjectClassRepository",
    "KeywordRepository",
    "KeywordRankingHistoryRepository",
    "RankingCheckJobRepository",
    "RankingCheckRepository",
    "UserCreditRepository",
    "CreditTransactionRepository",
    "BillingOrderRepository",
    "AdminActionLogRepository",
]

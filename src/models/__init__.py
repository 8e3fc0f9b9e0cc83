from .project_class import ProjectClass
from .keyword import Keyword
from .keyword_ranking_history import KeywordRankingHistory
from .ranking_check_job import RankingCheckJob
from .ranking_check import RankingCheck
from .user_credit import UserCredit
from .credit_transaction import CreditTransaction
from .billing_order import BillingOrder
from .admin_action_log import AdminActionLog

__all__ = [
    "ProjectClass",
    "Keyword",
    "KeywordRankingHistory",
    "RankingCheckJob",
    "RankingCheck",
    "UserCredit",
    "CreditTransaction",
    "BillingOrder",
    "AdminActionLog",
]

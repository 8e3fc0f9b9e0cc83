from .user import TokenInfo
from .ranking import (
    SerpResult,
    CompetitorRanking,
    RankingJobCreate,
    RankingJobOut,
    RankingJobAccepted,
    ProcessResult,
    ScheduledCheckResult,
    AdHocCheckRequest,
    AdHocCheckOut,
    RankingCheckOut,
)
from .keyword import KeywordBulkCreate, KeywordBulkResult, KeywordOut, KeywordDetailOut, RankingHistoryOut
from .credit import CreditBalanceOut, CreditTransactionOut, CreditAdjustRequest, CreditAdjustResult
from .billing import OrderCreate, CheckoutOut, SepayWebhookPayload, WebhookAck

__all__ = [
    "TokenInfo",
    "SerpResult",
    "CompetitorRanking",
    "RankingJobCreate",
    "RankingJobOut",
    "RankingJobAccepted",
    "ProcessResult",
    "ScheduledCheckResult",
    "AdHocCheckRequest",
    "AdHocCheckOut",
    "RankingCheckOut",
    "KeywordBulkCreate",
    "KeywordBulkResult",
    "KeywordOut",
    "KeywordDetailOut",
    "RankingHistoryOut",
    "CreditBalanceOut",
    "CreditTransactionOut",
    "CreditAdjustRequest",
    "CreditAdjustResult",
    "OrderCreate",
    "CheckoutOut",
    "SepayWebhookPayload",
    "WebhookAck",
]

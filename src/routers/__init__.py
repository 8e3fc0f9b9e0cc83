from .ranking import router as ranking_router
from .keyword import router as keyword_router
from .credits import router as credits_router
from .billing import router as billing_router

__all__ = [
    "ranking_router",
    "keyword_router",
    "credits_router",
    "billing_router",
]

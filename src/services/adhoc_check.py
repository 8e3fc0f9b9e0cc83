import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from src.models import RankingCheck
from src.repositories import RankingCheckRepository
from src.schemas.ranking import AdHocCheckOut, AdHocCheckRequest
from src.services.credit import CreditService
from src.services.serp import SerpService
from src.utils.constants import XmlRiverConst
from src.utils.domain import find_target_ranking
from src.utils.exceptions import NoWorkError, RankingCheckNotFoundError, SerpFetchError, SerpUnavailableError
from src.utils.utils import clamp, utc_now

logger = logging.getLogger(__name__)


class AdHocCheckService:
    """Single keyword checks typed in by a user, outside any class.

    The check is paid for before the SERP fetch. If the first page cannot be
    fetched the credits go back to the user and nothing is stored.
    """

    def __init__(self, db: Session, serp_service: Optional[SerpService] = None):
        self.db = db
        self.check_repo = RankingCheckRepository(db)
        self.credit_service = CreditService(db)
        self.serp_service = serp_service or SerpService()

    def check(self, user_id: str, request: AdHocCheckRequest) -> AdHocCheckOut:
        keyword = " ".join(request.keyword.split())
        if not keyword:
            raise NoWorkError("Keyword is required")
        target_url = (request.target_url or "").strip() or None
        top_results = int(clamp(
            request.top_results or XmlRiverConst.DEFAULT_TOP_RESULTS,
            XmlRiverConst.MIN_TOP_RESULTS,
            XmlRiverConst.MAX_TOP_RESULTS,
        ))
        device = request.device if request.device in XmlRiverConst.DEVICES else XmlRiverConst.DEVICES[0]

        needed = self.credit_service.credits_needed(top_results, 1)
        self.credit_service.debit(user_id, needed, description=f"Check keyword {keyword!r}")

        try:
            results = self.serp_service.fetch(
                keyword,
                request.country_id,
                request.language_code,
                device,
                top_results,
                request.location_id,
            )
        except SerpFetchError as e:
            logger.warning("Ad-hoc check for %r failed for user %s: %s", keyword, user_id, e)
            self.credit_service.refund(user_id, needed, description=f"Refund failed check {keyword!r}")
            raise SerpUnavailableError(e.category, e.message, e.retryable) from e

        position, found_url = find_target_ranking(results, target_url)

        try:
            record = self.check_repo.create_no_commit(
                user_id=user_id,
                keyword=keyword,
                target_url=target_url,
                country_id=request.country_id,
                country_name=request.country_name,
                location_id=request.location_id or None,
                location_name=request.location_name or None,
                language_code=request.language_code,
                language_name=request.language_name,
                device=device,
                top_results=top_results,
                ranking_position=position,
                found_url=found_url,
                serp_results=[r.model_dump() for r in results],
                created_at=utc_now(),
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Ad-hoc check %s for %r: position %s among %s results (user %s, %s credits)",
            record.id, keyword, position, len(results), user_id, needed,
        )
        return AdHocCheckOut(
            check_id=record.id,
            results=results,
            target_ranking=position,
            found_url=found_url,
            total_results=len(results),
            credits_used=needed,
        )

    def list_checks(self, user_id: str, skip: int = 0, limit: int = 50) -> List[RankingCheck]:
        return self.check_repo.list_for_user(user_id, skip=skip, limit=limit)

    def delete_check(self, check_id: int, user_id: str) -> None:
        record = self.check_repo.get_for_user(check_id, user_id)
        if record is None:
            raise RankingCheckNotFoundError(check_id)
        self.check_repo.delete(record)

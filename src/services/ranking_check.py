import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from src.models import Keyword, ProjectClass
from src.repositories import KeywordRankingHistoryRepository, KeywordRepository
from src.schemas.ranking import (
    CompetitorRanking,
    SerpResult,
    dump_competitor_rankings,
    load_competitor_rankings,
)
from src.services.serp import SerpService
from src.utils.domain import find_target_ranking
from src.utils.utils import utc_now

logger = logging.getLogger(__name__)


def merge_positions(
    new_position: Optional[int],
    prior_position: Optional[int],
    prior_first: Optional[int],
    prior_best: Optional[int],
) -> Tuple[Optional[int], Optional[int], Optional[int]]:
    """Return ``(first, best, previous)`` after a check that found *new_position*.

    ``first`` is set once, ``best`` only ever decreases, and ``previous`` is
    the position stored before this check.
    """
    first = prior_first if prior_first is not None else new_position
    if new_position is None:
        best = prior_best
    elif prior_best is None:
        best = new_position
    else:
        best = min(prior_best, new_position)
    return first, best, prior_position


def compute_competitor_rankings(
    results: List[SerpResult],
    competitor_domains: List[str],
    existing: Dict[str, CompetitorRanking],
) -> Dict[str, CompetitorRanking]:
    rankings: Dict[str, CompetitorRanking] = {}
    for domain in competitor_domains:
        position, url = find_target_ranking(results, domain)
        prior = existing.get(domain) or CompetitorRanking()
        first, best, previous = merge_positions(position, prior.position, prior.first_position, prior.best_position)
        rankings[domain] = CompetitorRanking(
            position=position,
            url=url,
            first_position=first,
            best_position=best,
            previous_position=previous,
        )
    return rankings


class RankingCheckService:
    """Runs one keyword through the SERP fetcher and records the outcome."""

    def __init__(self, db: Session, serp_service: Optional[SerpService] = None):
        self.db = db
        self.keyword_repo = KeywordRepository(db)
        self.history_repo = KeywordRankingHistoryRepository(db)
        self.serp_service = serp_service or SerpService()

    def check_keyword(self, keyword: Keyword, project_class: ProjectClass) -> Keyword:
        """Fetch, rank and persist a single keyword.

        ``SerpFetchError`` from the fetch propagates before anything is
        written, leaving the stored positions untouched.
        """
        results = self.serp_service.fetch(
            keyword.keyword,
            project_class.country_id,
            project_class.language_code,
            project_class.device,
            project_class.top_results,
            project_class.location_id,
        )

        position, found_url = find_target_ranking(results, project_class.domain)
        first, best, previous = merge_positions(
            position, keyword.ranking_position, keyword.first_position, keyword.best_position
        )
        competitors = compute_competitor_rankings(
            results,
            [d for d in (project_class.competitor_domains or []) if isinstance(d, str) and d.strip()],
            load_competitor_rankings(keyword.competitor_rankings),
        )
        competitor_payload = dump_competitor_rankings(competitors)
        checked_at = utc_now()

        try:
            self.keyword_repo.update_no_commit(keyword, {
                "ranking_position": position,
                "first_position": first,
                "best_position": best,
                "previous_position": previous,
                "found_url": found_url,
                "competitor_rankings": competitor_payload,
                "serp_results": [r.model_dump() for r in results],
                "last_checked_at": checked_at,
            })
            self.history_repo.create_no_commit(
                keyword_id=keyword.id,
                user_id=keyword.user_id,
                ranking_position=position,
                found_url=found_url,
                competitor_rankings=competitor_payload,
                checked_at=checked_at,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Keyword %s %r: position %s (previous %s, best %s) among %s results",
            keyword.id, keyword.keyword, position, previous, best, len(results),
        )
        return keyword

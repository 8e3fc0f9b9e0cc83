import logging
import math
import time
from typing import List, Optional

from src.config.config import XmlRiverConfig
from src.gateways.xmlriver import XmlRiverGateway
from src.schemas.ranking import SerpResult
from src.utils.constants import XmlRiverConst
from src.utils.decorators import retry_on_retryable
from src.utils.exceptions import SerpFetchError
from src.utils.serp_parser import parse_serp_xml
from src.utils.utils import clamp

logger = logging.getLogger(__name__)


class SerpService:
    def __init__(self, config: Optional[XmlRiverConfig] = None, gateway: Optional[XmlRiverGateway] = None):
        self.config = config or (gateway.config if gateway else XmlRiverConfig.from_env())
        self.gateway = gateway or XmlRiverGateway(self.config)

    def _fetch_page(
        self,
        keyword: str,
        country_id: str,
        language_code: str,
        device: str,
        page: int,
        location_id: Optional[str],
    ) -> List[SerpResult]:
        @retry_on_retryable(max_attempts=self.config.retry_attempts, base_delay=self.config.retry_base_delay)
        def _make_request():
            return self.gateway.fetch_page(keyword, country_id, language_code, device, page, location_id)

        payload = _make_request()
        start_position = (page - 1) * XmlRiverConst.RESULTS_PER_PAGE + 1
        return parse_serp_xml(payload, start_position)

    def fetch(
        self,
        keyword: str,
        country_id: str,
        language_code: str,
        device: str,
        top_results: Optional[int] = None,
        location_id: Optional[str] = None,
    ) -> List[SerpResult]:
        """
        Fetch up to ``top_results`` organic results, one 10-result page at a time.

        If page 1 fails the error propagates. A failure on a later page
        ends paging and the pages collected so far are returned.

        Returns:
            List[SerpResult]: ordered by position, at most ``top_results`` long.
        """
        top_results = int(clamp(
            top_results or XmlRiverConst.DEFAULT_TOP_RESULTS,
            XmlRiverConst.MIN_TOP_RESULTS,
            XmlRiverConst.MAX_TOP_RESULTS,
        ))
        total_pages = math.ceil(top_results / XmlRiverConst.RESULTS_PER_PAGE)
        results: List[SerpResult] = []

        for page in range(1, total_pages + 1):
            try:
                page_results = self._fetch_page(keyword, country_id, language_code, device, page, location_id)
            except SerpFetchError as e:
                if page == 1:
                    raise
                logger.warning(
                    "Page %s/%s failed for %r, keeping %s results from earlier pages: %s",
                    page, total_pages, keyword, len(results), e,
                )
                break

            results.extend(page_results)
            logger.info("Page %s/%s for %r: %s results, total %s", page, total_pages, keyword, len(page_results), len(results))

            if len(results) >= top_results:
                break
            if page < total_pages and self.config.page_delay > 0:
                time.sleep(self.config.page_delay)

        return results[:top_results]

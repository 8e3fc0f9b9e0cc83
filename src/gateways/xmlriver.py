import logging
import threading
from typing import Optional

import httpx

from src.config.config import XmlRiverConfig
from src.utils.constants import XmlRiverConst
from src.utils.exceptions import (
    AuthInvalidError,
    FetchTimeoutError,
    RateLimitedOrBlockedError,
    UnknownUpstreamError,
    UpstreamMaintenanceError,
)
from src.utils.serp_parser import check_api_error

logger = logging.getLogger(__name__)

_shared_client: Optional[httpx.Client] = None
_shared_client_lock = threading.Lock()


def get_shared_client() -> httpx.Client:
    """Connection pool reused by every gateway that is not handed a client."""
    global _shared_client
    with _shared_client_lock:
        if _shared_client is None or _shared_client.is_closed:
            _shared_client = httpx.Client()
        return _shared_client


def close_shared_client() -> None:
    global _shared_client
    with _shared_client_lock:
        if _shared_client is not None:
            _shared_client.close()
            logger.info("Closed shared XMLRiver HTTP client")
        _shared_client = None


class XmlRiverGateway:
    """HTTP client for one page of XMLRiver Google results.

    Transport failures and error payloads leave this class only as
    ``SerpFetchError`` subclasses.
    """

    def __init__(self, config: Optional[XmlRiverConfig] = None, client: Optional[httpx.Client] = None):
        self.config = config or XmlRiverConfig.from_env()
        self.client = client or get_shared_client()

    def _build_params(
        self,
        query: str,
        country_id: str,
        language_code: str,
        device: str,
        page: int,
        location_id: Optional[str] = None,
    ) -> dict:
        params = {
            "user": self.config.user_id,
            "key": self.config.api_key,
            "query": query,
            "country": country_id,
            "lr": language_code,
            "device": device if device in XmlRiverConst.DEVICES else XmlRiverConst.DEVICES[0],
            "groupby": str(XmlRiverConst.RESULTS_PER_PAGE),
            "page": str(page),
            "domain": XmlRiverConst.GOOGLE_DOMAIN_ID,
        }
        if location_id:
            params["loc"] = location_id
        return params

    def fetch_page(
        self,
        query: str,
        country_id: str,
        language_code: str,
        device: str,
        page: int,
        location_id: Optional[str] = None,
    ) -> str:
        if not self.config.user_id or not self.config.api_key:
            raise AuthInvalidError("SERP API credentials not configured")

        params = self._build_params(query, country_id, language_code, device, page, location_id)
        logger.debug("Fetching page %s for %r (country=%s, lr=%s, device=%s)", page, query, country_id, language_code, device)

        try:
            response = self.client.get(self.config.base_url, params=params, timeout=self.config.page_timeout)
        except httpx.TimeoutException as e:
            raise FetchTimeoutError(f"Page {page} timed out after {self.config.page_timeout:.0f}s") from e
        except httpx.RequestError as e:
            raise UnknownUpstreamError(f"Request failed: {e}", retryable=True) from e

        self._raise_for_status(response)
        payload = response.text
        check_api_error(payload)
        return payload

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        code = response.status_code
        if code < 400:
            return
        if code == 429:
            raise RateLimitedOrBlockedError("HTTP 429 Too Many Requests", code=str(code), retryable=True)
        if code in (401, 403):
            raise AuthInvalidError(f"HTTP {code}", code=str(code))
        if code == 503:
            raise UpstreamMaintenanceError("HTTP 503 Service Unavailable", code=str(code))
        raise UnknownUpstreamError(f"HTTP {code}", code=str(code), retryable=code >= 500)

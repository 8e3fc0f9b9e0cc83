"""Parser for XMLRiver Google SERP payloads.

A results page looks like::

    <yandexsearch><response><results><grouping>
      <group><doc>
        <contenttype>organic</contenttype>
        <url>https://example.com/</url>
        <title><![CDATA[Best <hlword>shoes</hlword>]]></title>
        <passage>...</passage>
        <breadcrumbs>example.com › shoes</breadcrumbs>
      </doc></group>
    </grouping></results></response></yandexsearch>

Payloads are not always well-formed XML (stray ``&`` in passages, HTML inside
CDATA), so blocks are located with regular expressions and only the text of
each field goes through BeautifulSoup.

Only docs tagged ``<contenttype>organic</contenttype>`` are kept. Ads, maps
and other blocks sometimes arrive without the tag, so a missing or empty tag
means the doc is skipped and takes no position.
"""
import html
import re
from typing import Dict, List, Optional, Tuple, Type

from bs4 import BeautifulSoup

from src.schemas.ranking import SerpResult
from src.utils.exceptions import (
    AuthInvalidError,
    EmptyQueryError,
    NoResultsError,
    RateLimitedOrBlockedError,
    SerpFetchError,
    UnknownUpstreamError,
    UpstreamMaintenanceError,
)

ORGANIC = "organic"

_DOC_RE = re.compile(r'<doc\b[^>]*>([\s\S]*?)</doc>', re.IGNORECASE)
_CDATA_RE = re.compile(r'<!\[CDATA\[([\s\S]*?)\]\]>')
_ERROR_WITH_CODE_RE = re.compile(r'<error\s+code="(\d+)"[^>]*>([\s\S]*?)</error>', re.IGNORECASE)
_ERROR_RE = re.compile(r'<error\b[^>]*>([\s\S]*?)</error>', re.IGNORECASE)

# code -> (error class, message, retryable)
SERP_API_ERRORS: Dict[str, Tuple[Type[SerpFetchError], str, bool]] = {
    "2": (EmptyQueryError, "Empty keyword provided", False),
    "15": (NoResultsError, "No search results for this keyword", False),
    "31": (AuthInvalidError, "API user not registered", False),
    "42": (AuthInvalidError, "Invalid API key", False),
    "45": (RateLimitedOrBlockedError, "IP address is blocked", False),
    "101": (UpstreamMaintenanceError, "Service under maintenance", True),
    "110": (RateLimitedOrBlockedError, "All available channels are busy", True),
    "111": (RateLimitedOrBlockedError, "No free data collection channels", True),
    "115": (RateLimitedOrBlockedError, "Too many parallel requests", True),
    "200": (AuthInvalidError, "Account balance is empty", False),
    "201": (UpstreamMaintenanceError, "Responses not being collected, collection paused", True),
    "202": (UnknownUpstreamError, "Request not yet processed", True),
    "203": (UnknownUpstreamError, "Retry after delay", True),
    "204": (UnknownUpstreamError, "Invalid task ID or task failed", True),
    "500": (UnknownUpstreamError, "Upstream network error", True),
}


def clean_text(raw: Optional[str]) -> str:
    """Unwrap CDATA, drop markup such as ``<hlword>`` and decode entities."""
    if not raw:
        return ""
    text = _CDATA_RE.sub(r'\1', raw)
    text = BeautifulSoup(text, "html.parser").get_text()
    return " ".join(text.split())


def clean_url(raw: Optional[str]) -> str:
    """Unwrap CDATA and decode entities such as ``&amp;`` in a result URL."""
    if not raw:
        return ""
    return html.unescape(_CDATA_RE.sub(r'\1', raw)).strip()


def _field(doc: str, tag: str) -> Optional[str]:
    match = re.search(rf'<{tag}\b[^>]*>([\s\S]*?)</{tag}>', doc, re.IGNORECASE)
    if match is None:
        return None
    return match.group(1).strip()


def error_from_code(code: str, upstream_message: str = "") -> SerpFetchError:
    known = SERP_API_ERRORS.get(code)
    if known is None:
        message = f"API error {code}: {upstream_message}".strip().rstrip(":")
        return UnknownUpstreamError(message, code=code, retryable=False)
    error_class, message, retryable = known
    return error_class(message, code=code, retryable=retryable)


def check_api_error(payload: str) -> None:
    """Raise the mapped ``SerpFetchError`` if *payload* is an error response."""
    match = _ERROR_WITH_CODE_RE.search(payload)
    if match:
        raise error_from_code(match.group(1), clean_text(match.group(2)))

    match = _ERROR_RE.search(payload)
    if match:
        raise UnknownUpstreamError(f"API error: {clean_text(match.group(1))}")


def parse_serp_xml(payload: str, start_position: int) -> List[SerpResult]:
    check_api_error(payload)

    results: List[SerpResult] = []
    position = start_position
    for match in _DOC_RE.finditer(payload):
        doc = match.group(1)

        content_type = _field(doc, "contenttype")
        if clean_text(content_type).lower() != ORGANIC:
            continue

        url = clean_url(_field(doc, "url"))
        if not url:
            continue

        results.append(
            SerpResult(
                position=position,
                url=url,
                title=clean_text(_field(doc, "title")),
                description=clean_text(_field(doc, "passage")),
                breadcrumbs=(_field(doc, "breadcrumbs") or "").strip(),
            )
        )
        position += 1

    return results

"""Domain canonicalisation and lookup of a domain inside a SERP.

Matching is deliberately loose: a tracked ``example.com`` also matches
``shop.example.com`` or ``example.com.vn`` because either normalized form may
contain the other. Nothing here raises; unparsable input simply never matches.
"""
import re
from typing import Iterable, Optional, Tuple
from urllib.parse import urlparse

from src.schemas.ranking import SerpResult

_SCHEME_RE = re.compile(r'^[a-z][a-z0-9+.-]*://', re.IGNORECASE)


def _strip_manually(raw: str) -> str:
    host = _SCHEME_RE.sub('', raw)
    host = re.split(r'[/?#]', host, maxsplit=1)[0]
    host = host.rsplit('@', 1)[-1].split(':')[0]
    return host


def normalize_domain(raw: Optional[str]) -> str:
    if not isinstance(raw, str):
        return ''
    raw = raw.strip()
    if not raw:
        return ''

    candidate = raw if _SCHEME_RE.match(raw) else f'https://{raw}'
    try:
        host = urlparse(candidate).hostname or ''
    except ValueError:
        host = ''
    if not host:
        host = _strip_manually(raw)

    host = host.strip().lower().rstrip('.')
    if host.startswith('www.'):
        host = host[4:]
    return host


def domain_matches(result_url: Optional[str], target: Optional[str]) -> bool:
    result_domain = normalize_domain(result_url)
    target_domain = normalize_domain(target)
    if not result_domain or not target_domain:
        return False
    return (
        result_domain == target_domain
        or target_domain in result_domain
        or result_domain in target_domain
    )


def find_target_ranking(
    results: Iterable[SerpResult], target: Optional[str]
) -> Tuple[Optional[int], Optional[str]]:
    """Return ``(position, url)`` of the first result matching *target*."""
    if not normalize_domain(target):
        return None, None
    for result in results:
        if domain_matches(result.url, target):
            return result.position, result.url
    return None, None

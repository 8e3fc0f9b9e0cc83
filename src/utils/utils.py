import base64
import hashlib
import hmac
import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

import jwt

from src.config.config import get_env


def clamp(value: float, min_value: float = 0.0, max_value: float = 10.0) -> float:
    """
    Keep `value` within [min_value, max_value].

    Args:
        value (float): Number to limit.
        min_value (float): Lower bound.
        max_value (float): Upper bound.

    Returns:
        float: The clamped value.
    """
    return max(min_value, min(value, max_value))


def utc_now() -> datetime:
    """Naive UTC timestamp, the form every DateTime column is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def credits_needed(top_results: Optional[int], keyword_count: int) -> int:
    """One credit per upstream page (10 results) per keyword."""
    tier = top_results or 100
    return math.ceil(tier / 10) * keyword_count


def dedupe_preserving_order(values: Iterable[Any]) -> List[Any]:
    seen = set()
    out = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        out.append(value)
    return out


def parse_schedule_hour(schedule_time: Optional[str], default: str = "08:00") -> int:
    """``"HH:MM"`` -> HH. Unparsable values fall back to *default*."""
    for candidate in (schedule_time, default):
        try:
            hour = int((candidate or "").split(":")[0])
        except ValueError:
            continue
        if 0 <= hour <= 23:
            return hour
    return 0


def sign_fields(fields: Iterable[Tuple[str, Any]], secret_key: str) -> str:
    """HMAC-SHA256 over ``k=v`` pairs joined by commas, base64 encoded."""
    message = ",".join(f"{key}={'' if value is None else value}" for key, value in fields)
    digest = hmac.new(secret_key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def encode_jwt(data: Dict[str, Any]) -> str:
    return jwt.encode(
        data,
        get_env("SECRET_KEY"),
        algorithm=get_env("ALGORITHM", "HS256"),
    )


def decode_jwt(token: str) -> Dict[str, Any]:
    return jwt.decode(
        token,
        get_env("SECRET_KEY"),
        algorithms=[get_env("ALGORITHM", "HS256")],
    )

import os
from dataclasses import dataclass, field
from typing import List
from dotenv import load_dotenv
load_dotenv()

def get_database_url():
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url

    MYSQL_USER = os.getenv("MYSQL_USER")
    MYSQL_PASSWORD = os.getenv("MYSQL_PASSWORD")
    MYSQL_HOST = os.getenv("MYSQL_HOST", "mysql")
    MYSQL_PORT = os.getenv("MYSQL_PORT", "3306")
    MYSQL_DATABASE = os.getenv("MYSQL_DATABASE")

    if not MYSQL_USER or not MYSQL_PASSWORD or not MYSQL_HOST or not MYSQL_DATABASE:
        raise ValueError("Missing required database environment variables")

    return f"mysql+mysqlconnector://{MYSQL_USER}:{MYSQL_PASSWORD}@{MYSQL_HOST}:{MYSQL_PORT}/{MYSQL_DATABASE}"

def get_env(key: str, default: str = None, required: bool = False) -> str:
    value = os.getenv(key, default)
    if required and not value:
        raise ValueError(f"Missing required environment variable: {key}")
    return value

class Settings:
    def __init__(self):
        self._cache = {}

    def get(self, key: str, default: str = None) -> str:
        if key not in self._cache:
            self._cache[key] = os.getenv(key, default)
        return self._cache[key]

settings = Settings()


@dataclass
class XmlRiverConfig:
    """Credentials and pacing for the XMLRiver Google SERP API."""
    user_id: str = ""
    api_key: str = ""
    base_url: str = "https://xmlriver.com/search/xml"
    page_timeout: float = 90.0
    page_delay: float = 0.5
    retry_attempts: int = 3
    retry_base_delay: float = 1.0

    @classmethod
    def from_env(cls) -> "XmlRiverConfig":
        return cls(
            user_id=get_env("XMLRIVER_USER_ID", ""),
            api_key=get_env("XMLRIVER_API_KEY", ""),
            base_url=get_env("XMLRIVER_BASE_URL", cls.base_url),
            page_timeout=float(get_env("XMLRIVER_PAGE_TIMEOUT", "90")),
            page_delay=float(get_env("XMLRIVER_PAGE_DELAY", "0.5")),
            retry_attempts=int(get_env("XMLRIVER_RETRY_ATTEMPTS", "3")),
            retry_base_delay=float(get_env("XMLRIVER_RETRY_BASE_DELAY", "1.0")),
        )


@dataclass
class RankingConfig:
    batch_size: int = 10
    keyword_delay: float = 0.3
    timezone: str = "Asia/Ho_Chi_Minh"
    service_key: str = ""
    claim_timeout: float = 1800.0

    @classmethod
    def from_env(cls) -> "RankingConfig":
        return cls(
            batch_size=int(get_env("RANKING_BATCH_SIZE", "10")),
            keyword_delay=float(get_env("RANKING_KEYWORD_DELAY", "0.3")),
            timezone=get_env("RANKING_TIMEZONE", "Asia/Ho_Chi_Minh"),
            service_key=get_env("INTERNAL_SERVICE_KEY", ""),
            claim_timeout=float(get_env("RANKING_CLAIM_TIMEOUT", "1800")),
        )


@dataclass
class SepayConfig:
    merchant_id: str = ""
    secret_key: str = ""
    checkout_url: str = "https://pay.sepay.vn/v1/checkout/init"
    default_origin: str = "http://localhost:5173"
    allowed_origins: List[str] = field(default_factory=list)

    @classmethod
    def from_env(cls) -> "SepayConfig":
        origins = get_env("SEPAY_ALLOWED_ORIGINS", "") or ""
        allowed = [o.strip().rstrip("/") for o in origins.split(",") if o.strip()]
        return cls(
            merchant_id=get_env("SEPAY_MERCHANT_ID", ""),
            secret_key=get_env("SEPAY_SECRET_KEY", ""),
            checkout_url=get_env("SEPAY_CHECKOUT_URL", cls.checkout_url),
            default_origin=get_env("FRONTEND_ORIGIN", cls.default_origin),
            allowed_origins=allowed,
        )

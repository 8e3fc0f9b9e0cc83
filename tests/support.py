"""Shared builders for the unit tests: an in-memory database, seed rows and a
fake XMLRiver endpoint."""
from typing import Callable, Dict, List, Optional

import httpx
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.config.config import RankingConfig, XmlRiverConfig
from src.config.database import Base
from src.gateways.xmlriver import XmlRiverGateway
from src.models import Keyword, ProjectClass, UserCredit
from src.services.serp import SerpService
from src.utils.utils import utc_now

USER_ID = "5f3c9a1e-0000-4000-8000-000000000001"


def make_session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def make_class(db, user_id: str = USER_ID, **overrides) -> ProjectClass:
    values = dict(
        user_id=user_id,
        name="Shoes VN",
        domain="example.com",
        competitor_domains=["rival.com"],
        country_id="2704",
        language_code="vi",
        device="desktop",
        top_results=100,
        schedule=None,
        schedule_time="08:00",
        created_at=utc_now(),
        updated_at=utc_now(),
    )
    values.update(overrides)
    project_class = ProjectClass(**values)
    db.add(project_class)
    db.commit()
    db.refresh(project_class)
    return project_class


def make_keywords(db, project_class: ProjectClass, count: int, prefix: str = "keyword") -> List[Keyword]:
    keywords = [
        Keyword(class_id=project_class.id, user_id=project_class.user_id, keyword=f"{prefix} {i}")
        for i in range(count)
    ]
    db.add_all(keywords)
    db.commit()
    return keywords


def fund(db, user_id: str, balance: int) -> UserCredit:
    account = UserCredit(user_id=user_id, balance=balance, total_purchased=balance, total_used=0, updated_at=utc_now())
    db.add(account)
    db.commit()
    return account


def serp_page(urls: List[str], extra_docs: str = "") -> str:
    docs = "".join(
        f"<group><doc><contenttype>organic</contenttype><url>{url}</url>"
        f"<title><![CDATA[Result for <hlword>{i}</hlword>]]></title>"
        f"<passage>Passage {i}</passage><breadcrumbs>{url}</breadcrumbs></doc></group>"
        for i, url in enumerate(urls)
    )
    return (
        "<?xml version=\"1.0\" encoding=\"utf-8\"?><yandexsearch><response><results><grouping>"
        f"{extra_docs}{docs}</grouping></results></response></yandexsearch>"
    )


def error_page(code: str, message: str = "error") -> str:
    return f"<yandexsearch><response><error code=\"{code}\">{message}</error></response></yandexsearch>"


def xmlriver_config(**overrides) -> XmlRiverConfig:
    values = dict(
        user_id="1234",
        api_key="test-key",
        base_url="https://xmlriver.test/search/xml",
        page_timeout=5.0,
        page_delay=0,
        retry_attempts=3,
        retry_base_delay=0,
    )
    values.update(overrides)
    return XmlRiverConfig(**values)


def ranking_config(**overrides) -> RankingConfig:
    values = dict(batch_size=10, keyword_delay=0, timezone="Asia/Ho_Chi_Minh", service_key="test-service-key")
    values.update(overrides)
    return RankingConfig(**values)


def fake_serp_service(
    handler: Callable[[httpx.Request], httpx.Response],
    config: Optional[XmlRiverConfig] = None,
) -> SerpService:
    config = config or xmlriver_config()
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return SerpService(config=config, gateway=XmlRiverGateway(config, client=client))


def pages_handler(pages: Dict[int, str], calls: Optional[list] = None):
    """MockTransport handler serving ``pages[page]`` and recording requests."""
    def handler(request: httpx.Request) -> httpx.Response:
        page = int(request.url.params["page"])
        if calls is not None:
            calls.append(dict(request.url.params))
        return httpx.Response(200, text=pages.get(page, serp_page([])))
    return handler

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.utils.constants import JobStatusConst, ProcessStatusConst


class SerpResult(BaseModel):
    """One organic search result; ``position`` is 1-based among organic entries."""
    position: int
    title: str = ""
    url: str
    description: str = ""
    breadcrumbs: str = ""


class CompetitorRanking(BaseModel):
    position: Optional[int] = None
    url: Optional[str] = None
    first_position: Optional[int] = None
    best_position: Optional[int] = None
    previous_position: Optional[int] = None

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def from_stored(cls, value: Any) -> "CompetitorRanking":
        # Older rows stored a bare position number per competitor domain
        if isinstance(value, bool):
            return cls()
        if isinstance(value, (int, float)):
            return cls(position=int(value))
        if isinstance(value, dict):
            return cls.model_validate(value)
        return cls()


def load_competitor_rankings(raw: Any) -> Dict[str, CompetitorRanking]:
    if not isinstance(raw, dict):
        return {}
    return {domain: CompetitorRanking.from_stored(value) for domain, value in raw.items()}


def dump_competitor_rankings(rankings: Dict[str, CompetitorRanking]) -> Dict[str, Dict[str, Any]]:
    return {domain: ranking.model_dump() for domain, ranking in rankings.items()}


class RankingJobCreate(BaseModel):
    class_id: int
    keyword_ids: Optional[List[int]] = Field(default=None, max_length=1000)


class RankingJobOut(BaseModel):
    id: int
    class_id: int
    user_id: str
    keyword_ids: Optional[List[int]] = None
    total_keywords: int
    processed_keywords: int
    status: JobStatusConst
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RankingJobAccepted(BaseModel):
    job_id: int
    class_id: int
    total_keywords: int
    status: JobStatusConst


class ProcessResult(BaseModel):
    status: ProcessStatusConst
    job_id: Optional[int] = None
    processed: int = 0
    total: int = 0
    checked: int = 0
    skipped: int = 0
    message: Optional[str] = None


class AdHocCheckRequest(BaseModel):
    keyword: str = Field(min_length=1, max_length=255)
    target_url: Optional[str] = None
    country_id: str = Field(min_length=1, max_length=20)
    country_name: Optional[str] = None
    location_id: Optional[str] = None
    location_name: Optional[str] = None
    language_code: str = Field(min_length=1, max_length=10)
    language_name: Optional[str] = None
    device: str = "desktop"
    top_results: int = 100


class AdHocCheckOut(BaseModel):
    check_id: int
    results: List[SerpResult]
    target_ranking: Optional[int] = None
    found_url: Optional[str] = None
    total_results: int
    credits_used: int


class RankingCheckOut(BaseModel):
    id: int
    keyword: str
    target_url: Optional[str] = None
    country_id: str
    country_name: Optional[str] = None
    location_id: Optional[str] = None
    location_name: Optional[str] = None
    language_code: str
    language_name: Optional[str] = None
    device: str
    top_results: int
    ranking_position: Optional[int] = None
    found_url: Optional[str] = None
    serp_results: Optional[List[SerpResult]] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ScheduledCheckResult(BaseModel):
    checked_count: int = 0
    enqueued_count: int = 0
    skipped_count: int = 0
    job_ids: List[int] = Field(default_factory=list)

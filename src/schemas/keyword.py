from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .ranking import CompetitorRanking, SerpResult, load_competitor_rankings


class KeywordBulkCreate(BaseModel):
    keywords: List[str] = Field(..., max_length=1000)


class KeywordBulkResult(BaseModel):
    inserted: int
    skipped: int


class KeywordOut(BaseModel):
    id: int
    class_id: int
    keyword: str
    ranking_position: Optional[int] = None
    first_position: Optional[int] = None
    best_position: Optional[int] = None
    previous_position: Optional[int] = None
    found_url: Optional[str] = None
    competitor_rankings: Dict[str, CompetitorRanking] = Field(default_factory=dict)
    last_checked_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("competitor_rankings", mode="before")
    @classmethod
    def _normalize_competitors(cls, value):
        return load_competitor_rankings(value)


class KeywordDetailOut(KeywordOut):
    serp_results: List[SerpResult] = Field(default_factory=list)

    @field_validator("serp_results", mode="before")
    @classmethod
    def _default_results(cls, value):
        return value or []


class RankingHistoryOut(BaseModel):
    id: int
    keyword_id: int
    ranking_position: Optional[int] = None
    found_url: Optional[str] = None
    competitor_rankings: Dict[str, CompetitorRanking] = Field(default_factory=dict)
    checked_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("competitor_rankings", mode="before")
    @classmethod
    def _normalize_competitors(cls, value):
        return load_competitor_rankings(value)

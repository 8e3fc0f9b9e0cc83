from fastapi import APIRouter, Depends, status

from src.schemas import KeywordBulkCreate, KeywordBulkResult, KeywordOut, KeywordDetailOut, RankingHistoryOut, TokenInfo
from src.services import KeywordService
from src.utils.dependencies import get_service, get_current_user

router = APIRouter(tags=["keywords"])

KeywordServiceDep = Depends(get_service(KeywordService))


@router.post("/classes/{class_id}/keywords/", response_model=KeywordBulkResult, status_code=status.HTTP_201_CREATED)
def add_keywords(
    class_id: int,
    keywords_in: KeywordBulkCreate,
    service: KeywordService = KeywordServiceDep,
    token: TokenInfo = Depends(get_current_user),
):
    return service.add_keywords(class_id, keywords_in.keywords, token.id)


@router.get("/classes/{class_id}/keywords/", response_model=list[KeywordOut])
def list_keywords(
    class_id: int,
    service: KeywordService = KeywordServiceDep,
    token: TokenInfo = Depends(get_current_user),
):
    return service.list_keywords(class_id, token.id)


@router.get("/keywords/{keyword_id}/", response_model=KeywordDetailOut)
def read_keyword(
    keyword_id: int,
    service: KeywordService = KeywordServiceDep,
    token: TokenInfo = Depends(get_current_user),
):
    return service.get_keyword(keyword_id, token.id)


@router.get("/keywords/{keyword_id}/history/", response_model=list[RankingHistoryOut])
def read_keyword_history(
    keyword_id: int,
    skip: int = 0,
    limit: int | None = 100,
    service: KeywordService = KeywordServiceDep,
    token: TokenInfo = Depends(get_current_user),
):
    return service.get_history(keyword_id, token.id, skip=skip, limit=limit)

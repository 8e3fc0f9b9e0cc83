from fastapi import APIRouter, Depends

from src.schemas import CreditAdjustRequest, CreditAdjustResult, CreditBalanceOut, CreditTransactionOut, TokenInfo
from src.services import CreditService
from src.utils.dependencies import get_service, get_current_user, require_admin

router = APIRouter(prefix="/credits", tags=["credits"])

CreditServiceDep = Depends(get_service(CreditService))


@router.get("/", response_model=CreditBalanceOut)
def read_balance(
    service: CreditService = CreditServiceDep,
    token: TokenInfo = Depends(get_current_user),
):
    account = service.get_account(token.id)
    if account is None:
        return CreditBalanceOut(user_id=token.id)
    return account


@router.get("/transactions/", response_model=list[CreditTransactionOut])
def list_transactions(
    skip: int = 0,
    limit: int | None = 50,
    service: CreditService = CreditServiceDep,
    token: TokenInfo = Depends(get_current_user),
):
    return service.list_transactions(token.id, skip=skip, limit=limit)


@router.post("/adjust/", response_model=CreditAdjustResult)
def adjust_credits(
    adjust_in: CreditAdjustRequest,
    service: CreditService = CreditServiceDep,
    admin: TokenInfo = Depends(require_admin),
):
    return service.adjust(
        admin_id=admin.id,
        user_id=adjust_in.user_id,
        amount=adjust_in.amount,
        reason=adjust_in.reason,
        confirmation=adjust_in.confirmation,
    )

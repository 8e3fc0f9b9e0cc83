from typing import Optional

from fastapi import APIRouter, Depends, Header

from src.schemas import CheckoutOut, OrderCreate, SepayWebhookPayload, TokenInfo, WebhookAck
from src.services import BillingService
from src.utils.dependencies import get_service, get_current_user

router = APIRouter(prefix="/billing", tags=["billing"])

BillingServiceDep = Depends(get_service(BillingService))


@router.post("/orders/", response_model=CheckoutOut)
def create_order(
    order_in: OrderCreate,
    referer: Optional[str] = Header(default=None),
    service: BillingService = BillingServiceDep,
    token: TokenInfo = Depends(get_current_user),
):
    return service.create_order(token.id, order_in.package_id, referer=referer)


@router.post("/sepay-webhook/", response_model=WebhookAck)
def sepay_webhook(
    payload: SepayWebhookPayload,
    service: BillingService = BillingServiceDep,
):
    """Called by SePay, authenticated by the payload signature rather than a bearer token."""
    return service.handle_webhook(payload)

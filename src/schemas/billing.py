from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class OrderCreate(BaseModel):
    package_id: str


class CheckoutOut(BaseModel):
    success: bool = True
    order_id: int
    order_invoice_number: str
    checkout_action: str
    form_data: Dict[str, str]


class SepayOrder(BaseModel):
    id: Optional[str] = None
    order_id: Optional[str] = None
    order_status: Optional[str] = None
    order_currency: Optional[str] = None
    order_amount: Optional[Union[str, int]] = None
    order_invoice_number: Optional[str] = None
    order_description: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class SepayTransaction(BaseModel):
    id: Optional[str] = None
    transaction_id: Optional[str] = None
    transaction_status: Optional[str] = None
    transaction_amount: Optional[Union[str, int]] = None

    model_config = ConfigDict(extra="allow")


class SepayWebhookPayload(BaseModel):
    """Inbound SePay notification; only ``ORDER_PAID`` is acted on."""
    notification_type: str
    timestamp: Optional[Union[int, str]] = None
    signature: Optional[str] = None
    order: Optional[SepayOrder] = None
    transaction: Optional[SepayTransaction] = None
    customer: Optional[Any] = None

    model_config = ConfigDict(extra="allow")


class WebhookAck(BaseModel):
    success: bool = True
    message: Optional[str] = Field(default=None)

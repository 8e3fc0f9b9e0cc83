import hmac
import logging
import re
import time
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from urllib.parse import urlparse

from sqlalchemy.orm import Session

from src.config.config import SepayConfig
from src.repositories import BillingOrderRepository
from src.schemas import CheckoutOut, SepayWebhookPayload, WebhookAck
from src.services.credit import CreditService
from src.utils.constants import PRICING_PACKAGES, OrderStatusConst, SepayConst
from src.utils.exceptions import (
    InvalidPackageError,
    InvalidSignatureError,
    InvalidWebhookError,
    OrderNotFoundError,
    PaymentNotConfiguredError,
)
from src.utils.utils import sign_fields, utc_now

logger = logging.getLogger(__name__)

_INVOICE_RE = re.compile(SepayConst.INVOICE_PATTERN)


def webhook_signature_fields(payload: SepayWebhookPayload):
    order = payload.order
    transaction = payload.transaction
    values = {
        "notification_type": payload.notification_type,
        "order_id": order.order_id if order else None,
        "order_invoice_number": order.order_invoice_number if order else None,
        "order_amount": order.order_amount if order else None,
        "order_status": order.order_status if order else None,
        "transaction_id": transaction.transaction_id if transaction else None,
        "timestamp": payload.timestamp,
    }
    return [(name, values[name] or "") for name in SepayConst.WEBHOOK_SIGNED_FIELDS]


class BillingService:
    """Credit package checkout through SePay and settlement of its webhooks."""

    def __init__(self, db: Session, config: Optional[SepayConfig] = None):
        self.db = db
        self.config = config or SepayConfig.from_env()
        self.order_repo = BillingOrderRepository(db)
        self.credit_service = CreditService(db)

    def _return_origin(self, referer: Optional[str]) -> str:
        if referer:
            parsed = urlparse(referer)
            origin = f"{parsed.scheme}://{parsed.netloc}" if parsed.scheme and parsed.netloc else ""
            if origin and origin in self.config.allowed_origins:
                return origin
        return self.config.default_origin.rstrip("/")

    def create_order(self, user_id: str, package_id: str, referer: Optional[str] = None) -> CheckoutOut:
        package = PRICING_PACKAGES.get(package_id)
        if package is None:
            raise InvalidPackageError(package_id)
        if not self.config.merchant_id or not self.config.secret_key:
            raise PaymentNotConfiguredError()

        invoice_number = f"ORD-{user_id[:8].upper()}-{int(time.time() * 1000)}"
        order = self.order_repo.create(
            user_id=user_id,
            invoice_number=invoice_number,
            package_id=package_id,
            amount=package["price"],
            credits=package["credits"],
        )

        base_origin = self._return_origin(referer)
        expire_on = (datetime.now(timezone.utc) + timedelta(minutes=SepayConst.ORDER_TTL_MINUTES)).strftime("%Y-%m-%d %H:%M:%S")
        form_data: Dict[str, str] = {
            "merchant": self.config.merchant_id,
            "currency": SepayConst.CURRENCY,
            "operation": SepayConst.OPERATION,
            "order_amount": str(package["price"]),
            "order_description": f"Purchase {package['credits']} credits - {package['name']} package",
            "order_invoice_number": invoice_number,
            "expire_on": expire_on,
            "success_url": f"{base_origin}/dashboard/billing?payment=success",
            "error_url": f"{base_origin}/dashboard/billing?payment=error",
            "cancel_url": f"{base_origin}/dashboard/billing?payment=cancel",
        }
        form_data["signature"] = sign_fields(
            [(name, form_data[name]) for name in SepayConst.CHECKOUT_SIGNED_FIELDS],
            self.config.secret_key,
        )

        logger.info("Created order %s for user %s, expires at %s", invoice_number, user_id, expire_on)
        return CheckoutOut(
            order_id=order.id,
            order_invoice_number=invoice_number,
            checkout_action=self.config.checkout_url,
            form_data=form_data,
        )

    def verify_signature(self, payload: SepayWebhookPayload) -> bool:
        if not payload.signature:
            return False
        expected = sign_fields(webhook_signature_fields(payload), self.config.secret_key)
        return hmac.compare_digest(expected, payload.signature)

    def handle_webhook(self, payload: SepayWebhookPayload) -> WebhookAck:
        """Settle an ``ORDER_PAID`` notification; safe to receive repeatedly."""
        invoice_number = payload.order.order_invoice_number if payload.order else None
        logger.info("Received webhook %s for order %s", payload.notification_type, invoice_number)

        if self.config.secret_key:
            if not self.verify_signature(payload):
                logger.error("Invalid webhook signature for order %s", invoice_number)
                raise InvalidSignatureError()
        else:
            logger.warning("SEPAY_SECRET_KEY not configured, skipping signature verification")

        if payload.notification_type != SepayConst.ORDER_PAID:
            return WebhookAck(message="Notification ignored")

        if not invoice_number or not _INVOICE_RE.match(invoice_number):
            raise InvalidWebhookError()
        transaction_id = payload.transaction.id if payload.transaction else None
        if not transaction_id:
            raise InvalidWebhookError("Missing transaction id")

        order = self.order_repo.get_by_invoice(invoice_number)
        if order is None:
            raise OrderNotFoundError(invoice_number)

        if order.sepay_transaction_id == transaction_id or self.credit_service.transaction_repo.get_by_reference(transaction_id):
            logger.info("Duplicate webhook for order %s (transaction %s)", invoice_number, transaction_id)
            return WebhookAck(message="Already processed")
        if order.status == OrderStatusConst.PAID.value:
            logger.warning("Order %s already paid by transaction %s, ignoring %s", invoice_number, order.sepay_transaction_id, transaction_id)
            return WebhookAck(message="Order already paid")

        try:
            if not self.order_repo.mark_paid_no_commit(
                order.id,
                sepay_order_id=payload.order.id,
                sepay_transaction_id=transaction_id,
                paid_at=utc_now(),
            ):
                self.db.rollback()
                return WebhookAck(message="Already processed")

            applied, balance = self.credit_service.credit(
                order.user_id,
                order.credits,
                reference_id=transaction_id,
                description=f"Purchased {order.credits} credits ({order.package_id} package)",
                commit=False,
            )
            if not applied:
                self.db.rollback()
                return WebhookAck(message="Already processed")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("Order %s paid, user %s credited %s, new balance %s", invoice_number, order.user_id, order.credits, balance)
        return WebhookAck()

from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from src.models import BillingOrder
from src.utils.constants import OrderStatusConst
from src.utils.utils import utc_now


class BillingOrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, order_id: int) -> Optional[BillingOrder]:
        return self.db.query(BillingOrder).filter(BillingOrder.id == order_id).first()

    def get_by_invoice(self, invoice_number: str) -> Optional[BillingOrder]:
        return (
            self.db.query(BillingOrder)
            .filter(BillingOrder.order_invoice_number == invoice_number)
            .first()
        )

    def create(self, user_id: str, invoice_number: str, package_id: str, amount: int, credits: int) -> BillingOrder:
        order = BillingOrder(
            user_id=user_id,
            order_invoice_number=invoice_number,
            package_id=package_id,
            amount=amount,
            credits=credits,
            status=OrderStatusConst.PENDING.value,
            created_at=utc_now(),
            updated_at=utc_now(),
        )
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    def mark_paid_no_commit(
        self,
        order_id: int,
        sepay_order_id: Optional[str],
        sepay_transaction_id: Optional[str],
        paid_at: Optional[datetime] = None,
    ) -> bool:
        """Flip a still-unpaid order to paid; False if it already was."""
        result = self.db.execute(
            update(BillingOrder)
            .where(BillingOrder.id == order_id, BillingOrder.status != OrderStatusConst.PAID.value)
            .values(
                status=OrderStatusConst.PAID.value,
                sepay_order_id=sepay_order_id,
                sepay_transaction_id=sepay_transaction_id,
                paid_at=paid_at or utc_now(),
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) > 0

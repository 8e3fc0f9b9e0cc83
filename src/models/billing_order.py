from sqlalchemy import Column, Integer, String, DateTime, text

from src.config.database import Base


class BillingOrder(Base):
    __tablename__ = 'billing_order'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), nullable=False, index=True)
    order_invoice_number = Column(String(40), nullable=False, unique=True, index=True)
    package_id = Column(String(20), nullable=False)
    amount = Column(Integer, nullable=False)
    credits = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, server_default=text("'pending'"))
    sepay_order_id = Column(String(100), nullable=True)
    sepay_transaction_id = Column(String(100), nullable=True, index=True)
    paid_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(DateTime, nullable=False, server_default=text('CURRENT_TIMESTAMP'))

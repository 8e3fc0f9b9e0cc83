from enum import Enum
from typing import Any, Dict


class XmlRiverConst:
    RESULTS_PER_PAGE = 10
    GOOGLE_DOMAIN_ID = "37"  # google.com
    MIN_TOP_RESULTS = 10
    MAX_TOP_RESULTS = 100
    DEFAULT_TOP_RESULTS = 100
    DEVICES = ("desktop", "phone", "tablet")


class JobStatusConst(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def active(cls) -> tuple:
        return (cls.PENDING.value, cls.PROCESSING.value)


class ProcessStatusConst(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ScheduleConst(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


DEFAULT_SCHEDULE_TIME = "08:00"


# Minimum hours since the last check before a cadence fires again. Each is one
# hour short of the nominal period so an hourly trigger never drifts past it.
SCHEDULE_MIN_ELAPSED_HOURS: Dict[str, int] = {
    ScheduleConst.DAILY.value: 23,
    ScheduleConst.WEEKLY.value: 167,
    ScheduleConst.MONTHLY.value: 719,
}
WEEKLY_ANCHOR_WEEKDAY = 0  # Monday
MONTHLY_ANCHOR_DAY = 1


class CreditTransactionType(str, Enum):
    PURCHASE = "purchase"
    USAGE = "usage"
    REFUND = "refund"
    ADMIN_ADD = "admin_add"
    ADMIN_DEDUCT = "admin_deduct"


class OrderStatusConst(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class SepayConst:
    ORDER_PAID = "ORDER_PAID"
    CURRENCY = "VND"
    OPERATION = "PURCHASE"
    ORDER_TTL_MINUTES = 30
    INVOICE_PATTERN = r"^ORD-[A-F0-9]{8}-\d{13}$"
    WEBHOOK_SIGNED_FIELDS = (
        "notification_type",
        "order_id",
        "order_invoice_number",
        "order_amount",
        "order_status",
        "transaction_id",
        "timestamp",
    )
    CHECKOUT_SIGNED_FIELDS = (
        "merchant",
        "currency",
        "operation",
        "order_amount",
        "order_description",
        "order_invoice_number",
        "expire_on",
        "success_url",
        "error_url",
        "cancel_url",
    )


PRICING_PACKAGES: Dict[str, Dict[str, Any]] = {
    "basic": {"name": "Basic", "price": 200000, "credits": 10000},
    "pro": {"name": "Pro", "price": 500000, "credits": 28000},
    "enterprise": {"name": "Enterprise", "price": 2000000, "credits": 135000},
}


class AdminConst:
    ROLE = "admin"
    CONFIRMATION_TOKEN = "CONFIRM"
    ACTION_CREDIT_ADJUSTMENT = "credit_adjustment"

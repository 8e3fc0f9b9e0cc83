from typing import Any, Dict, Optional

from fastapi import status


class RankTrackerError(Exception):
    """Base for errors that map onto a specific HTTP response."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class ConflictError(RankTrackerError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, existing_job_id: int, job_status: str):
        super().__init__("A ranking check is already in progress for this class")
        self.existing_job_id = existing_job_id
        self.status = job_status

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "job_id": self.existing_job_id, "status": self.status}


class NoWorkError(RankTrackerError):
    def __init__(self, message: str = "No keywords to check"):
        super().__init__(message)


class ClassNotFoundError(RankTrackerError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, class_id: int):
        super().__init__("Class not found")
        self.class_id = class_id


class JobNotFoundError(RankTrackerError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, job_id: int):
        super().__init__("Job not found")
        self.job_id = job_id


class KeywordNotFoundError(RankTrackerError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, keyword_id: int):
        super().__init__("Keyword not found")
        self.keyword_id = keyword_id


class RankingCheckNotFoundError(RankTrackerError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, check_id: int):
        super().__init__("Ranking check not found")
        self.check_id = check_id


class SerpUnavailableError(RankTrackerError):
    """An interactive check whose SERP fetch failed; the credits were refunded."""
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, category: str, message: str, retryable: bool):
        super().__init__(message)
        self.category = category
        self.retryable = retryable

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "category": self.category, "retryable": self.retryable}


class InsufficientCreditsError(RankTrackerError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED

    def __init__(self, needed: int, available: int):
        super().__init__(f"Insufficient credits (need {needed}, have {available})")
        self.needed = needed
        self.available = available

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "credits_needed": self.needed,
            "credits_available": self.available,
        }


class InvalidConfirmationError(RankTrackerError):
    def __init__(self):
        super().__init__("Confirmation token is required for credit adjustments")


class InvalidAdjustmentError(RankTrackerError):
    pass


class OrderNotFoundError(RankTrackerError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, invoice_number: str):
        super().__init__("Order not found")
        self.invoice_number = invoice_number


class InvalidPackageError(RankTrackerError):
    def __init__(self, package_id: Any):
        super().__init__("Invalid package")
        self.package_id = package_id


class PaymentNotConfiguredError(RankTrackerError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self):
        super().__init__("Payment gateway not configured")


class InvalidWebhookError(RankTrackerError):
    def __init__(self, message: str = "Invalid request"):
        super().__init__(message)


class InvalidSignatureError(RankTrackerError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self):
        super().__init__("Invalid signature")


# ---------------------------------------------------------------------------
# Upstream SERP failures. ``category`` is the stable name callers log and
# branch on; ``retryable`` says whether repeating the same request can help.
# ---------------------------------------------------------------------------
class SerpFetchError(Exception):
    category = "UnknownUpstreamError"
    default_retryable = False

    def __init__(self, message: str, code: Optional[str] = None, retryable: Optional[bool] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.retryable = self.default_retryable if retryable is None else retryable

    def __str__(self) -> str:
        if self.code:
            return f"{self.category} [{self.code}]: {self.message}"
        return f"{self.category}: {self.message}"


class EmptyQueryError(SerpFetchError):
    category = "EmptyQuery"


class NoResultsError(SerpFetchError):
    category = "NoResults"


class AuthInvalidError(SerpFetchError):
    category = "AuthInvalid"


class RateLimitedOrBlockedError(SerpFetchError):
    category = "RateLimitedOrBlocked"


class UpstreamMaintenanceError(SerpFetchError):
    category = "UpstreamMaintenance"
    default_retryable = True


class FetchTimeoutError(SerpFetchError):
    category = "FetchTimeout"


class UnknownUpstreamError(SerpFetchError):
    category = "UnknownUpstreamError"

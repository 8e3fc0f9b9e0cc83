import os

# Module-level engines are built at import time; keep them off MySQL.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "unit-test-signing-secret-0123456789abcdef")
os.environ.setdefault("INTERNAL_SERVICE_KEY", "test-service-key")
os.environ.pop("SQS_JOB_QUEUE_URL", None)

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from parent directory (where main app's .env is)
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)


class WorkerConfig:
    # Database Configuration
    DATABASE_URL = os.getenv("DATABASE_URL")
    MYSQL_USER = os.getenv("MYSQL_USER")
    MYSQL_PASSWORD = os.getenv("MYSQL_PASSWORD")
    MYSQL_HOST = os.getenv("MYSQL_HOST", "mysql")
    MYSQL_PORT = os.getenv("MYSQL_PORT", "3306")
    MYSQL_DATABASE = os.getenv("MYSQL_DATABASE")

    # AWS SQS Configuration; without a queue the worker polls the database on a timer
    AWS_REGION = os.getenv("AWS_REGION", "ap-northeast-1")
    AWS_ACCESS_KEY_ID = os.getenv("AWS_ACCESS_KEY_ID")
    AWS_SECRET_ACCESS_KEY = os.getenv("AWS_SECRET_ACCESS_KEY")
    SQS_JOB_QUEUE_URL = os.getenv("SQS_JOB_QUEUE_URL")

    # Worker Configuration
    WORKER_POLL_INTERVAL = int(os.getenv("WORKER_POLL_INTERVAL", "20"))  # Long polling wait time
    WORKER_VISIBILITY_TIMEOUT = int(os.getenv("WORKER_VISIBILITY_TIMEOUT", "900"))  # 15 minutes
    WORKER_MAX_MESSAGES = int(os.getenv("WORKER_MAX_MESSAGES", "1"))
    WORKER_MAX_INVOCATIONS = int(os.getenv("WORKER_MAX_INVOCATIONS", "1000"))  # per wake-up
    WORKER_IDLE_POLL_INTERVAL = int(os.getenv("WORKER_IDLE_POLL_INTERVAL", "30"))

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    @property
    def use_sqs(self) -> bool:
        return bool(self.SQS_JOB_QUEUE_URL)

    @property
    def database_url(self):
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mysql+mysqlconnector://{self.MYSQL_USER}:{self.MYSQL_PASSWORD}@"
            f"{self.MYSQL_HOST}:{self.MYSQL_PORT}/{self.MYSQL_DATABASE}"
        )

    def validate(self):
        if self.DATABASE_URL:
            return
        required_vars = [
            ("MYSQL_USER", self.MYSQL_USER),
            ("MYSQL_PASSWORD", self.MYSQL_PASSWORD),
            ("MYSQL_DATABASE", self.MYSQL_DATABASE),
        ]

        missing = [var[0] for var in required_vars if not var[1]]

        if missing:
            raise ValueError(f"Missing required environment variables: {', '.join(missing)}")


config = WorkerConfig()

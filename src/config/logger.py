"""Logging setup shared by the API, the queue worker and the scheduler trigger.

Everything goes to stdout through the root logger; modules log with
``logging.getLogger(__name__)``.
"""

import logging
import os
import sys
from typing import Iterable, Optional

# Module and line number make it obvious which stage of the ranking pipeline
# emitted a message.
DEFAULT_FORMAT = "%(asctime)s - %(module)s:%(lineno)d - %(levelname)s - %(message)s"

NOISY_LOGGERS = ("boto3", "botocore", "urllib3", "httpx", "httpcore")


def setup_logging(
    level: int = logging.INFO,
    stream: Optional[object] = None,
    fmt: str = DEFAULT_FORMAT,
    quiet: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """Configure the root logger exactly once; safe to call repeatedly.

    * ``LOG_LEVEL`` in the environment overrides *level*.
    * Third-party client libraries in *quiet* are capped at WARNING so
      per-request chatter from SQS and the SERP API does not drown the
      job progress lines.
    """
    env_level = os.getenv("LOG_LEVEL")
    if env_level:
        level = getattr(logging, env_level.upper(), level)

    if stream is None:
        stream = sys.stdout

    root = logging.getLogger()

    if not root.handlers:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(fmt))
        root.addHandler(handler)

    # Always (re)set the level so later calls can raise/lower it
    root.setLevel(level)

    for pkg in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(pkg).handlers = root.handlers
        logging.getLogger(pkg).setLevel(level)

    for pkg in quiet:
        logging.getLogger(pkg).setLevel(logging.WARNING)

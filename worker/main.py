#!/usr/bin/env python3
"""
Main entry point for the ranking queue worker
"""
import logging
import sys
import os

# Add parent directory to path to import src modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.config.logger import setup_logging
from src.gateways.xmlriver import close_shared_client
from worker.consumer import SQSConsumer
from worker.config import config


def main():
    setup_logging(level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))
    logger = logging.getLogger(__name__)

    try:
        logger.info("Starting Ranking Queue Worker")
        logger.info(f"Environment: {os.getenv('ENVIRONMENT', 'development')}")
        logger.info(f"Queue URL: {config.SQS_JOB_QUEUE_URL or '(none, timed polling)'}")

        # Validate configuration
        config.validate()

        consumer = SQSConsumer()
        consumer.start()

    except KeyboardInterrupt:
        logger.info("Worker stopped by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Fatal error: {str(e)}", exc_info=True)
        sys.exit(1)
    finally:
        close_shared_client()


if __name__ == "__main__":
    main()

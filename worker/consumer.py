import boto3
import json
import logging
import signal
import time
from typing import Dict, Any, Optional
from botocore.exceptions import ClientError

from worker.config import config
from worker.processor import QueueRunner

logger = logging.getLogger(__name__)


class SQSConsumer:
    """Wakes the queue runner on SQS signals, or on a timer when no queue is set.

    Signals carry no work: the message is deleted as soon as it is received
    and the runner drains whatever the database says is pending. A long-poll
    that returns empty also triggers a drain so jobs left behind by a crashed
    worker are resumed.
    """

    def __init__(self, runner: Optional[QueueRunner] = None):
        self.running = True
        self.sqs_client = None
        self.queue_url = config.SQS_JOB_QUEUE_URL
        self.runner = runner or QueueRunner()
        self._setup_signal_handlers()
        if self.queue_url:
            self._initialize_sqs()

    def _setup_signal_handlers(self):
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum, frame):
        logger.info(f"Received signal {signum}. Shutting down gracefully...")
        self.running = False

    def _initialize_sqs(self):
        try:
            if config.AWS_ACCESS_KEY_ID and config.AWS_SECRET_ACCESS_KEY:
                self.sqs_client = boto3.client(
                    'sqs',
                    region_name=config.AWS_REGION,
                    aws_access_key_id=config.AWS_ACCESS_KEY_ID,
                    aws_secret_access_key=config.AWS_SECRET_ACCESS_KEY
                )
            else:
                self.sqs_client = boto3.client('sqs', region_name=config.AWS_REGION)

            logger.info("SQS client initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize SQS client: {str(e)}")
            raise

    def start(self):
        if self.sqs_client:
            logger.info(f"Starting SQS consumer, queue URL: {self.queue_url}")
            logger.info(f"Poll interval: {config.WORKER_POLL_INTERVAL}s")
        else:
            logger.info(f"No SQS queue configured, polling database every {config.WORKER_IDLE_POLL_INTERVAL}s")

        consecutive_errors = 0
        max_consecutive_errors = 10

        logger.info("Entering polling loop...")
        while self.running:
            try:
                self.poll_once()
                consecutive_errors = 0
            except KeyboardInterrupt:
                logger.info("Received keyboard interrupt, shutting down...")
                break
            except Exception as e:
                consecutive_errors += 1
                logger.error(f"Error in consumer loop: {str(e)}", exc_info=True)

                if consecutive_errors >= max_consecutive_errors:
                    logger.error(f"Too many consecutive errors ({consecutive_errors}). Shutting down.")
                    break

                wait_time = min(60, 2 ** consecutive_errors)
                logger.info(f"Waiting {wait_time}s before retry...")
                time.sleep(wait_time)

        logger.info("Consumer stopped")

    def poll_once(self) -> int:
        """Wait for one wake-up (message or timeout) and drain the queue."""
        if self.sqs_client:
            for message in self._receive_messages():
                self._acknowledge(message)
        else:
            time.sleep(config.WORKER_IDLE_POLL_INTERVAL)

        if not self.running:
            return 0
        return self.runner.drain()

    def _receive_messages(self) -> list:
        try:
            response = self.sqs_client.receive_message(
                QueueUrl=self.queue_url,
                MaxNumberOfMessages=config.WORKER_MAX_MESSAGES,
                WaitTimeSeconds=config.WORKER_POLL_INTERVAL,
                VisibilityTimeout=config.WORKER_VISIBILITY_TIMEOUT,
                MessageAttributeNames=['All'],
            )

            messages = response.get('Messages', [])
            if messages:
                logger.info(f"Received {len(messages)} message(s)")
            return messages

        except ClientError as e:
            error_code = e.response['Error']['Code']
            error_message = e.response['Error']['Message']
            logger.error(f"AWS SQS error: {error_code} - {error_message}")
            raise

    def _acknowledge(self, message: Dict[str, Any]):
        message_id = message.get('MessageId', 'unknown')
        try:
            body = json.loads(message.get('Body') or '{}')
        except json.JSONDecodeError:
            logger.warning(f"Discarding malformed message {message_id}")
            body = {}

        logger.info("=" * 60)
        logger.info(f"📥 RECEIVED WAKE-UP FROM SQS")
        logger.info(f"  Message ID: {message_id}")
        logger.info(f"  Type: {body.get('type', 'unknown')}")
        logger.info(f"  Source: {body.get('source', 'unknown')}")
        logger.info(f"  Job IDs: {body.get('job_ids', [])}")
        logger.info("=" * 60)

        self._delete_message(message['ReceiptHandle'])

    def _delete_message(self, receipt_handle: str):
        try:
            self.sqs_client.delete_message(
                QueueUrl=self.queue_url,
                ReceiptHandle=receipt_handle
            )
        except ClientError as e:
            logger.error(f"Failed to delete message: {str(e)}")
            raise

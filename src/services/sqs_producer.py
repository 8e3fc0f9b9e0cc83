import boto3
import json
import logging
import time
import uuid
from typing import Dict, Any, Optional, List
from botocore.exceptions import ClientError

from src.config.config import settings
from src.utils.utils import utc_now


logger = logging.getLogger(__name__)

PROCESS_QUEUE_MESSAGE = "process_queue"


class SQSProducerService:
    """Sends wake-up signals that tell the worker to drain the ranking queue.

    The message carries no work itself; job state lives in the database and
    the worker always picks the oldest active job.
    """

    def __init__(self):
        self.sqs_client = None
        self.job_queue_url = None
        self._initialize_sqs()

    def _initialize_sqs(self):
        try:
            aws_region = settings.get("AWS_REGION", "ap-northeast-1")
            aws_access_key = settings.get("AWS_ACCESS_KEY_ID")
            aws_secret_key = settings.get("AWS_SECRET_ACCESS_KEY")

            if aws_access_key and aws_secret_key:
                self.sqs_client = boto3.client(
                    'sqs',
                    region_name=aws_region,
                    aws_access_key_id=aws_access_key,
                    aws_secret_access_key=aws_secret_key
                )
            else:
                self.sqs_client = boto3.client('sqs', region_name=aws_region)

            self.job_queue_url = settings.get("SQS_JOB_QUEUE_URL")
            if self.job_queue_url:
                self.job_queue_url = self.job_queue_url.strip()

            logger.info(f"SQS Producer initialized: {self.job_queue_url}")

            if not self.job_queue_url:
                logger.warning("SQS_JOB_QUEUE_URL not configured")

        except Exception as e:
            logger.error(f"Failed to initialize SQS client: {str(e)}")
            raise

    def send_process_signal(self, job_ids: List[int], source: str) -> Dict[str, Any]:
        if not self.sqs_client or not self.job_queue_url:
            raise ValueError("SQS client not properly initialized")

        signal_id = str(uuid.uuid4())
        message_body = json.dumps({
            "type": PROCESS_QUEUE_MESSAGE,
            "signal_id": signal_id,
            "job_ids": job_ids,
            "source": source,
            "timestamp": utc_now().isoformat(),
        })

        send_params = {
            'QueueUrl': self.job_queue_url,
            'MessageBody': message_body,
            'MessageAttributes': {
                'message_type': {
                    'DataType': 'String',
                    'StringValue': PROCESS_QUEUE_MESSAGE
                },
                'source': {
                    'DataType': 'String',
                    'StringValue': source
                },
                'job_count': {
                    'DataType': 'Number',
                    'StringValue': str(len(job_ids))
                }
            }
        }

        if self._is_fifo_queue(self.job_queue_url):
            send_params['MessageGroupId'] = 'ranking-queue'
            send_params['MessageDeduplicationId'] = f"{signal_id}-{int(time.time() * 1000)}"

        try:
            response = self.sqs_client.send_message(**send_params)
        except ClientError as e:
            error_code = e.response['Error']['Code']
            error_message = e.response['Error']['Message']
            logger.error(f"AWS SQS error: {error_code} - {error_message}")
            raise

        logger.info(
            f"Sent process signal to SQS: source={source}, "
            f"message_id={response['MessageId']}, job_ids={job_ids}"
        )
        return {"message_id": response['MessageId'], "job_ids": job_ids, "status": "queued"}

    def _is_fifo_queue(self, queue_url: Optional[str]) -> bool:
        return bool(queue_url) and queue_url.strip().endswith('.fifo')

import json
import unittest
from unittest.mock import MagicMock, patch

from src.services.sqs_producer import SQSProducerService


def producer_for(queue_url):
    values = {"AWS_REGION": "ap-northeast-1", "SQS_JOB_QUEUE_URL": queue_url}
    settings = MagicMock()
    settings.get.side_effect = lambda key, default=None: values.get(key, default)
    client = MagicMock()
    client.send_message.return_value = {"MessageId": "msg-1"}
    with patch("src.services.sqs_producer.settings", settings), \
            patch("src.services.sqs_producer.boto3.client", return_value=client):
        producer = SQSProducerService()
    return producer, client


class TestSQSProducerService(unittest.TestCase):
    def test_fifo_queue_gets_group_and_dedup_ids(self):
        producer, client = producer_for("https://sqs.test/123/ranking.fifo ")

        result = producer.send_process_signal([4, 5], source="scheduler")

        self.assertEqual(result, {"message_id": "msg-1", "job_ids": [4, 5], "status": "queued"})
        params = client.send_message.call_args.kwargs
        self.assertEqual(params["QueueUrl"], "https://sqs.test/123/ranking.fifo")
        self.assertEqual(params["MessageGroupId"], "ranking-queue")
        self.assertIn("MessageDeduplicationId", params)
        body = json.loads(params["MessageBody"])
        self.assertEqual(body["type"], "process_queue")
        self.assertEqual(body["job_ids"], [4, 5])
        self.assertEqual(params["MessageAttributes"]["job_count"]["StringValue"], "2")

    def test_standard_queue_has_no_group(self):
        producer, client = producer_for("https://sqs.test/123/ranking")

        producer.send_process_signal([1], source="api")

        self.assertNotIn("MessageGroupId", client.send_message.call_args.kwargs)

    def test_unconfigured_queue_refuses_to_send(self):
        producer, client = producer_for(None)

        with self.assertRaises(ValueError):
            producer.send_process_signal([1], source="api")
        client.send_message.assert_not_called()

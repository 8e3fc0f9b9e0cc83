import os
import unittest
from unittest.mock import patch

import httpx
from fastapi.testclient import TestClient

from src.config.config import SepayConfig
from src.gateways.xmlriver import get_shared_client
from src.main import app
from src.routers import ranking as ranking_routes
from src.services.adhoc_check import AdHocCheckService
from src.services.billing import BillingService
from src.utils.dependencies import get_db
from src.utils.utils import encode_jwt
from tests.support import USER_ID, fake_serp_service, fund, make_class, make_keywords, make_session_factory, serp_page

SERVICE_HEADERS = {"X-Service-Key": "test-service-key"}


def bearer(user_id: str = USER_ID, role: str = "user") -> dict:
    token = encode_jwt({"sub": user_id, "email": "owner@example.com", "role": role})
    return {"Authorization": f"Bearer {token}"}


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.SessionLocal = make_session_factory()
        self.db = self.SessionLocal()

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)
        drain_patch = patch("src.routers.ranking.drain_queue")
        self.drain = drain_patch.start()
        self.addCleanup(drain_patch.stop)

    def tearDown(self):
        app.dependency_overrides.clear()
        self.db.close()


class TestRankingApi(ApiTestCase):
    """Ranking job endpoints."""

    def setUp(self):
        super().setUp()
        self.project_class = make_class(self.db)
        make_keywords(self.db, self.project_class, 3)

    def test_requires_bearer_token(self):
        response = self.client.post("/api/ranking/jobs/", json={"class_id": self.project_class.id})
        self.assertEqual(response.status_code, 401)

    def test_enqueue_then_conflict(self):
        first = self.client.post("/api/ranking/jobs/", json={"class_id": self.project_class.id}, headers=bearer())

        self.assertEqual(first.status_code, 200)
        body = first.json()
        self.assertEqual(body["total_keywords"], 3)
        self.assertEqual(body["status"], "pending")
        self.drain.assert_called_once()

        second = self.client.post("/api/ranking/jobs/", json={"class_id": self.project_class.id}, headers=bearer())

        self.assertEqual(second.status_code, 409)
        self.assertEqual(second.json(), {
            "error": "A ranking check is already in progress for this class",
            "job_id": body["job_id"],
            "status": "pending",
        })

    def test_enqueue_signals_sqs_when_configured(self):
        with patch.dict(os.environ, {"SQS_JOB_QUEUE_URL": "https://sqs.test/123/ranking.fifo"}), \
                patch("src.routers.ranking.SQSProducerService") as producer:
            response = self.client.post("/api/ranking/jobs/", json={"class_id": self.project_class.id}, headers=bearer())

        self.assertEqual(response.status_code, 200)
        producer.return_value.send_process_signal.assert_called_once_with([response.json()["job_id"]], source="api")
        self.drain.assert_not_called()

    def test_sqs_failure_falls_back_to_background_drain(self):
        with patch.dict(os.environ, {"SQS_JOB_QUEUE_URL": "https://sqs.test/123/ranking.fifo"}), \
                patch("src.routers.ranking.SQSProducerService") as producer:
            producer.return_value.send_process_signal.side_effect = RuntimeError("boom")
            response = self.client.post("/api/ranking/jobs/", json={"class_id": self.project_class.id}, headers=bearer())

        self.assertEqual(response.status_code, 200)
        self.drain.assert_called_once()

    def test_no_work_and_missing_class(self):
        empty = make_class(self.db, name="Empty")

        no_work = self.client.post("/api/ranking/jobs/", json={"class_id": empty.id}, headers=bearer())
        missing = self.client.post("/api/ranking/jobs/", json={"class_id": 999}, headers=bearer())
        foreign = self.client.post("/api/ranking/jobs/", json={"class_id": self.project_class.id}, headers=bearer("intruder"))

        self.assertEqual(no_work.status_code, 400)
        self.assertEqual(no_work.json(), {"error": "No keywords to check"})
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(foreign.status_code, 404)

    def test_job_progress_and_active_job(self):
        idle = self.client.get(f"/api/ranking/classes/{self.project_class.id}/active-job/", headers=bearer())
        self.assertEqual(idle.status_code, 200)
        self.assertIsNone(idle.json())

        job_id = self.client.post(
            "/api/ranking/jobs/", json={"class_id": self.project_class.id}, headers=bearer()
        ).json()["job_id"]

        progress = self.client.get(f"/api/ranking/jobs/{job_id}/", headers=bearer())
        self.assertEqual(progress.status_code, 200)
        self.assertEqual(progress.json()["processed_keywords"], 0)
        active = self.client.get(f"/api/ranking/classes/{self.project_class.id}/active-job/", headers=bearer())
        self.assertEqual(active.json()["id"], job_id)
        self.assertEqual(self.client.get(f"/api/ranking/jobs/{job_id}/", headers=bearer("intruder")).status_code, 404)

    def test_internal_endpoints_need_service_key(self):
        self.assertEqual(self.client.post("/api/ranking/process/").status_code, 401)
        self.assertEqual(self.client.post("/api/ranking/scheduled-check/", headers={"X-Service-Key": "wrong"}).status_code, 401)

    def test_process_endpoint_reports_idle(self):
        response = self.client.post("/api/ranking/process/", headers=SERVICE_HEADERS)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "idle")

    def test_scheduled_check_counts(self):
        response = self.client.post("/api/ranking/scheduled-check/", headers=SERVICE_HEADERS)

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual((body["checked_count"], body["enqueued_count"], body["skipped_count"]), (0, 0, 0))
        self.drain.assert_not_called()


class TestKeywordApi(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.project_class = make_class(self.db)

    def test_add_keywords_normalizes_input(self):
        url = f"/api/classes/{self.project_class.id}/keywords/"
        response = self.client.post(url, json={"keywords": ["Running Shoes", "running  shoes", "", "  ", "Boots"]}, headers=bearer())

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json(), {"inserted": 2, "skipped": 0})

        again = self.client.post(url, json={"keywords": ["boots", "sandals"]}, headers=bearer())
        self.assertEqual(again.json(), {"inserted": 1, "skipped": 1})

        listed = self.client.get(url, headers=bearer())
        self.assertEqual([k["keyword"] for k in listed.json()], ["running shoes", "boots", "sandals"])

    def test_history_is_owner_only(self):
        [keyword] = make_keywords(self.db, self.project_class, 1)

        self.assertEqual(self.client.get(f"/api/keywords/{keyword.id}/history/", headers=bearer()).json(), [])
        self.assertEqual(self.client.get(f"/api/keywords/{keyword.id}/history/", headers=bearer("intruder")).status_code, 404)


class TestCreditsApi(ApiTestCase):
    def test_balance_defaults_to_zero(self):
        response = self.client.get("/api/credits/", headers=bearer())

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["balance"], 0)

    def test_adjust_is_admin_only(self):
        fund(self.db, USER_ID, 10)
        body = {"user_id": USER_ID, "amount": 5, "reason": "Goodwill", "confirmation": "CONFIRM"}

        denied = self.client.post("/api/credits/adjust/", json=body, headers=bearer())
        allowed = self.client.post("/api/credits/adjust/", json=body, headers=bearer("admin-1", role="admin"))

        self.assertEqual(denied.status_code, 403)
        self.assertEqual(allowed.status_code, 200)
        self.assertEqual(allowed.json()["new_balance"], 15)
        transactions = self.client.get("/api/credits/transactions/", headers=bearer()).json()
        self.assertEqual(transactions[0]["type"], "admin_add")

    def test_adjust_rejects_missing_confirmation(self):
        body = {"user_id": USER_ID, "amount": 5, "reason": "Goodwill", "confirmation": "ok"}

        response = self.client.post("/api/credits/adjust/", json=body, headers=bearer("admin-1", role="admin"))

        self.assertEqual(response.status_code, 400)


class TestBillingApi(ApiTestCase):
    def test_webhook_credits_once(self):
        config = SepayConfig(merchant_id="MERCHANT01", default_origin="https://app.example.com")
        invoice = BillingService(self.db, config=config).create_order(USER_ID, "basic").order_invoice_number
        payload = {
            "notification_type": "ORDER_PAID",
            "timestamp": 1792400000,
            "order": {"id": "SP-1", "order_invoice_number": invoice, "order_amount": "200000"},
            "transaction": {"id": "TXN-API-1"},
        }

        with patch.dict(os.environ, {"SEPAY_SECRET_KEY": ""}):
            first = self.client.post("/api/billing/sepay-webhook/", json=payload)
            second = self.client.post("/api/billing/sepay-webhook/", json=payload)

        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.json()["success"], True)
        self.assertEqual(second.json(), {"success": True, "message": "Already processed"})
        self.assertEqual(self.client.get("/api/credits/", headers=bearer()).json()["balance"], 10000)

    def test_webhook_for_unknown_order(self):
        payload = {
            "notification_type": "ORDER_PAID",
            "order": {"order_invoice_number": "ORD-ABCDEF01-1792400000000"},
            "transaction": {"id": "TXN-X"},
        }

        with patch.dict(os.environ, {"SEPAY_SECRET_KEY": ""}):
            response = self.client.post("/api/billing/sepay-webhook/", json=payload)

        self.assertEqual(response.status_code, 404)

    def test_create_order_unknown_package(self):
        with patch.dict(os.environ, {"SEPAY_MERCHANT_ID": "M1", "SEPAY_SECRET_KEY": "shh"}):
            response = self.client.post("/api/billing/orders/", json={"package_id": "platinum"}, headers=bearer())

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Invalid package"})


class TestAdHocCheckApi(ApiTestCase):
    def setUp(self):
        super().setUp()
        serp = fake_serp_service(lambda request: httpx.Response(200, text=serp_page([
            "https://rival.com/",
            "https://www.example.com/giay",
        ])))

        def override_service():
            db = self.SessionLocal()
            try:
                yield AdHocCheckService(db, serp_service=serp)
            finally:
                db.close()

        app.dependency_overrides[ranking_routes.AdHocCheckServiceDep.dependency] = override_service
        self.body = {
            "keyword": "giay chay bo",
            "target_url": "example.com",
            "country_id": "2704",
            "language_code": "vi",
            "device": "desktop",
            "top_results": 10,
        }

    def test_check_charges_and_lists_in_history(self):
        fund(self.db, USER_ID, 5)

        response = self.client.post("/api/ranking/check/", json=self.body, headers=bearer())

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["target_ranking"], 2)
        self.assertEqual(body["found_url"], "https://www.example.com/giay")
        self.assertEqual(body["total_results"], 2)
        self.assertEqual(body["credits_used"], 1)
        self.assertEqual(self.client.get("/api/credits/", headers=bearer()).json()["balance"], 4)

        history = self.client.get("/api/ranking/checks/", headers=bearer()).json()
        self.assertEqual([c["id"] for c in history], [body["check_id"]])
        self.assertEqual(history[0]["serp_results"][1]["url"], "https://www.example.com/giay")

        self.assertEqual(self.client.delete(f"/api/ranking/checks/{body['check_id']}/", headers=bearer("intruder")).status_code, 404)
        self.assertEqual(self.client.delete(f"/api/ranking/checks/{body['check_id']}/", headers=bearer()).status_code, 204)
        self.assertEqual(self.client.get("/api/ranking/checks/", headers=bearer()).json(), [])

    def test_check_without_credits_is_payment_required(self):
        response = self.client.post("/api/ranking/check/", json=self.body, headers=bearer())

        self.assertEqual(response.status_code, 402)
        self.assertEqual(response.json()["credits_needed"], 1)

    def test_check_requires_bearer_token_and_fields(self):
        self.assertEqual(self.client.post("/api/ranking/check/", json=self.body).status_code, 401)
        missing = {k: v for k, v in self.body.items() if k != "country_id"}
        self.assertEqual(self.client.post("/api/ranking/check/", json=missing, headers=bearer()).status_code, 422)


class TestAppLifespan(unittest.TestCase):
    def test_shutdown_closes_the_shared_serp_client(self):
        with TestClient(app):
            client = get_shared_client()
            self.assertFalse(client.is_closed)

        self.assertTrue(client.is_closed)

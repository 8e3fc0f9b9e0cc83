import unittest

import httpx

from src.models import CreditTransaction, RankingCheck
from src.schemas.ranking import AdHocCheckRequest
from src.services.adhoc_check import AdHocCheckService
from src.services.credit import CreditService
from src.utils.exceptions import (
    InsufficientCreditsError,
    NoWorkError,
    RankingCheckNotFoundError,
    SerpUnavailableError,
)
from tests.support import USER_ID, error_page, fake_serp_service, fund, make_session_factory, pages_handler, serp_page


def check_request(**overrides) -> AdHocCheckRequest:
    values = dict(
        keyword="giày chạy bộ",
        target_url="https://www.example.com/",
        country_id="2704",
        country_name="Vietnam",
        language_code="vi",
        language_name="Vietnamese",
        device="desktop",
        top_results=20,
    )
    values.update(overrides)
    return AdHocCheckRequest(**values)


class TestAdHocCheckService(unittest.TestCase):
    """Single keyword checks: metering, matching and persistence."""

    def setUp(self):
        self.db = make_session_factory()()
        self.calls = []
        pages = {
            1: serp_page(["https://rival.com/a", "https://other.test/"] + [f"https://filler{i}.test/" for i in range(8)]),
            2: serp_page(["https://shop.example.com/giay", "https://rival.com/b"]),
        }
        self.service = AdHocCheckService(self.db, serp_service=fake_serp_service(pages_handler(pages, self.calls)))

    def tearDown(self):
        self.db.close()

    def test_check_finds_target_and_stores_result(self):
        fund(self.db, USER_ID, 10)

        result = self.service.check(USER_ID, check_request())

        self.assertEqual(result.target_ranking, 11)
        self.assertEqual(result.found_url, "https://shop.example.com/giay")
        self.assertEqual(result.total_results, 12)
        self.assertEqual(result.credits_used, 2)
        self.assertEqual([c["page"] for c in self.calls], ["1", "2"])
        self.assertEqual(CreditService(self.db).get_balance(USER_ID), 8)

        stored = self.db.get(RankingCheck, result.check_id)
        self.assertEqual(stored.user_id, USER_ID)
        self.assertEqual(stored.keyword, "giày chạy bộ")
        self.assertEqual(stored.ranking_position, 11)
        self.assertEqual(stored.country_name, "Vietnam")
        self.assertEqual(len(stored.serp_results), 12)

    def test_without_target_only_results_are_returned(self):
        fund(self.db, USER_ID, 10)

        result = self.service.check(USER_ID, check_request(target_url="  "))

        self.assertIsNone(result.target_ranking)
        self.assertIsNone(result.found_url)
        self.assertIsNone(self.db.get(RankingCheck, result.check_id).target_url)

    def test_top_results_are_clamped_before_metering(self):
        fund(self.db, USER_ID, 100)

        result = self.service.check(USER_ID, check_request(top_results=500))

        self.assertEqual(result.credits_used, 10)
        self.assertEqual(self.db.get(RankingCheck, result.check_id).top_results, 100)

    def test_insufficient_credits_fetch_nothing(self):
        fund(self.db, USER_ID, 1)

        with self.assertRaises(InsufficientCreditsError):
            self.service.check(USER_ID, check_request())

        self.assertEqual(self.calls, [])
        self.assertEqual(self.db.query(RankingCheck).count(), 0)

    def test_failed_fetch_refunds_the_credits(self):
        fund(self.db, USER_ID, 10)
        service = AdHocCheckService(
            self.db,
            serp_service=fake_serp_service(lambda request: httpx.Response(200, text=error_page("42", "bad key"))),
        )

        with self.assertRaises(SerpUnavailableError) as ctx:
            service.check(USER_ID, check_request())

        self.assertEqual(ctx.exception.category, "AuthInvalid")
        self.assertFalse(ctx.exception.retryable)
        self.assertEqual(CreditService(self.db).get_balance(USER_ID), 10)
        types = [t.type for t in self.db.query(CreditTransaction).order_by(CreditTransaction.id).all()]
        self.assertEqual(types, ["usage", "refund"])
        self.assertEqual(self.db.query(RankingCheck).count(), 0)

    def test_blank_keyword_is_rejected(self):
        fund(self.db, USER_ID, 10)

        with self.assertRaises(NoWorkError):
            self.service.check(USER_ID, check_request(keyword="   "))

        self.assertEqual(CreditService(self.db).get_balance(USER_ID), 10)

    def test_history_is_per_user_and_deletable(self):
        fund(self.db, USER_ID, 10)
        fund(self.db, "someone-else", 10)
        mine = self.service.check(USER_ID, check_request()).check_id
        theirs = self.service.check("someone-else", check_request(keyword="boots")).check_id

        self.assertEqual([c.id for c in self.service.list_checks(USER_ID)], [mine])
        with self.assertRaises(RankingCheckNotFoundError):
            self.service.delete_check(theirs, USER_ID)

        self.service.delete_check(mine, USER_ID)
        self.assertEqual(self.service.list_checks(USER_ID), [])

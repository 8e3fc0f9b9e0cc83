import unittest

import httpx

from src.utils.exceptions import FetchTimeoutError, NoResultsError, RateLimitedOrBlockedError
from tests.support import error_page, fake_serp_service, pages_handler, serp_page, xmlriver_config


def urls(page: int, count: int = 10):
    return [f"https://site{page}-{i}.test/" for i in range(count)]


class TestSerpServiceFetch(unittest.TestCase):
    """Paging and partial-result behaviour of SerpService.fetch."""

    def test_fetches_one_page_per_ten_results(self):
        calls = []
        pages = {p: serp_page(urls(p)) for p in range(1, 4)}
        service = fake_serp_service(pages_handler(pages, calls))

        results = service.fetch("shoes", "2840", "en", "desktop", top_results=30)

        self.assertEqual(len(calls), 3)
        self.assertEqual(len(results), 30)
        self.assertEqual([r.position for r in results], list(range(1, 31)))
        self.assertEqual(results[10].url, "https://site2-0.test/")

    def test_top_results_is_clamped(self):
        calls = []
        service = fake_serp_service(pages_handler({1: serp_page(urls(1))}, calls))

        results = service.fetch("shoes", "2840", "en", "desktop", top_results=3)

        self.assertEqual(len(calls), 1)
        self.assertEqual(len(results), 10)

    def test_short_pages_keep_paging_until_tier(self):
        calls = []
        pages = {1: serp_page(urls(1, 8)), 2: serp_page(urls(2, 8))}
        service = fake_serp_service(pages_handler(pages, calls))

        results = service.fetch("shoes", "2840", "en", "desktop", top_results=20)

        self.assertEqual(len(calls), 2)
        self.assertEqual(len(results), 16)
        self.assertEqual(results[8].position, 11)

    def test_page_one_failure_propagates(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        service = fake_serp_service(handler)

        with self.assertRaises(FetchTimeoutError):
            service.fetch("shoes", "2840", "en", "desktop", top_results=30)

    def test_later_page_failure_returns_partial_results(self):
        def handler(request):
            page = int(request.url.params["page"])
            if page == 2:
                return httpx.Response(200, text=error_page("15"))
            return httpx.Response(200, text=serp_page(urls(page)))

        service = fake_serp_service(handler)

        results = service.fetch("shoes", "2840", "en", "desktop", top_results=30)

        self.assertEqual(len(results), 10)
        self.assertEqual(results[-1].position, 10)

    def test_retryable_errors_are_retried(self):
        attempts = []

        def handler(request):
            attempts.append(1)
            if len(attempts) < 3:
                return httpx.Response(200, text=error_page("110"))
            return httpx.Response(200, text=serp_page(urls(1)))

        service = fake_serp_service(handler)

        results = service.fetch("shoes", "2840", "en", "desktop", top_results=10)

        self.assertEqual(len(attempts), 3)
        self.assertEqual(len(results), 10)

    def test_retries_are_bounded(self):
        attempts = []

        def handler(request):
            attempts.append(1)
            return httpx.Response(429)

        service = fake_serp_service(handler, config=xmlriver_config(retry_attempts=2))

        with self.assertRaises(RateLimitedOrBlockedError):
            service.fetch("shoes", "2840", "en", "desktop", top_results=10)
        self.assertEqual(len(attempts), 2)

    def test_non_retryable_errors_fail_fast(self):
        attempts = []

        def handler(request):
            attempts.append(1)
            return httpx.Response(200, text=error_page("15"))

        service = fake_serp_service(handler)

        with self.assertRaises(NoResultsError):
            service.fetch("zzzz", "2840", "en", "desktop", top_results=10)
        self.assertEqual(len(attempts), 1)

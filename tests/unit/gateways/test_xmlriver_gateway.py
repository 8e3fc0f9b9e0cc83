import unittest

import httpx

from src.gateways.xmlriver import XmlRiverGateway, close_shared_client
from src.utils.exceptions import (
    AuthInvalidError,
    FetchTimeoutError,
    NoResultsError,
    RateLimitedOrBlockedError,
    UnknownUpstreamError,
    UpstreamMaintenanceError,
)
from tests.support import error_page, serp_page, xmlriver_config


def gateway_for(handler, **config_overrides) -> XmlRiverGateway:
    config = xmlriver_config(**config_overrides)
    return XmlRiverGateway(config, client=httpx.Client(transport=httpx.MockTransport(handler)))


class TestXmlRiverGateway(unittest.TestCase):
    """Transport and payload failures come out as SerpFetchError subclasses."""

    def test_builds_request_parameters(self):
        seen = {}

        def handler(request):
            seen.update(dict(request.url.params))
            return httpx.Response(200, text=serp_page(["https://example.com/"]))

        payload = gateway_for(handler).fetch_page("giày", "2704", "vi", "phone", 3, location_id="1028580")

        self.assertIn("example.com", payload)
        self.assertEqual(seen["query"], "giày")
        self.assertEqual(seen["country"], "2704")
        self.assertEqual(seen["lr"], "vi")
        self.assertEqual(seen["device"], "phone")
        self.assertEqual(seen["page"], "3")
        self.assertEqual(seen["groupby"], "10")
        self.assertEqual(seen["loc"], "1028580")
        self.assertEqual(seen["user"], "1234")
        self.assertEqual(seen["key"], "test-key")

    def test_location_is_optional(self):
        seen = {}

        def handler(request):
            seen.update(dict(request.url.params))
            return httpx.Response(200, text=serp_page([]))

        gateway_for(handler).fetch_page("shoes", "2840", "en", "desktop", 1)
        self.assertNotIn("loc", seen)

    def test_unknown_device_falls_back_to_desktop(self):
        seen = {}

        def handler(request):
            seen.update(dict(request.url.params))
            return httpx.Response(200, text=serp_page([]))

        gateway_for(handler).fetch_page("shoes", "2840", "en", "smartwatch", 1)
        self.assertEqual(seen["device"], "desktop")

    def test_missing_credentials(self):
        handler_calls = []
        gateway = gateway_for(lambda r: handler_calls.append(r), user_id="", api_key="")

        with self.assertRaises(AuthInvalidError):
            gateway.fetch_page("shoes", "2840", "en", "desktop", 1)
        self.assertEqual(handler_calls, [])

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with self.assertRaises(FetchTimeoutError) as ctx:
            gateway_for(handler).fetch_page("shoes", "2840", "en", "desktop", 1)
        self.assertFalse(ctx.exception.retryable)

    def test_connection_error_is_retryable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with self.assertRaises(UnknownUpstreamError) as ctx:
            gateway_for(handler).fetch_page("shoes", "2840", "en", "desktop", 1)
        self.assertTrue(ctx.exception.retryable)

    def test_http_status_mapping(self):
        cases = [
            (429, RateLimitedOrBlockedError, True),
            (401, AuthInvalidError, False),
            (403, AuthInvalidError, False),
            (503, UpstreamMaintenanceError, True),
            (502, UnknownUpstreamError, True),
            (404, UnknownUpstreamError, False),
        ]
        for status_code, error_class, retryable in cases:
            with self.subTest(status_code=status_code):
                gateway = gateway_for(lambda r, s=status_code: httpx.Response(s, text="nope"))
                with self.assertRaises(error_class) as ctx:
                    gateway.fetch_page("shoes", "2840", "en", "desktop", 1)
                self.assertEqual(ctx.exception.retryable, retryable)

    def test_error_payload_with_200_status(self):
        gateway = gateway_for(lambda r: httpx.Response(200, text=error_page("15", "Nothing found")))

        with self.assertRaises(NoResultsError):
            gateway.fetch_page("zzzz", "2840", "en", "desktop", 1)


class TestSharedClient(unittest.TestCase):
    def setUp(self):
        self.addCleanup(close_shared_client)

    def test_gateways_without_a_client_share_one_pool(self):
        first = XmlRiverGateway(xmlriver_config())
        second = XmlRiverGateway(xmlriver_config())

        self.assertIs(first.client, second.client)

    def test_closing_releases_the_pool_and_the_next_gateway_gets_a_fresh_one(self):
        old_client = XmlRiverGateway(xmlriver_config()).client

        close_shared_client()

        self.assertTrue(old_client.is_closed)
        new_client = XmlRiverGateway(xmlriver_config()).client
        self.assertIsNot(new_client, old_client)
        self.assertFalse(new_client.is_closed)

    def test_injected_client_is_left_alone(self):
        client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        self.addCleanup(client.close)

        XmlRiverGateway(xmlriver_config(), client=client)
        close_shared_client()

        self.assertFalse(client.is_closed)

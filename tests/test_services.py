# Student Centered Open Online Learning (SCOOL) LTI Integration
# Copyright (c) 2021-2024  Fresno State University, SCOOL Project Team
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

import unittest
import urllib.parse
from unittest.mock import Mock

import httpx

from scool_cas import errors
from scool_cas.proxy import Cas20ProxyRetriever
from scool_cas.services import HttpxFetcher
from scool_cas.validator import TicketValidator

PROXY_SUCCESS = (
    "<cas:serviceResponse xmlns:cas='http://www.yale.edu/tp/cas'>"
    "<cas:proxySuccess><cas:proxyTicket>PT-957-ZuucXqTZ1YcJw81T3dxf</cas:proxyTicket>"
    "</cas:proxySuccess></cas:serviceResponse>"
)


def make_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


class HttpxFetcherTestCase(unittest.TestCase):
    def test_fetch(self):
        def handler(request: httpx.Request) -> httpx.Response:
            self.assertEqual(request.url.params["ticket"], "ST-1")
            return httpx.Response(200, content=b"yes\nusername\n")

        with HttpxFetcher(make_client(handler)) as fetcher:
            rv = fetcher.fetch("https://cas.foo.org/validate?ticket=ST-1")
        self.assertEqual(rv, b"yes\nusername\n")

    def test_fetch_http_status_error(self):
        with HttpxFetcher(make_client(lambda r: httpx.Response(500))) as fetcher:
            with self.assertRaises(errors.TransportError) as exc:
                fetcher.fetch("https://cas.foo.org/validate")
        self.assertEqual(exc.exception.error_code, errors.TRANSPORT_ERROR)
        self.assertIsInstance(exc.exception.__cause__, httpx.HTTPStatusError)

    def test_fetch_connect_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with HttpxFetcher(make_client(handler)) as fetcher:
            with self.assertRaises(errors.TransportError):
                fetcher.fetch("https://cas.foo.org/validate")


class Cas20ProxyRetrieverTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.fetcher = Mock()
        self.retriever = Cas20ProxyRetriever("https://cas.foo.org/cas", self.fetcher)

    def test_build_proxy_url(self):
        rv = self.retriever.build_proxy_url("PGT-1", "https://other.foo.org/api")
        self.assertEqual(
            rv,
            "https://cas.foo.org/cas/proxy"
            "?pgt=PGT-1&targetService=https%3A%2F%2Fother.foo.org%2Fapi",
        )

    def test_get_proxy_ticket(self):
        self.fetcher.fetch.return_value = PROXY_SUCCESS.encode()
        rv = self.retriever.get_proxy_ticket_for("PGT-1", "https://other.foo.org")
        self.assertEqual(rv, "PT-957-ZuucXqTZ1YcJw81T3dxf")
        url = self.fetcher.fetch.call_args.args[0]
        query = urllib.parse.parse_qs(urllib.parse.urlsplit(url).query)
        self.assertEqual(query["targetService"], ["https://other.foo.org"])

    def test_get_proxy_ticket_failure(self):
        self.fetcher.fetch.return_value = (
            b"<cas:serviceResponse xmlns:cas='http://www.yale.edu/tp/cas'>"
            b"<cas:proxyFailure code='INVALID_REQUEST'>"
            b"'pgt' and 'targetService' parameters are both required"
            b"</cas:proxyFailure></cas:serviceResponse>"
        )
        with self.assertRaises(errors.ProxyTicketError) as exc:
            self.retriever.get_proxy_ticket_for("PGT-1", "https://other.foo.org")
        self.assertEqual(exc.exception.error_code, "INVALID_REQUEST")

    def test_get_proxy_ticket_transport_error(self):
        self.fetcher.fetch.side_effect = errors.TransportError("timeout")
        with self.assertRaises(errors.ProxyTicketError) as exc:
            self.retriever.get_proxy_ticket_for("PGT-1", "https://other.foo.org")
        self.assertEqual(exc.exception.error_code, errors.TRANSPORT_ERROR)


class TransportErrorLoggingTestCase(unittest.TestCase):
    """Tickets and PGTs travel in the query string and must stay out of logs."""

    def test_proxy_fetch_failure_hides_pgt(self):
        fetcher = HttpxFetcher(make_client(lambda r: httpx.Response(500)))
        retriever = Cas20ProxyRetriever("https://cas.foo.org/cas/", fetcher)
        with self.assertLogs("scool_cas", level="ERROR") as logs:
            with self.assertRaises(errors.ProxyTicketError) as exc:
                retriever.get_proxy_ticket_for("PGT-SECRET-123", "https://other.foo.org")
        for line in logs.output:
            self.assertNotIn("PGT-SECRET-123", line)
        self.assertNotIn("PGT-SECRET-123", str(exc.exception))
        self.assertEqual(
            exc.exception.message, "HTTPStatusError: status 500 from cas.foo.org"
        )

    def test_validation_fetch_failure_hides_ticket(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        fetcher = HttpxFetcher(make_client(handler))
        validator = TicketValidator("https://cas.foo.org/cas/", fetcher=fetcher)
        with self.assertLogs("scool_cas", level="ERROR") as logs:
            with self.assertRaises(errors.TicketValidationError) as exc:
                validator.validate("ST-SECRET-456", "https://scool.foo.org/api")
        for line in logs.output:
            self.assertNotIn("ST-SECRET-456", line)
        self.assertNotIn("ST-SECRET-456", str(exc.exception))
        self.assertEqual(exc.exception.code, errors.TRANSPORT_ERROR)
        self.assertEqual(exc.exception.message, "ConnectError: cas.foo.org")

    def test_rejection_message_not_logged_above_debug(self):
        fetcher = Mock()
        fetcher.fetch.return_value = (
            b"<cas:serviceResponse xmlns:cas='http://www.yale.edu/tp/cas'>"
            b"<cas:authenticationFailure code='INVALID_TICKET'>"
            b"Ticket ST-SECRET-789 not recognized"
            b"</cas:authenticationFailure></cas:serviceResponse>"
        )
        validator = TicketValidator("https://cas.foo.org/cas/", fetcher=fetcher)
        with self.assertLogs("scool_cas", level="INFO") as logs:
            with self.assertRaises(errors.TicketValidationError):
                validator.validate("ST-SECRET-789", "https://scool.foo.org/api")
        for line in logs.output:
            self.assertNotIn("ST-SECRET-789", line)

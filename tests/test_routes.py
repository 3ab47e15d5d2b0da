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
from unittest.mock import Mock, patch

from fastapi.testclient import TestClient

from scool_cas import app, settings
from scool_cas.storage import InMemoryPgtStorage
from scool_cas.validator import TicketValidator

RESPONSE_SUCCESS_PGT = (
    "<cas:serviceResponse xmlns:cas='http://www.yale.edu/tp/cas'>"
    "<cas:authenticationSuccess><cas:user>username</cas:user>"
    "<cas:proxyGrantingTicket>PGTIOU-84678-8a9d</cas:proxyGrantingTicket>"
    "</cas:authenticationSuccess></cas:serviceResponse>"
)


class ProxyCallbackTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.storage = InMemoryPgtStorage()
        self.app = app.create_app(
            storage=self.storage,
            pgt_settings=settings.PgtSettings(ttl=60, cleanup_interval=30),
        )
        self.client = TestClient(self.app)

    def test_app_uses_given_empty_storage(self):
        self.assertEqual(len(self.storage), 0)
        self.assertIs(self.app.state.pgt_storage, self.storage)
        self.assertIs(self.app.state.cleanup_scheduler.storage, self.storage)

    def test_no_params_returns_ok(self):
        rv = self.client.get("/proxyCallback")
        self.assertEqual(rv.status_code, 200)
        self.assertEqual(len(self.storage), 0)

    def test_get_saves_pgt(self):
        rv = self.client.get(
            "/proxyCallback", params={"pgtIou": "PGTIOU-1", "pgtId": "PGT-1"}
        )
        self.assertEqual(rv.status_code, 200)
        self.assertIn("proxySuccess", rv.text)
        self.assertEqual(self.storage.retrieve("PGTIOU-1"), "PGT-1")

    def test_post_saves_pgt(self):
        rv = self.client.post(
            "/proxyCallback", data={"pgtIou": "PGTIOU-2", "pgtId": "PGT-2"}
        )
        self.assertEqual(rv.status_code, 200)
        self.assertEqual(self.storage.retrieve("PGTIOU-2"), "PGT-2")

    def test_missing_pgt_id(self):
        rv = self.client.get("/proxyCallback", params={"pgtIou": "PGTIOU-1"})
        self.assertEqual(rv.status_code, 400)
        self.assertIsNone(self.storage.retrieve("PGTIOU-1"))

    def test_duplicate_pgt_iou(self):
        params = {"pgtIou": "PGTIOU-1", "pgtId": "PGT-1"}
        self.assertEqual(self.client.get("/proxyCallback", params=params).status_code, 200)
        rv = self.client.get(
            "/proxyCallback", params={"pgtIou": "PGTIOU-1", "pgtId": "PGT-other"}
        )
        self.assertEqual(rv.status_code, 409)
        self.assertEqual(self.storage.retrieve("PGTIOU-1"), "PGT-1")

    def test_lifespan_runs_scheduler(self):
        scheduler = self.app.state.cleanup_scheduler
        with TestClient(self.app):
            self.assertTrue(scheduler.is_running)
        self.assertFalse(scheduler.is_running)


class CreateStorageTestCase(unittest.TestCase):
    def test_in_memory_by_default(self):
        rv = app.create_storage(settings.PgtSettings(db_url=None))
        self.assertIsInstance(rv, InMemoryPgtStorage)

    def test_database(self):
        rv = app.create_storage(settings.PgtSettings(db_url="sqlite://", ttl=120))
        self.assertEqual(rv.ttl.total_seconds(), 120)
        rv.save("PGTIOU-1", "PGT-1")
        self.assertEqual(rv.retrieve("PGTIOU-1"), "PGT-1")

    def test_configures_logging(self):
        with patch("scool_cas.settings.configure_logging") as configure_mock:
            app.create_app(storage=InMemoryPgtStorage())
        configure_mock.assert_called_once_with()


class ProxyCallbackValidationTestCase(unittest.TestCase):
    """The callback and the validator correlate through one storage."""

    def setUp(self) -> None:
        self.storage = InMemoryPgtStorage()
        self.client = TestClient(app.create_app(storage=self.storage))
        fetcher = Mock()
        fetcher.fetch.return_value = RESPONSE_SUCCESS_PGT.encode()
        self.validator = TicketValidator(
            "https://cas.fresnostate.edu/cas/",
            fetcher=fetcher,
            storage=self.storage,
            proxy_callback_url="https://scool.foo.org/proxyCallback",
        )

    def test_callback_pgt_resolved_by_validation(self):
        rv = self.client.get(
            "/proxyCallback",
            params={"pgtIou": "PGTIOU-84678-8a9d", "pgtId": "PGT-490649-W81Y9Sa2"},
        )
        self.assertEqual(rv.status_code, 200)
        assertion = self.validator.validate("ST-test", "https://scool.foo.org/api")
        self.assertEqual(assertion.principal.name, "username")
        self.assertEqual(assertion.pgt, "PGT-490649-W81Y9Sa2")

    def test_validation_before_callback_has_no_pgt(self):
        assertion = self.validator.validate("ST-test", "https://scool.foo.org/api")
        self.assertIsNone(assertion.pgt)
        self.client.post(
            "/proxyCallback",
            data={"pgtIou": "PGTIOU-84678-8a9d", "pgtId": "PGT-490649-W81Y9Sa2"},
        )
        assertion = self.validator.validate("ST-test", "https://scool.foo.org/api")
        self.assertEqual(assertion.pgt, "PGT-490649-W81Y9Sa2")

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

"""
Central Authentication Service (CAS) ticket validation

A validator holds configuration only and can be shared by any number of
threads. Each ``validate`` call is an independent round-trip to the CAS
server, the only shared state is the PGT storage.
"""

import logging
import urllib.parse
from collections.abc import Sequence
from typing import Any

from . import errors, parsers, schemas
from .proxy import Cas20ProxyRetriever, ProxyRetriever
from .services import Fetcher, HttpxFetcher
from .settings import CasSettings
from .storage import ProxyGrantingTicketStorage

logger = logging.getLogger(__name__)

# (service ticket endpoint, proxy ticket endpoint) per protocol version
ENDPOINTS = {
    "1.0": ("validate", "validate"),
    "2.0": ("serviceValidate", "proxyValidate"),
    "3.0": ("p3/serviceValidate", "p3/proxyValidate"),
}


class TicketValidator:
    """Validates service tickets against the CAS server.

    ``renew`` and ``proxy_callback_url`` apply to every call made by the
    validator. When the server returns a PGT-IOU it is resolved through
    ``storage``. A PGT-IOU that can not be resolved leaves the assertion
    without a PGT rather than failing the validation.
    """

    accepts_proxy_tickets = False

    def __init__(
        self,
        server_url: str,
        *,
        fetcher: Fetcher | None = None,
        storage: ProxyGrantingTicketStorage | None = None,
        protocol: str = "3.0",
        renew: bool = False,
        proxy_callback_url: str | None = None,
        proxy_retriever: ProxyRetriever | None = None,
    ) -> None:
        self.server_url = server_url if server_url.endswith("/") else f"{server_url}/"
        # a fetcher built here is closed by close()
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher if fetcher is not None else HttpxFetcher()
        self.storage = storage
        self.protocol = protocol
        self.parse = parsers.parser_for(protocol)
        self.renew = renew
        self.proxy_callback_url = proxy_callback_url
        self.proxy_retriever = proxy_retriever
        endpoint = ENDPOINTS[protocol][int(self.accepts_proxy_tickets)]
        self.validate_url = urllib.parse.urljoin(self.server_url, endpoint)
        if proxy_callback_url and protocol == "1.0":
            logger.warning("CAS 1.0 does not support proxying, ignoring pgtUrl")

    @classmethod
    def from_settings(
        cls,
        cas_settings: CasSettings,
        storage: ProxyGrantingTicketStorage | None = None,
        fetcher: Fetcher | None = None,
        **kwargs: Any,
    ) -> "TicketValidator":
        owns_fetcher = fetcher is None
        if fetcher is None:
            fetcher = HttpxFetcher(
                timeout=cas_settings.http_timeout,
                verify=cas_settings.verify_ssl,
            )
        proxy_retriever = None
        if cas_settings.proxy_callback_url and cas_settings.protocol != "1.0":
            proxy_retriever = Cas20ProxyRetriever(cas_settings.server_url, fetcher)
        validator = cls(
            cas_settings.server_url,
            fetcher=fetcher,
            storage=storage,
            protocol=cas_settings.protocol,
            renew=cas_settings.renew,
            proxy_callback_url=cas_settings.proxy_callback_url,
            proxy_retriever=proxy_retriever,
            **kwargs,
        )
        validator._owns_fetcher = owns_fetcher
        return validator

    def close(self) -> None:
        """Closes the HTTP client if it was created by this validator.

        A fetcher passed in by the caller is left for the caller to close.
        """
        if self._owns_fetcher:
            self.fetcher.close()

    def __enter__(self) -> "TicketValidator":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def validation_request(self, ticket: str, service: str) -> schemas.ValidationRequest:
        callback_url = self.proxy_callback_url if self.protocol != "1.0" else None
        return schemas.ValidationRequest(
            ticket=ticket,
            service=service,
            renew=self.renew,
            proxy_callback_url=callback_url,
        )

    def build_validate_url(self, request: schemas.ValidationRequest) -> str:
        query = {"ticket": request.ticket, "service": request.service}
        if request.renew:
            query["renew"] = "true"
        if request.proxy_callback_url:
            query["pgtUrl"] = request.proxy_callback_url
        return f"{self.validate_url}?{urllib.parse.urlencode(query)}"

    def validate(self, ticket: str, service: str) -> schemas.Assertion:
        """Validates ``ticket`` for ``service`` and returns an ``Assertion``.

        Raises ``TicketValidationError`` for any outcome other than success.
        """
        request = self.validation_request(ticket, service)
        url = self.build_validate_url(request)
        logger.debug("CasClient validating %s", url)

        try:
            content = self.fetcher.fetch(url)
        except errors.TransportError as exc:
            logger.error("CAS validation request failed: %s", exc)
            raise errors.TicketValidationError(
                errors.TRANSPORT_ERROR, exc.message
            ) from exc
        logger.debug("CAS response:\n%r", content)

        try:
            outcome = self.parse(content)
        except errors.MalformedResponseError as exc:
            logger.error("CAS response could not be parsed: %s", exc)
            raise errors.TicketValidationError(
                errors.INVALID_RESPONSE, exc.message
            ) from exc

        if isinstance(outcome, schemas.ValidationFailure):
            logger.warning("CAS ticket rejected [%s]", outcome.code)
            logger.debug("CAS rejection message: %s", outcome.message)
            raise errors.TicketValidationError(outcome.code, outcome.message)

        self.verify_proxies(outcome.proxies)
        assertion = schemas.Assertion(
            principal=schemas.Principal(
                name=outcome.principal_name,
                attributes=outcome.attributes,
            ),
            pgt=self.resolve_pgt(outcome.pgt_iou),
            proxies=outcome.proxies,
            proxy_retriever=self.proxy_retriever,
        )
        logger.info("CAS validated principal [%s]", assertion.principal)
        return assertion

    def resolve_pgt(self, pgt_iou: str | None) -> str | None:
        if pgt_iou is None:
            return None
        if self.storage is None:
            logger.warning("PGT-IOU received but no PGT storage is configured")
            return None
        if (pgt := self.storage.retrieve(pgt_iou)) is None:
            logger.warning("PGT-IOU [%s] could not be resolved", pgt_iou)
        return pgt

    def verify_proxies(self, proxies: Sequence[str]) -> None:
        """Service tickets are not proxied, nothing to verify."""


class ProxyTicketValidator(TicketValidator):
    """Validates service and proxy tickets against the CAS server.

    A proxy chain is accepted when it is empty, when ``accept_any_proxy``
    is set, or when it is equal to one of ``allowed_proxy_chains``.
    """

    accepts_proxy_tickets = True

    def __init__(
        self,
        server_url: str,
        *,
        accept_any_proxy: bool = False,
        allowed_proxy_chains: Sequence[Sequence[str]] = (),
        **kwargs: Any,
    ) -> None:
        super().__init__(server_url, **kwargs)
        self.accept_any_proxy = accept_any_proxy
        self.allowed_proxy_chains = [tuple(c) for c in allowed_proxy_chains]

    @classmethod
    def from_settings(
        cls,
        cas_settings: CasSettings,
        storage: ProxyGrantingTicketStorage | None = None,
        fetcher: Fetcher | None = None,
        **kwargs: Any,
    ) -> "TicketValidator":
        kwargs.setdefault("accept_any_proxy", cas_settings.accept_any_proxy)
        kwargs.setdefault("allowed_proxy_chains", cas_settings.allowed_proxy_chains)
        return super().from_settings(cas_settings, storage, fetcher, **kwargs)

    def verify_proxies(self, proxies: Sequence[str]) -> None:
        if not proxies or self.accept_any_proxy:
            return
        if tuple(proxies) in self.allowed_proxy_chains:
            return
        logger.warning("Proxy chain not allowed: %s", proxies)
        raise errors.TicketValidationError(
            errors.INVALID_PROXY_CHAIN,
            f"The proxy chain is not allowed: {' -> '.join(proxies)}",
        )

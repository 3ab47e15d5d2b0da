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
Proxy ticket retrieval
"""

import logging
import urllib.parse
from typing import Protocol

from . import errors, parsers
from .services import Fetcher

logger = logging.getLogger(__name__)


class ProxyRetriever(Protocol):
    def get_proxy_ticket_for(self, pgt: str, target_service: str) -> str:
        """Returns a proxy ticket else raises ``ProxyTicketError``."""
        ...


class Cas20ProxyRetriever:
    """Requests proxy tickets from the CAS 2.0 ``/proxy`` endpoint."""

    def __init__(self, server_url: str, fetcher: Fetcher) -> None:
        self.server_url = server_url if server_url.endswith("/") else f"{server_url}/"
        self.fetcher = fetcher

    def build_proxy_url(self, pgt: str, target_service: str) -> str:
        query = urllib.parse.urlencode({"pgt": pgt, "targetService": target_service})
        return f"{urllib.parse.urljoin(self.server_url, 'proxy')}?{query}"

    def get_proxy_ticket_for(self, pgt: str, target_service: str) -> str:
        url = self.build_proxy_url(pgt, target_service)
        try:
            content = self.fetcher.fetch(url)
        except errors.TransportError as exc:
            raise errors.ProxyTicketError(exc.error_code, exc.message) from exc
        ticket = parsers.parse_proxy_response(content)
        logger.info("Obtained proxy ticket for %s", target_service)
        return ticket

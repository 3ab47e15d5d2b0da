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
HTTP services

A ``Fetcher`` retrieves a URL from the CAS server and returns the raw
response body. Retries and timeouts belong to the fetcher, the validator
never retries.
"""

import logging
from typing import Protocol

import httpx

from . import errors

logger = logging.getLogger(__name__)


def describe_error(exc: httpx.HTTPError) -> str:
    """Describes a failed request without its URL.

    The query string carries tickets and PGTs, so only the status code
    and host are reported.
    """
    name = type(exc).__name__
    try:
        host = exc.request.url.host
    except RuntimeError:
        return name
    if isinstance(exc, httpx.HTTPStatusError):
        return f"{name}: status {exc.response.status_code} from {host}"
    return f"{name}: {host}"


class Fetcher(Protocol):
    def fetch(self, url: str) -> bytes:
        """Returns the body at ``url`` else raises ``TransportError``."""
        ...


class HttpxFetcher:
    """Fetcher backed by a shared ``httpx.Client``.

    Any non-2xx status is treated as a transport failure.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        *,
        timeout: float = 10.0,
        verify: bool = True,
    ) -> None:
        if client is None:
            client = httpx.Client(timeout=timeout, verify=verify)
        self.client = client

    def fetch(self, url: str) -> bytes:
        try:
            response = self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            message = describe_error(exc)
            logger.error("fetch failed: %s", message)
            raise errors.TransportError(message) from exc
        return response.content

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "HttpxFetcher":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

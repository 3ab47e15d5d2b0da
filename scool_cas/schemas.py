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
CAS client schemas

The ``ValidationOutcome`` produced by a response parser is either a
``ValidationSuccess`` or a ``ValidationFailure``. A successful outcome
is turned into an ``Assertion`` by the ticket validator, which is what
callers receive.
"""

import dataclasses
import datetime
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, TypeAlias

from . import errors

if TYPE_CHECKING:
    from .proxy import ProxyRetriever

logger = logging.getLogger(__name__)

AttributeValue: TypeAlias = str | list[str]


@dataclasses.dataclass(frozen=True)
class ValidationRequest:
    """A single validation round-trip, discarded once the call returns."""

    ticket: str
    service: str
    renew: bool = False
    proxy_callback_url: str | None = None


@dataclasses.dataclass(frozen=True)
class ValidationSuccess:
    principal_name: str
    attributes: Mapping[str, AttributeValue] = dataclasses.field(default_factory=dict)
    pgt_iou: str | None = None
    proxies: tuple[str, ...] = ()


@dataclasses.dataclass(frozen=True)
class ValidationFailure:
    code: str
    message: str = ""


ValidationOutcome: TypeAlias = ValidationSuccess | ValidationFailure


@dataclasses.dataclass(frozen=True)
class Principal:
    """The authenticated identity and its released attributes."""

    name: str
    attributes: Mapping[str, AttributeValue] = dataclasses.field(default_factory=dict)

    def __str__(self) -> str:
        return self.name


@dataclasses.dataclass(frozen=True)
class Assertion:
    """The validated, trusted result of a ticket validation.

    ``proxies`` lists the services that proxied the authentication, in
    the order the CAS server reported them. It is empty for a ticket
    that was not proxied.
    """

    principal: Principal
    pgt: str | None = None
    proxies: tuple[str, ...] = ()
    valid_from_date: datetime.datetime = dataclasses.field(
        default_factory=lambda: datetime.datetime.now(tz=datetime.UTC)
    )
    proxy_retriever: "ProxyRetriever | None" = dataclasses.field(
        default=None, repr=False, compare=False
    )

    @property
    def attributes(self) -> Mapping[str, AttributeValue]:
        return self.principal.attributes

    def is_valid(self) -> bool:
        return bool(self.principal.name)

    def get_proxy_ticket_for(self, target_service: str) -> str | None:
        """Returns a proxy ticket for ``target_service``.

        Returns ``None`` if no proxy-granting ticket was resolved during
        validation.
        """
        if self.pgt is None:
            logger.debug("No PGT for %s, cannot request proxy ticket", self.principal)
            return None
        if self.proxy_retriever is None:
            raise errors.ProxyTicketError(
                errors.NO_PROXY_RETRIEVER, "No proxy retriever configured"
            )
        return self.proxy_retriever.get_proxy_ticket_for(self.pgt, target_service)

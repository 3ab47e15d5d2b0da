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
SCOOL CAS Client

Validates CAS service and proxy tickets and correlates proxy-granting
tickets delivered to the proxy callback.
"""

__version__ = "24.10.0"

from . import settings  # noqa: E402,F401
from .errors import (  # noqa: E402
    CasException,
    DuplicateCorrelationError,
    MalformedResponseError,
    ProxyTicketError,
    TicketValidationError,
    TransportError,
)
from .schemas import Assertion, Principal  # noqa: E402
from .storage import InMemoryPgtStorage  # noqa: E402
from .validator import ProxyTicketValidator, TicketValidator  # noqa: E402

__all__ = [
    "Assertion",
    "CasException",
    "DuplicateCorrelationError",
    "InMemoryPgtStorage",
    "MalformedResponseError",
    "Principal",
    "ProxyTicketError",
    "ProxyTicketValidator",
    "TicketValidationError",
    "TicketValidator",
    "TransportError",
]

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
CAS client errors

``TicketValidationError`` is the single error callers are expected to
catch and treat as "authentication failed". The other errors are raised
by the collaborators and wrapped by the validator.
"""

TRANSPORT_ERROR = "TRANSPORT_ERROR"
INVALID_RESPONSE = "INVALID_RESPONSE"
INVALID_PROXY_CHAIN = "INVALID_PROXY_CHAIN"
DUPLICATE_PGTIOU = "DUPLICATE_PGTIOU"
NO_PROXY_RETRIEVER = "NO_PROXY_RETRIEVER"


class CasException(Exception):
    def __init__(self, error_code: str, message: str = "") -> None:
        super().__init__(error_code, message)
        self.error_code = error_code
        self.message = message

    def __str__(self) -> str:
        if self.message:
            return f"{self.error_code}: {self.message}"
        return self.error_code


class TransportError(CasException):
    """The HTTP exchange with the CAS server could not be completed."""

    def __init__(self, message: str = "") -> None:
        super().__init__(TRANSPORT_ERROR, message)


class MalformedResponseError(CasException):
    """The response could not be parsed into a recognizable envelope."""

    def __init__(self, message: str = "") -> None:
        super().__init__(INVALID_RESPONSE, message)


class TicketValidationError(CasException):
    """The ticket was rejected or could not be validated."""

    @property
    def code(self) -> str:
        return self.error_code


class DuplicateCorrelationError(CasException):
    """A PGT-IOU was saved more than once."""

    def __init__(self, pgt_iou: str) -> None:
        super().__init__(DUPLICATE_PGTIOU, f"PGT-IOU already saved [{pgt_iou}]")
        self.pgt_iou = pgt_iou


class ProxyTicketError(CasException):
    """A proxy ticket could not be obtained for a target service."""

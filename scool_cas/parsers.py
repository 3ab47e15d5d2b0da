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
CAS response parsers

Each supported protocol version has a parser function that turns the raw
response from the CAS server into a ``ValidationOutcome``. A response that
is parsed but not understood is a ``ValidationFailure`` with the
``INVALID_RESPONSE`` code, whereas a response that can not be parsed at
all raises ``MalformedResponseError``.
"""

import logging
import xml.etree.ElementTree as ET
from collections.abc import Callable

from . import errors, schemas

logger = logging.getLogger(__name__)

CAS_NS = {"cas": "http://www.yale.edu/tp/cas"}

ResponseParser = Callable[[bytes | str], schemas.ValidationOutcome]


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _text(elem: ET.Element | None) -> str:
    if elem is None:
        return ""
    return "".join(elem.itertext()).strip()


def _decode(content: bytes | str) -> str:
    if isinstance(content, str):
        return content
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise errors.MalformedResponseError(f"Response is not UTF-8: {exc}") from exc


def _parse_xml(content: bytes | str) -> ET.Element:
    try:
        return ET.fromstring(content)
    except ET.ParseError as exc:
        raise errors.MalformedResponseError(f"Response is not XML: {exc}") from exc


def _invalid(message: str) -> schemas.ValidationFailure:
    logger.warning("Invalid CAS response: %s", message)
    return schemas.ValidationFailure(code=errors.INVALID_RESPONSE, message=message)


def parse_cas10(content: bytes | str) -> schemas.ValidationOutcome:
    """Parses a CAS 1.0 ``/validate`` response.

    The response is two lines of plain text, ``yes`` followed by the
    username, or a single ``no`` line.
    """
    lines = _decode(content).splitlines()
    answer = lines[0].strip() if lines else ""
    if answer == "no":
        return schemas.ValidationFailure(
            code="INVALID_TICKET", message="CAS server responded with 'no'"
        )
    if answer != "yes":
        raise errors.MalformedResponseError(f"Unexpected CAS 1.0 response [{answer}]")
    if len(lines) < 2 or not (username := lines[1].strip()):  # noqa:PLR2004
        return _invalid("No principal was found in the response")
    return schemas.ValidationSuccess(principal_name=username)


def _parse_attributes(success: ET.Element) -> dict[str, schemas.AttributeValue]:
    collected: dict[str, list[str]] = {}
    for block in success.findall("cas:attributes", CAS_NS):
        for elem in block:
            collected.setdefault(_local_name(elem.tag), []).append(_text(elem))
    return {k: v[0] if len(v) == 1 else v for k, v in collected.items()}


def parse_cas20(content: bytes | str) -> schemas.ValidationOutcome:
    """Parses a CAS 2.0/3.0 ``serviceValidate`` or ``proxyValidate`` response.

    For example:

        <cas:serviceResponse xmlns:cas='http://www.yale.edu/tp/cas'>
            <cas:authenticationSuccess>
                <cas:user>username</cas:user>
                <cas:attributes>
                    <cas:mail>username@example.org</cas:mail>
                </cas:attributes>
                <cas:proxyGrantingTicket>PGTIOU-84678-8a9d</cas:proxyGrantingTicket>
                <cas:proxies>
                    <cas:proxy>https://proxy2/pgtUrl</cas:proxy>
                    <cas:proxy>https://proxy1/pgtUrl</cas:proxy>
                </cas:proxies>
            </cas:authenticationSuccess>
        </cas:serviceResponse>

    Attributes that appear more than once are returned as a list in
    document order.
    """
    root = _parse_xml(content)
    if root.tag != "{%s}serviceResponse" % CAS_NS["cas"]:
        return _invalid(f"Unexpected root element [{root.tag}]")

    if (failure := root.find("cas:authenticationFailure", CAS_NS)) is not None:
        return schemas.ValidationFailure(
            code=failure.get("code", "UNKNOWN").strip(),
            message=_text(failure),
        )

    if (success := root.find("cas:authenticationSuccess", CAS_NS)) is None:
        return _invalid("No authenticationSuccess or authenticationFailure found")

    if not (username := _text(success.find("cas:user", CAS_NS))):
        return _invalid("No principal was found in the response")

    pgt_iou = _text(success.find("cas:proxyGrantingTicket", CAS_NS)) or None
    proxies = tuple(
        proxy
        for elem in success.findall("cas:proxies/cas:proxy", CAS_NS)
        if (proxy := _text(elem))
    )
    return schemas.ValidationSuccess(
        principal_name=username,
        attributes=_parse_attributes(success),
        pgt_iou=pgt_iou,
        proxies=proxies,
    )


PARSERS: dict[str, ResponseParser] = {
    "1.0": parse_cas10,
    "2.0": parse_cas20,
    "3.0": parse_cas20,
}


def parser_for(protocol: str) -> ResponseParser:
    """Returns the response parser for a CAS protocol version."""
    try:
        return PARSERS[protocol]
    except KeyError:
        raise ValueError(f"Unsupported CAS protocol [{protocol}]") from None


def parse_proxy_response(content: bytes | str) -> str:
    """Parses a CAS 2.0 ``/proxy`` response and returns the proxy ticket.

    Raises ``ProxyTicketError`` if the CAS server refused to issue one.
    """
    try:
        root = _parse_xml(content)
    except errors.MalformedResponseError as exc:
        raise errors.ProxyTicketError(errors.INVALID_RESPONSE, exc.message) from exc

    if (failure := root.find("cas:proxyFailure", CAS_NS)) is not None:
        raise errors.ProxyTicketError(
            failure.get("code", "UNKNOWN").strip(), _text(failure)
        )
    if ticket := _text(root.find("cas:proxySuccess/cas:proxyTicket", CAS_NS)):
        return ticket
    raise errors.ProxyTicketError(errors.INVALID_RESPONSE, "No proxy ticket found")

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
Proxy callback routes

The CAS server calls the proxy callback URL (``pgtUrl``) with the
``pgtIou`` and ``pgtId`` parameters before it answers the validation
request. It first checks that the URL is reachable, so a request without
parameters is answered with a plain success.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from starlette.concurrency import run_in_threadpool

from . import errors
from .storage import ProxyGrantingTicketStorage

logger = logging.getLogger(__name__)

router = APIRouter()

PROXY_SUCCESS = (
    '<?xml version="1.0"?>\n'
    '<casClient:proxySuccess xmlns:casClient="http://www.yale.edu/tp/casClient" />'
)


def pgt_storage(request: Request) -> ProxyGrantingTicketStorage:
    return request.app.state.pgt_storage


Storage = Annotated[ProxyGrantingTicketStorage, Depends(pgt_storage)]


@router.api_route("/proxyCallback", methods=["GET", "POST"])
async def proxy_callback(request: Request, storage: Storage) -> Response:
    params = dict(request.query_params)
    if request.method == "POST":
        form = await request.form()
        params.update({k: v for k, v in form.items() if isinstance(v, str)})

    pgt_iou = params.get("pgtIou")
    pgt_id = params.get("pgtId")
    if not pgt_iou and not pgt_id:
        logger.debug("proxy callback without parameters")
        return Response(status_code=status.HTTP_200_OK)
    if not pgt_iou or not pgt_id:
        logger.error("proxy callback missing pgtIou or pgtId")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "invalid_request"},
        )

    try:
        await run_in_threadpool(storage.save, pgt_iou, pgt_id)
    except errors.DuplicateCorrelationError:
        logger.error("proxy callback duplicate PGT-IOU [%s]", pgt_iou)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": errors.DUPLICATE_PGTIOU},
        ) from None

    logger.info("proxy callback saved PGT-IOU [%s]", pgt_iou)
    return Response(content=PROXY_SUCCESS, media_type="application/xml")

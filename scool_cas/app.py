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
FastAPI main entry point

This module configures an application that receives proxy-granting
tickets from the CAS server and keeps them until they expire.
"""

import contextlib
import logging
from typing import Any

import fastapi
import shortuuid

from . import __version__, db, routes, settings
from .storage import InMemoryPgtStorage, ProxyGrantingTicketStorage
from .tasks import CleanUpScheduler

logger = logging.getLogger(__name__)


def create_storage(pgt_settings: settings.PgtSettings) -> ProxyGrantingTicketStorage:
    if pgt_settings.db_url:
        logger.info("Using database PGT storage")
        engine = db.create_engine(pgt_settings.db_url)
        return db.SqlPgtStorage(engine, ttl=pgt_settings.ttl)
    logger.info("Using in-memory PGT storage")
    return InMemoryPgtStorage(ttl=pgt_settings.ttl)


def create_app(
    storage: ProxyGrantingTicketStorage | None = None,
    pgt_settings: settings.PgtSettings | None = None,
) -> fastapi.FastAPI:
    settings.configure_logging()
    pgt_settings = pgt_settings or settings.PgtSettings()
    if storage is None:
        storage = create_storage(pgt_settings)
    scheduler = CleanUpScheduler(storage, pgt_settings.cleanup_interval)

    @contextlib.asynccontextmanager
    async def lifespan(_: fastapi.FastAPI) -> Any:
        scheduler.start()
        try:
            yield
        finally:
            logger.info("stopping PGT clean up")
            scheduler.stop()

    app = fastapi.FastAPI(
        title="SCOOL CAS Proxy Callback",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
    )
    app.state.pgt_storage = storage
    app.state.cleanup_scheduler = scheduler

    @app.middleware("http")
    async def request_context_middleware(
        request: fastapi.Request, call_next: Any
    ) -> fastapi.Response:
        if not (request_id := request.headers.get("x-request-id")):
            request_id = shortuuid.uuid()
        client_ip = request.client.host if request.client else None
        settings.CTX_REQUEST.set(
            settings.RequestContext(request_id=request_id, client_ip=client_ip)
        )
        return await call_next(request)

    app.include_router(routes.router)
    return app

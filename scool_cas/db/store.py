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

import datetime
import logging

import sqlalchemy as sa

from .. import errors
from ..storage import TTL_DEFAULT, NowFunc, utc_now
from .core import IntegrityError, Session
from .models import Base, ProxyGrantingTicket

logger = logging.getLogger(__name__)


class SqlPgtStorage:
    """PGT storage backed by a database table.

    The table is created on first use if it does not exist.
    """

    def __init__(
        self,
        engine: sa.Engine,
        *,
        ttl: int = TTL_DEFAULT,
        now_func: NowFunc = utc_now,
    ) -> None:
        self.engine = engine
        self.ttl = datetime.timedelta(seconds=ttl)
        self.now = now_func
        Base.metadata.create_all(engine, tables=[ProxyGrantingTicket.__table__])

    def _utc_naive(self) -> datetime.datetime:
        return self.now().astimezone(datetime.UTC).replace(tzinfo=None)

    def _cutoff(self) -> datetime.datetime:
        return self._utc_naive() - self.ttl

    def save(self, pgt_iou: str, pgt: str) -> None:
        entry = ProxyGrantingTicket(iou=pgt_iou, pgt=pgt, created_at=self._utc_naive())
        with Session(self.engine) as session:
            try:
                session.add(entry)
                session.commit()
            except IntegrityError:
                session.rollback()
                logger.warning("Duplicate PGT-IOU rejected [%s]", pgt_iou)
                raise errors.DuplicateCorrelationError(pgt_iou) from None
        logger.debug("Saved PGT for PGT-IOU [%s]", pgt_iou)

    def retrieve(self, pgt_iou: str) -> str | None:
        stmt = sa.select(ProxyGrantingTicket.pgt).where(
            ProxyGrantingTicket.iou == pgt_iou,
            ProxyGrantingTicket.created_at > self._cutoff(),
        )
        with Session(self.engine) as session:
            return session.execute(stmt).scalar_one_or_none()

    def clean_up(self) -> int:
        stmt = sa.delete(ProxyGrantingTicket).where(
            ProxyGrantingTicket.created_at <= self._cutoff()
        )
        with Session(self.engine) as session, session.begin():
            count = session.execute(stmt).rowcount
        if count:
            logger.info("Removed %s expired PGT rows", count)
        return count

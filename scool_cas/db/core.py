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

import logging

import sqlalchemy as sa
import sqlalchemy.exc
import sqlalchemy.orm
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

IntegrityError = sqlalchemy.exc.IntegrityError
Session = sqlalchemy.orm.Session


def create_engine(url: str, *, echo: bool = False) -> sa.Engine:
    """Returns an engine for ``url``.

    An in-memory sqlite database is bound to a single connection so that
    every thread sees the same tables.
    """
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return sa.create_engine(url, echo=echo, **kwargs)
    return sa.create_engine(url, echo=echo, pool_recycle=3600, pool_pre_ping=True)

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

import sqlalchemy as sa
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
)


class Base(DeclarativeBase):
    pass


class ProxyGrantingTicket(Base):
    """Proxy-granting ticket keyed by its PGT-IOU.

    ``created_at`` is stored as naive UTC and is used to expire entries.
    """

    __tablename__ = "proxy_granting_tickets"

    iou: Mapped[str] = mapped_column(sa.String(255), primary_key=True)
    pgt: Mapped[str] = mapped_column(sa.String(255))
    created_at: Mapped[datetime.datetime] = mapped_column(sa.DateTime, index=True)

    def __repr__(self) -> str:
        return f"ProxyGrantingTicket(iou={self.iou!r}, created_at={self.created_at})"

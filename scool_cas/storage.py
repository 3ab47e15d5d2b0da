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
Proxy-granting ticket storage

The CAS server delivers the proxy-granting ticket (PGT) to the proxy
callback URL out-of-band, keyed by the PGT-IOU that it also returns in
the validation response. The storage correlates the two so that the
validator can resolve the PGT-IOU into the real PGT.

Entries are only evicted by ``clean_up`` once their TTL has elapsed, so
``clean_up`` must be called periodically, see ``tasks.CleanUpScheduler``.
"""

import dataclasses
import datetime
import logging
import threading
from collections.abc import Callable
from typing import Protocol

from . import errors

logger = logging.getLogger(__name__)

NowFunc = Callable[[], datetime.datetime]

TTL_DEFAULT = 60


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(tz=datetime.UTC)


class ProxyGrantingTicketStorage(Protocol):
    def save(self, pgt_iou: str, pgt: str) -> None:
        """Saves a new mapping else raises ``DuplicateCorrelationError``."""
        ...

    def retrieve(self, pgt_iou: str) -> str | None:
        """Returns the PGT for ``pgt_iou`` else ``None``."""
        ...

    def clean_up(self) -> int:
        """Removes expired entries and returns how many were removed."""
        ...


@dataclasses.dataclass(frozen=True)
class _Entry:
    pgt: str
    inserted_at: datetime.datetime


class InMemoryPgtStorage:
    """Thread-safe in-memory PGT storage.

    Suitable for a single process. Use ``db.SqlPgtStorage`` when the
    callback and the validation may be handled by different processes.
    """

    def __init__(self, ttl: int = TTL_DEFAULT, now_func: NowFunc = utc_now) -> None:
        self.ttl = datetime.timedelta(seconds=ttl)
        self.now = now_func
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _is_expired(self, entry: _Entry, now: datetime.datetime) -> bool:
        return entry.inserted_at + self.ttl <= now

    def save(self, pgt_iou: str, pgt: str) -> None:
        with self._lock:
            if pgt_iou in self._entries:
                logger.warning("Duplicate PGT-IOU rejected [%s]", pgt_iou)
                raise errors.DuplicateCorrelationError(pgt_iou)
            self._entries[pgt_iou] = _Entry(pgt=pgt, inserted_at=self.now())
        logger.debug("Saved PGT for PGT-IOU [%s]", pgt_iou)

    def retrieve(self, pgt_iou: str) -> str | None:
        with self._lock:
            entry = self._entries.get(pgt_iou)
        if entry is None or self._is_expired(entry, self.now()):
            return None
        return entry.pgt

    def clean_up(self) -> int:
        now = self.now()
        with self._lock:
            expired = [
                k for k, v in self._entries.items() if self._is_expired(v, now)
            ]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.info("Removed %s expired PGT entries", len(expired))
        return len(expired)

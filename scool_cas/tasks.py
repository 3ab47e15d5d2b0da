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
import threading

from .storage import ProxyGrantingTicketStorage

logger = logging.getLogger(__name__)


class CleanUpScheduler:
    """Periodically removes expired entries from a PGT storage.

    The interval should be shorter than the storage TTL.
    """

    def __init__(self, storage: ProxyGrantingTicketStorage, interval: float) -> None:
        self.storage = storage
        self.interval = interval
        self._thread: threading.Thread | None = None
        self._stopping = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stopping.clear()
        self._thread = threading.Thread(
            target=self.run,
            name="pgt_cleanup",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stopping.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def run(self) -> None:
        logger.info("Running PGT clean up every %ss", self.interval)
        while not self._stopping.wait(self.interval):
            self.execute()

    def execute(self) -> None:
        try:
            self.storage.clean_up()
        except Exception as exc:
            logger.error("PGT storage clean up failed: %r", exc)

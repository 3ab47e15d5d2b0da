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
CAS Client Settings and Configuration

Client-wide configuration settings that are read in from the Environment.
"""

import contextvars
import dataclasses
import logging
from pathlib import Path
from typing import Any

import pydantic_settings
import shortuuid
from pydantic import field_validator, model_validator

BASE_PATH = Path(__file__).parent.parent

VALID_PROTOCOLS = ("1.0", "2.0", "3.0")


@dataclasses.dataclass(frozen=True)
class RequestContext:
    """Context information to pass from routes to other services."""

    request_id: str
    client_ip: str | None


CTX_REQUEST: contextvars.ContextVar[RequestContext] = contextvars.ContextVar(
    "RequestContext",
    default=RequestContext(  # noqa: B039
        request_id=shortuuid.uuid(),
        client_ip=None,
    ),
)


class SharedSettings(pydantic_settings.BaseSettings):
    model_config = {"env_file": BASE_PATH / ".env", "frozen": True, "extra": "ignore"}


class LogSettings(SharedSettings, env_prefix="LOG_"):
    level_root: str = "WARNING"
    level_app: str = "INFO"


class PgtSettings(SharedSettings, env_prefix="CAS_PGT_"):
    """Proxy-granting ticket storage settings.

    ``cleanup_interval`` must be shorter than ``ttl`` so that expired
    entries never outlive a sweep by more than one interval.
    """

    ttl: int = 60
    cleanup_interval: int = 30
    db_url: str | None = None

    @model_validator(mode="after")
    def _verify_interval(self) -> "PgtSettings":
        if self.ttl <= 0:
            msg = f"Invalid PGT ttl [{self.ttl}], must be positive"
            raise ValueError(msg)
        if not 0 < self.cleanup_interval < self.ttl:
            msg = (
                f"Invalid cleanup interval [{self.cleanup_interval}], "
                f"must be positive and shorter than ttl [{self.ttl}]"
            )
            raise ValueError(msg)
        return self


class CasSettings(SharedSettings, env_prefix="CAS_"):
    """Main client settings.

    The attributes are populated from OS environment variables that are
    prefixed by ``CAS_``.
    """

    server_url: str = "https://cas.example.org/cas/"
    protocol: str = "3.0"
    renew: bool = False
    proxy_callback_url: str | None = None
    accept_any_proxy: bool = False
    allowed_proxy_chains: list[list[str]] = []
    http_timeout: float = 10.0
    verify_ssl: bool = True

    @field_validator("protocol")
    def _verify_protocol(cls, v: str) -> str:
        """Raises a ``ValueError`` if the provided protocol is not supported."""
        if v not in VALID_PROTOCOLS:
            msg = f"Invalid protocol [{v}], must be one of: {' '.join(VALID_PROTOCOLS)}"
            raise ValueError(msg)
        return v

    @field_validator("server_url")
    def _ensure_trailing_slash(cls, v: str) -> str:
        # endpoint paths are joined relative to the server url
        return v if v.endswith("/") else f"{v}/"


_old_log_factory = logging.getLogRecordFactory()


def _new_log_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
    record = _old_log_factory(*args, **kwargs)
    record.request_id = CTX_REQUEST.get().request_id
    return record


def configure_logging(log: LogSettings | None = None) -> None:
    """Configures process-wide logging for an application.

    Called by ``app.create_app``. Importing the client library alone
    leaves the logging configuration of the host application untouched.
    """
    log = log or LogSettings()
    if logging.getLogRecordFactory() is not _new_log_factory:
        logging.setLogRecordFactory(_new_log_factory)
    logging.basicConfig(
        format="%(asctime)s[%(levelname)s][%(request_id)s]%(name)s: %(message)s",
        level=log.level_root,
    )
    logging.getLogger(__package__).setLevel(log.level_app)

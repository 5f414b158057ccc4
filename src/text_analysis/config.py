"""Configuration for the text analysis frontend.

Everything is read from environment variables so the same code runs on a
laptop, in a classroom demo and in a container:

- ``SCORING_SERVICE_URL``: base URL of the remote scoring service.
- ``SERVICE_TIMEOUT_SECONDS``: overall read/write timeout per request.
- ``SERVICE_CONNECT_TIMEOUT_SECONDS``: timeout for opening the connection.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

import httpx


SERVICE_URL_DEFAULT = "http://127.0.0.1:8000"
TIMEOUT_SECONDS_DEFAULT = 30.0
CONNECT_TIMEOUT_SECONDS_DEFAULT = 10.0


def _float_from_env(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number of seconds, got {raw!r}") from None


@dataclass(frozen=True)
class ServiceConfig:
    """Where the scoring service lives and how long we wait for it.

    Parameters
    ----------
    base_url : str
        Base URL of the remote service, without trailing slash.
    timeout_seconds : float
        Read, write and pool timeout for each request.
    connect_timeout_seconds : float
        Timeout for establishing the TCP connection.

    Examples
    --------
    >>> ServiceConfig.from_env({"SCORING_SERVICE_URL": "http://scoring:8000/"}).base_url
    'http://scoring:8000'
    """

    base_url: str = SERVICE_URL_DEFAULT
    timeout_seconds: float = TIMEOUT_SECONDS_DEFAULT
    connect_timeout_seconds: float = CONNECT_TIMEOUT_SECONDS_DEFAULT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServiceConfig":
        if environ is None:
            environ = os.environ
        base_url = environ.get("SCORING_SERVICE_URL") or SERVICE_URL_DEFAULT
        return cls(
            base_url=base_url.rstrip("/"),
            timeout_seconds=_float_from_env(environ, "SERVICE_TIMEOUT_SECONDS", TIMEOUT_SECONDS_DEFAULT),
            connect_timeout_seconds=_float_from_env(
                environ, "SERVICE_CONNECT_TIMEOUT_SECONDS", CONNECT_TIMEOUT_SECONDS_DEFAULT
            ),
        )

    def url(self, path: str) -> str:
        """Join an endpoint path onto the base URL."""
        return f"{self.base_url}/{path.lstrip('/')}"

    def timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            self.timeout_seconds,
            connect=self.connect_timeout_seconds,
            read=self.timeout_seconds,
            write=self.timeout_seconds,
            pool=self.timeout_seconds,
        )

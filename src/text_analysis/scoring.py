"""Client for the remote scoring service.

The service is built and run independently. It exposes four endpoints:

- ``POST /toxicity`` with ``{"text": ...}`` returns
  ``{"text", "predicted_class", "score", "probabilities": {"Neutral", ...}}``
- ``POST /edu-score`` with ``{"text": ...}`` returns
  ``{"text", "score", "int_score"}``
- ``GET /logs`` returns a list of ``{"id", "text", "result_type", "score"}``
- ``DELETE /clear-logs`` returns an empty or acknowledgement body

This module only talks to the service and measures it. It keeps no view
state; see :mod:`text_analysis.view` for that.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import httpx

from text_analysis.config import ServiceConfig


TOXICITY_PATH = "/toxicity"
EDU_SCORE_PATH = "/edu-score"
LOGS_PATH = "/logs"
CLEAR_LOGS_PATH = "/clear-logs"


class ServiceResponseError(ValueError):
    """The service answered, but not with a success status."""

    def __init__(self, method: str, path: str, status_code: int, body: str) -> None:
        self.method = method
        self.path = path
        self.status_code = status_code
        self.body = body
        super().__init__(
            "Service returned an error status.\n"
            f"- Request: {method} {path}\n"
            f"- HTTP status: {status_code}\n"
            f"- Response body (first 2k chars): {body[:2000]}"
        )


class ServiceSchemaError(ValueError):
    """The service answered with a success status, but the JSON body has the wrong shape."""

    def __init__(self, path: str, problems: List[str], data: Any) -> None:
        self.path = path
        self.problems = problems
        super().__init__(
            f"Service response JSON from {path} did not match the expected schema.\n"
            + "".join(f"- {p}\n" for p in problems)
            + f"Got: {data!r:.2000}"
        )


# -----------------------------
# Lightweight operational metrics
# -----------------------------

@dataclass
class Metrics:
    """In-memory operational metrics for calls to the scoring service.

    Notes
    -----
    The metrics reset when the process restarts.
    """

    config: ServiceConfig = field(default_factory=ServiceConfig)
    total_requests: int = 0
    success_requests: int = 0
    failed_requests: int = 0
    requests_by_endpoint: Dict[str, int] = field(default_factory=dict)
    last_latency_ms: Optional[float] = None
    latency_ms_sum: float = 0.0
    latency_ms_count: int = 0
    last_error: Optional[str] = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def _count(self, endpoint: str) -> None:
        self.total_requests += 1
        self.requests_by_endpoint[endpoint] = self.requests_by_endpoint.get(endpoint, 0) + 1

    async def record_success(self, endpoint: str, latency_ms: float) -> None:
        async with self.lock:
            self._count(endpoint)
            self.success_requests += 1
            self.last_latency_ms = latency_ms
            self.latency_ms_sum += latency_ms
            self.latency_ms_count += 1
            self.last_error = None

    async def record_failure(self, endpoint: str, latency_ms: Optional[float], error: str) -> None:
        async with self.lock:
            self._count(endpoint)
            self.failed_requests += 1
            self.last_latency_ms = latency_ms
            self.last_error = error

    async def snapshot(self) -> Dict[str, Any]:
        async with self.lock:
            avg = None
            if self.latency_ms_count > 0:
                avg = self.latency_ms_sum / self.latency_ms_count
            return {
                "service_url": self.config.base_url,
                "timeout_seconds": self.config.timeout_seconds,
                "connect_timeout_seconds": self.config.connect_timeout_seconds,
                "total_requests": self.total_requests,
                "success_requests": self.success_requests,
                "failed_requests": self.failed_requests,
                "requests_by_endpoint": dict(self.requests_by_endpoint),
                "last_latency_ms": self.last_latency_ms,
                "avg_latency_ms": avg,
                "last_error": self.last_error,
            }


# -----------------------------
# Helper functions
# -----------------------------

def describe_failure(ex: Exception, config: ServiceConfig) -> str:
    """Convert a low-level exception into a pedagogic message.

    Parameters
    ----------
    ex:
        The exception raised while calling the scoring service.
    config:
        The configuration in use, quoted back in the message.

    Returns
    -------
    str
        A human-friendly, multi-line explanation.

    Examples
    --------
    >>> print(describe_failure(RuntimeError("boom"), ServiceConfig()).splitlines()[1])
    - Error type: RuntimeError
    """
    if isinstance(ex, httpx.ConnectError):
        return (
            "Could not connect to the scoring service.\n"
            f"- Configured service URL: {config.base_url}\n"
            "- Is the service running, and is the URL correct?\n"
            "- You can change it with environment variable SCORING_SERVICE_URL.\n"
        )
    if isinstance(ex, httpx.TimeoutException):
        return (
            "The scoring service did not respond before the timeout.\n"
            f"- Current timeout: {config.timeout_seconds} seconds "
            f"(connect: {config.connect_timeout_seconds} seconds)\n"
            "- Consider increasing SERVICE_TIMEOUT_SECONDS.\n"
        )
    if isinstance(ex, httpx.RemoteProtocolError):
        return (
            "The connection was established, but the HTTP protocol exchange failed.\n"
            "- This can happen if a proxy or server closes the connection unexpectedly.\n"
            "- Check the service logs.\n"
        )
    if isinstance(ex, (ServiceResponseError, ServiceSchemaError)):
        return str(ex) + "\n"
    return (
        "An unexpected error happened while calling the scoring service.\n"
        f"- Error type: {type(ex).__name__}\n"
        f"- Details: {ex}\n"
    )


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def check_toxicity(data: Dict[str, Any]) -> List[str]:
    """Problems with a ``POST /toxicity`` body (empty list when fine).

    >>> check_toxicity({"text": "hi", "predicted_class": "Neutral", "score": 0.1,
    ...                 "probabilities": {"Neutral": 0.9}})
    []
    """
    problems = []
    if not isinstance(data.get("text"), str):
        problems.append("'text' should be a string")
    if not isinstance(data.get("predicted_class"), str):
        problems.append("'predicted_class' should be a string")
    if not is_number(data.get("score")):
        problems.append("'score' should be a number")
    probabilities = data.get("probabilities")
    if not isinstance(probabilities, dict):
        problems.append("'probabilities' should be an object")
    elif not is_number(probabilities.get("Neutral")):
        problems.append("'probabilities.Neutral' should be a number")
    return problems


def check_edu_score(data: Dict[str, Any]) -> List[str]:
    problems = []
    if not isinstance(data.get("text"), str):
        problems.append("'text' should be a string")
    if not is_number(data.get("score")):
        problems.append("'score' should be a number")
    int_score = data.get("int_score")
    if not isinstance(int_score, int) or isinstance(int_score, bool):
        problems.append("'int_score' should be an integer")
    return problems


def check_log_entries(logs: List[Any]) -> List[str]:
    """Only what rendering relies on: every entry is an object."""
    return [f"entry {i} should be an object" for i, log in enumerate(logs) if not isinstance(log, dict)]


def _expect_object(path: str, data: Any, check: Callable[[Dict[str, Any]], List[str]]) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ServiceSchemaError(path, ["expected a JSON object"], data)
    problems = check(data)
    if problems:
        raise ServiceSchemaError(path, problems, data)
    return data


def _expect_list(path: str, data: Any) -> List[Dict[str, Any]]:
    if not isinstance(data, list):
        raise ServiceSchemaError(path, ["expected a JSON list of log entries"], data)
    problems = check_log_entries(data)
    if problems:
        raise ServiceSchemaError(path, problems, data)
    return data


class ScoringClient:
    """Asynchronous client for the four scoring service endpoints.

    Parameters
    ----------
    config : ServiceConfig, optional
        Base URL and timeouts. Defaults to :meth:`ServiceConfig.from_env`.
    metrics : Metrics, optional
        Where to record latency and success/failure counts.
    transport : httpx.AsyncBaseTransport, optional
        Custom transport, e.g. ``httpx.MockTransport`` in tests.

    Notes
    -----
    Each call opens its own ``httpx.AsyncClient``, so a client object can be
    shared between event loops (Streamlit runs a fresh loop per rerun).
    Failures propagate: ``httpx.HTTPError`` for network, timeout and protocol
    problems, :class:`ServiceResponseError` for non-2xx statuses and
    ``ValueError`` (:class:`ServiceSchemaError` or a JSON decode error) for a
    body that is not what the endpoint promises.
    """

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        metrics: Optional[Metrics] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config or ServiceConfig.from_env()
        self.metrics = metrics or Metrics(config=self.config)
        self.transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        parse: Optional[Callable[[httpx.Response], Any]] = None,
    ) -> Any:
        t0 = time.perf_counter()
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout(), transport=self.transport) as client:
                resp = await client.request(method, self.config.url(path), json=payload)
            if not resp.is_success:
                raise ServiceResponseError(method, path, resp.status_code, resp.text)
            result = parse(resp) if parse is not None else None
        except (httpx.HTTPError, ValueError) as ex:
            latency_ms = (time.perf_counter() - t0) * 1000.0
            await self.metrics.record_failure(path, latency_ms, describe_failure(ex, self.config))
            raise
        latency_ms = (time.perf_counter() - t0) * 1000.0
        await self.metrics.record_success(path, latency_ms)
        return result

    async def toxicity(self, text: str) -> Dict[str, Any]:
        """Score ``text`` for toxicity and return the full response body."""
        return await self._request(
            "POST", TOXICITY_PATH, {"text": text},
            parse=lambda resp: _expect_object(TOXICITY_PATH, resp.json(), check_toxicity),
        )

    async def edu_score(self, text: str) -> Dict[str, Any]:
        """Score ``text`` for educational quality and return the full response body."""
        return await self._request(
            "POST", EDU_SCORE_PATH, {"text": text},
            parse=lambda resp: _expect_object(EDU_SCORE_PATH, resp.json(), check_edu_score),
        )

    async def logs(self) -> List[Dict[str, Any]]:
        """Fetch the log history, in the order the service returns it."""
        return await self._request("GET", LOGS_PATH, parse=lambda resp: _expect_list(LOGS_PATH, resp.json()))

    async def clear_logs(self) -> None:
        """Delete every log entry on the service."""
        await self._request("DELETE", CLEAR_LOGS_PATH)

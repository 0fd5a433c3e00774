"""Submit -> poll -> retrieve protocol for job-based provider APIs.

A job moves ``Submitted -> Polling -> Ready | Failed``. While polling, a 404
means the backend has not indexed the job yet and is retried until the
not-found deadline; every other non-success status, and an explicit
``failed`` status, ends the job immediately.
"""

from __future__ import annotations

import asyncio
import json
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Awaitable, Callable, Optional

import httpx
from pydantic import ValidationError

from sns_relay.core.errors import (
    FetchError,
    JobFailedError,
    JobTimeoutError,
    ParseError,
    ProtocolError,
)
from sns_relay.log import get_logger

logger = get_logger(__name__)

DEFAULT_POLL_TIMEOUT = 10.0
DEFAULT_POLL_INTERVAL = 0.5


class JobStatus(StrEnum):
    RUNNING = "running"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class JobState:
    job_id: str
    status: JobStatus


class JobEndpoints(ABC):
    """Request builders and body parsers for one provider's job API."""

    @abstractmethod
    def submit_request(self, payload: Any) -> httpx.Request:
        ...

    @abstractmethod
    def parse_job_id(self, body: Any) -> Optional[str]:
        """Return the job id from a submit response, or None when absent."""
        ...

    @abstractmethod
    def status_request(self, job_id: str) -> httpx.Request:
        ...

    @abstractmethod
    def parse_status(self, body: Any) -> JobStatus:
        ...

    @abstractmethod
    def result_request(self, job_id: str) -> httpx.Request:
        ...


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ParseError(f"response from {response.request.url} is not JSON") from e


class JobPoller:
    """Drives one job through its provider's submit/poll/retrieve endpoints."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        endpoints: JobEndpoints,
        *,
        timeout: float = DEFAULT_POLL_TIMEOUT,
        interval: float = DEFAULT_POLL_INTERVAL,
        max_wait: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._client = client
        self._endpoints = endpoints
        self._timeout = timeout
        self._interval = interval
        self._max_wait = max_wait
        self._clock = clock
        self._sleep = sleep

    async def _send(self, request: httpx.Request) -> httpx.Response:
        try:
            return await self._client.send(request)
        except httpx.HTTPError as e:
            raise FetchError(f"request to {request.url} failed: {e}") from e

    async def submit(self, payload: Any) -> str:
        """Create the job and return its identifier."""
        response = await self._send(self._endpoints.submit_request(payload))
        if not response.is_success:
            logger.error(
                "job_submit_failed",
                status_code=response.status_code,
                body=response.text,
            )
            raise FetchError("job submission rejected", status_code=response.status_code)

        try:
            job_id = self._endpoints.parse_job_id(_json_body(response))
        except ValidationError as e:
            raise ParseError(f"invalid job submission response: {e}") from e

        if not job_id:
            raise ProtocolError("job submission response has no job id")

        logger.debug("job_submitted", job_id=job_id)
        return job_id

    async def wait_until_ready(self, job_id: str) -> JobState:
        """Poll until the job is ready; raise on failure or timeout."""
        started = self._clock()
        not_found_deadline = started + self._timeout

        while True:
            response = await self._send(self._endpoints.status_request(job_id))

            if response.status_code == 404:
                if self._clock() > not_found_deadline:
                    logger.error("job_poll_timeout", job_id=job_id, body=response.text)
                    raise JobTimeoutError(
                        f"job {job_id} not found within {self._timeout}s", job_id=job_id
                    )
                logger.debug("job_poll_not_found", job_id=job_id)
                await self._sleep(self._interval)
                continue

            if not response.is_success:
                logger.error(
                    "job_poll_failed",
                    job_id=job_id,
                    status_code=response.status_code,
                    body=response.text,
                )
                raise ProtocolError(
                    f"job {job_id} status request returned {response.status_code}",
                    job_id=job_id,
                )

            try:
                status = self._endpoints.parse_status(_json_body(response))
            except (ValidationError, ParseError) as e:
                raise ProtocolError(f"invalid status for job {job_id}: {e}", job_id=job_id) from e

            match status:
                case JobStatus.READY:
                    logger.debug("job_ready", job_id=job_id)
                    return JobState(job_id=job_id, status=status)
                case JobStatus.FAILED:
                    logger.error("job_failed", job_id=job_id)
                    raise JobFailedError(f"job {job_id} failed", job_id=job_id)
                case JobStatus.RUNNING:
                    if self._max_wait is not None and self._clock() > started + self._max_wait:
                        raise JobTimeoutError(
                            f"job {job_id} still running after {self._max_wait}s",
                            job_id=job_id,
                        )
                    await self._sleep(self._interval)

    async def retrieve(self, job_id: str) -> Any:
        """Fetch the finished artifact as decoded JSON."""
        response = await self._send(self._endpoints.result_request(job_id))
        if not response.is_success:
            logger.error(
                "job_retrieve_failed",
                job_id=job_id,
                status_code=response.status_code,
                body=response.text,
            )
            raise ProtocolError(
                f"job {job_id} result request returned {response.status_code}", job_id=job_id
            )
        try:
            return _json_body(response)
        except ParseError as e:
            raise ProtocolError(str(e), job_id=job_id) from e

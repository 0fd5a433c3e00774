"""Error taxonomy for the retrieval pipeline.

Every error is terminal for the link being processed. The only retry in the
pipeline is the not-found branch of job polling, which lives inside
:class:`sns_relay.jobs.polling.JobPoller`.
"""

from __future__ import annotations


class SnsError(Exception):
    """Base class for all pipeline errors."""


class MetadataError(SnsError):
    """A URL match is missing a capture group the platform requires."""


class FetchError(SnsError):
    """An HTTP request failed or returned a non-success status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(SnsError):
    """A response body is not valid JSON or fails schema validation."""


class ContentError(SnsError):
    """A response parsed fine but is missing required content."""


class MessageTooLongError(ContentError):
    """A single line item does not fit into one message body."""


class ProtocolError(SnsError):
    """The job-polling protocol was violated by the provider."""

    def __init__(self, message: str, job_id: str | None = None):
        super().__init__(message)
        self.job_id = job_id


class JobFailedError(ProtocolError):
    """The provider reported that the job failed."""


class JobTimeoutError(ProtocolError):
    """The job did not become visible before the polling deadline."""


class UnsupportedPlatformError(SnsError):
    """No downloader is registered for a link's platform."""

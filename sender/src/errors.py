"""
Exception taxonomy for the power data sender.

Every failure the sender can hit during a run maps to one of these classes.
They are raised where the problem is detected and propagate unchanged to
``main()``, which logs them and turns them into a non-zero exit status.
Nothing is retried: the weekly schedule re-runs the job, and the remote
upsert-by-date makes a re-run safe.

Hierarchy::

    SenderError
    +-- ConfigurationError
    +-- SourceError
    |   +-- SourceUnavailableError
    |   +-- SourceDataError
    +-- NormalizationError
    |   +-- EmptyResultError
    +-- SubmissionError
        +-- SubmissionRejectedError
        +-- TransportError

CHANGELOG:
- 2026-10-16: Initial creation

TODO:
- None
"""

from __future__ import annotations


class SenderError(Exception):
    """Base class for all sender failures."""


class ConfigurationError(SenderError):
    """Missing endpoint URL, bad config file, bad CLI usage or date range."""


class SourceError(SenderError):
    """The Power Monitor journal could not be obtained."""


class SourceUnavailableError(SourceError):
    """The Power Monitor binary is missing or not executable."""


class SourceDataError(SourceError):
    """The Power Monitor binary failed or produced unusable output."""


class NormalizationError(SenderError):
    """Journal records could not be mapped into entries."""


class EmptyResultError(NormalizationError):
    """No valid entries remain to be sent for the requested window."""


class SubmissionError(SenderError):
    """The batch could not be delivered to the sheet endpoint."""


class SubmissionRejectedError(SubmissionError):
    """The endpoint answered with ``success: false``."""


class TransportError(SubmissionError):
    """Network failure or an HTTP status that does not indicate delivery.

    Attributes:
        status_code: HTTP status, or ``None`` when no response was received.
        body_excerpt: First 500 characters of the response body.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body_excerpt: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body_excerpt = body_excerpt

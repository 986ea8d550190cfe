"""Error taxonomy shared by the engines, the session store and the routers."""

from __future__ import annotations


class CheckinError(Exception):
    """Base class for every error raised by the check-in service."""


class ValidationError(CheckinError):
    """Required input is missing or empty."""


class EmptyInputError(ValidationError):
    """An operation that aggregates input received nothing to aggregate."""


class InterviewNotFoundError(ValidationError):
    """No interview record exists for the requested id."""


class UpstreamAgentError(CheckinError):
    """The external agent was unreachable or returned unusable content."""


class InternalError(CheckinError):
    """Unexpected failure, converted to an error response at the boundary."""

"""Core enumerations shared by the scheduler and the transport layer."""

from enum import Enum


class DataFormat(str, Enum):
    """How a response body is decoded before it reaches listeners."""

    JSON = "json"
    TEXT = "text"


class HTTPMethod(str, Enum):
    """HTTP verb used to fetch a chunk."""

    GET = "GET"
    POST = "POST"


class SchedulerState(str, Enum):
    """Lifecycle of a single scheduler run.

    A scheduler moves forward only:
    NOT_STARTED -> (RETRIEVING) -> RUNNING -> FINISHED, or FAILED on a fatal error.
    """

    NOT_STARTED = "not_started"
    RETRIEVING = "retrieving"
    RUNNING = "running"
    FINISHED = "finished"
    FAILED = "failed"


class AttemptOutcome(str, Enum):
    """Outcome of one admission of a chunk."""

    SUCCEEDED = "succeeded"
    FAILED_RETRYABLE = "failed_retryable"
    GAVE_UP = "gave_up"


class RequestEncoding(str, Enum):
    """How a chunk is encoded in a POST body.

    FORM sends ``chunk[]=<id>`` pairs, the encoding jQuery uses for arrays.
    """

    JSON = "json"
    FORM = "form"

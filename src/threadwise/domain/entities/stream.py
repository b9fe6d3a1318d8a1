"""Streaming types shared by inference and delivery."""

from enum import Enum

from pydantic import BaseModel


class StreamChunk(BaseModel):
    """One increment of model output.

    Attributes:
        content: Text delta, possibly empty.
        done: True on the last chunk of a stream.
        error: Error description when the stream failed.
    """

    content: str = ""
    done: bool = False
    error: str | None = None


class StreamState(str, Enum):
    """Lifecycle of one outbound reply."""

    IDLE = "idle"
    CREATED = "created"
    UPDATING = "updating"
    FINALIZED = "finalized"
    ERRORED = "errored"

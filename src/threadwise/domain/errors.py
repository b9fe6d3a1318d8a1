"""Domain exceptions."""


class ThreadwiseError(Exception):
    """Base exception for runtime errors."""


class StoreIOError(ThreadwiseError):
    """Raised when the message store cannot be read or written."""


class UpstreamFetchError(ThreadwiseError):
    """Raised when a message cannot be fetched from the chat platform."""


class InferenceError(ThreadwiseError):
    """Raised when the model call or its stream fails."""


class DeliveryTransportError(ThreadwiseError):
    """Raised when sending or editing the reply fails."""


class ContentExtractionError(ThreadwiseError):
    """Raised when webpage text cannot be extracted.

    Attributes:
        exit_code: Exit code of the extractor process, if it ran.
    """

    def __init__(self, message: str, exit_code: int | None = None) -> None:
        super().__init__(message)
        self.exit_code = exit_code

from __future__ import annotations

from collections.abc import Sequence

from botocore.exceptions import ClientError

# Kinesis reports a stream that is already DELETING as ResourceInUse, and one
# that is already gone as ResourceNotFound.
IN_PROGRESS_ERROR_CODES: frozenset[str] = frozenset({"ResourceInUseException", "ResourceNotFoundException"})


class TooManyStreamsError(Exception):
    def __init__(self, count: int, limit: int) -> None:
        super().__init__(f"Too many Streams requested at once ({count} > {limit}). Reduce the batch size.")
        self.count = count
        self.limit = limit


class StreamDeleteError(Exception):
    """A single failed DeleteStream call, chained from the provider error."""

    def __init__(self, identifier: str, cause: BaseException) -> None:
        super().__init__(f"{identifier}: {cause}")
        self.identifier = identifier
        self.cause = cause
        self.__cause__ = cause


class StreamDeletionErrors(ExceptionGroup):
    """Every failure from one or more delete batches, in completion order."""

    def __new__(cls, message: str, errors: Sequence[StreamDeleteError]):
        return super().__new__(cls, message, list(errors))

    def derive(self, excs):
        return StreamDeletionErrors(self.message, excs)

    @property
    def identifiers(self) -> list[str]:
        return [e.identifier for e in self.exceptions if isinstance(e, StreamDeleteError)]


def error_code(exc: BaseException | None) -> str | None:
    if isinstance(exc, StreamDeleteError):
        exc = exc.cause
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    return None


def is_deletion_in_progress(exc: BaseException | None) -> bool:
    """True when the error only means the stream is already going (or gone)."""
    return error_code(exc) in IN_PROGRESS_ERROR_CODES

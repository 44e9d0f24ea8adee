"""
Tagged results for service operations.

Expected failures (missing link, taken key, rejected data, failed export) are
returned as Failure values instead of raised, so every caller has to look at
the outcome. Only unexpected errors (database down, bugs) propagate as
exceptions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class LinkErrorType(str, Enum):
    """Failure categories a link operation can report"""
    NOT_FOUND = "NOT_FOUND"
    DUPLICATE_SHORTENED_URL = "DUPLICATE_SHORTENED_URL"
    INVALID_DATA = "INVALID_DATA"
    EXPORT_FAILED = "EXPORT_FAILED"


DEFAULT_MESSAGES = {
    LinkErrorType.NOT_FOUND: "Link not found",
    LinkErrorType.DUPLICATE_SHORTENED_URL: "Shortened URL already exists",
    LinkErrorType.INVALID_DATA: "Invalid data for link update",
    LinkErrorType.EXPORT_FAILED: "Failed to export links",
}


@dataclass(frozen=True)
class LinkError:
    type: LinkErrorType
    message: str = ""

    def __post_init__(self):
        if not self.message:
            object.__setattr__(self, "message", DEFAULT_MESSAGES[self.type])


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    error: LinkError

    @property
    def ok(self) -> bool:
        return False


Result = Union[Success[T], Failure]


def failure(error_type: LinkErrorType, message: str = "") -> Failure:
    """Shortcut for Failure(LinkError(...))"""
    return Failure(LinkError(error_type, message))

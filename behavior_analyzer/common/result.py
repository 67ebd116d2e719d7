from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from behavior_analyzer.common.errors import InsufficientHistoryError

T = TypeVar("T")


@dataclass(frozen=True)
class Ready(Generic[T]):
    """Outcome carrying a value that could be computed."""

    value: T

    @property
    def is_ready(self) -> bool:
        return True

    def unwrap(self) -> T:
        """
        :return: the wrapped value.
        """
        return self.value


@dataclass(frozen=True)
class NotReady:
    """Outcome of a computation that lacked data, expected to succeed on a later tick."""

    reason: str

    @property
    def is_ready(self) -> bool:
        return False

    def unwrap(self):
        """
        Escalates the transient outcome for callers that cannot handle it.
        :raises InsufficientHistoryError: always
        """
        raise InsufficientHistoryError(self.reason)


Result = Union[Ready[T], NotReady]

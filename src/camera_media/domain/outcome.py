"""Single-shot operation outcomes.

A media operation resolves to exactly one :class:`Success` or
:class:`Failure`. :class:`OutcomeFuture` is the completion guard used by the
process runner: the first resolution wins and later attempts are ignored.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar, Union

from camera_media.domain.exceptions import FailureKind, MediaError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful outcome carrying an optional value."""

    value: Optional[T] = None

    @property
    def is_success(self) -> bool:
        return True

    def unwrap(self) -> Optional[T]:
        return self.value


@dataclass(frozen=True)
class Failure:
    """Failed outcome carrying the typed error."""

    error: MediaError

    @property
    def is_success(self) -> bool:
        return False

    @property
    def kind(self) -> FailureKind:
        return self.error.kind

    @property
    def message(self) -> str:
        return self.error.diagnostic_text

    def unwrap(self) -> Any:
        raise self.error


ProcessOutcome = Union[Success, Failure]


class OutcomeFuture:
    """One-shot container for a :data:`ProcessOutcome`.

    Exit and error notifications can both try to complete the same
    invocation; only the first one is kept.
    """

    def __init__(self) -> None:
        self._future: asyncio.Future = asyncio.get_running_loop().create_future()

    @property
    def done(self) -> bool:
        return self._future.done()

    def resolve(self, outcome: ProcessOutcome) -> bool:
        """Complete the future.

        Returns:
            True if this call produced the outcome, False if one already existed
        """
        if self._future.done():
            logger.debug(f"Ignoring duplicate outcome: {outcome!r}")
            return False

        self._future.set_result(outcome)
        return True

    def result(self) -> ProcessOutcome:
        return self._future.result()

    async def wait(self) -> ProcessOutcome:
        return await asyncio.shield(self._future)

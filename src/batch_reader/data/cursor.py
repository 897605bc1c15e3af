"""Restartable cursor over a dataset's pre-built batch list.

The cursor is an explicit three-state machine::

    NOT_STARTED --advance()--> POSITIONED(0) --advance()--> ... --> EXHAUSTED
         ^                                                              |
         +--------------------------- reset() --------------------------+

``current()`` is only valid while POSITIONED. A cursor is not safe to share
between threads, but any number of cursors may walk the same dataset.
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum
from typing import TYPE_CHECKING

import torch

from batch_reader.exceptions import InvalidCursorStateError

if TYPE_CHECKING:
    from batch_reader.data.dataset import BatchDataset

# Position before the first batch.
BEFORE_FIRST = -1


class CursorState(Enum):
    NOT_STARTED = "not_started"
    POSITIONED = "positioned"
    EXHAUSTED = "exhausted"


class BatchCursor:
    """Single-pass, resettable view of a :class:`BatchDataset`.

    Obtain one with :meth:`BatchDataset.cursor`. Restarting is cheap: the
    batches are already materialized and are never rebuilt.
    """

    def __init__(self, dataset: BatchDataset) -> None:
        self._dataset = dataset
        self._position = BEFORE_FIRST

    @property
    def position(self) -> int:
        return self._position

    @property
    def state(self) -> CursorState:
        if self._position == BEFORE_FIRST:
            return CursorState.NOT_STARTED
        if self._position < self._dataset.num_batches:
            return CursorState.POSITIONED
        return CursorState.EXHAUSTED

    def advance(self) -> bool:
        """Move to the next batch. Returns ``False`` once past the last one."""
        num_batches = self._dataset.num_batches
        if self._position < num_batches:
            self._position += 1
        return self._position < num_batches

    def current(self) -> tuple[torch.Tensor, torch.Tensor]:
        """The ``(data, labels)`` pair at the current position."""
        state = self.state
        if state is CursorState.NOT_STARTED:
            raise InvalidCursorStateError("current() called before advance()")
        if state is CursorState.EXHAUSTED:
            raise InvalidCursorStateError("current() called after the last batch")
        return self._dataset.batch(self._position).as_tuple()

    def reset(self) -> None:
        self._position = BEFORE_FIRST

    # Python iterator protocol, layered on the explicit transitions above.
    def __iter__(self) -> Iterator[tuple[torch.Tensor, torch.Tensor]]:
        return self

    def __next__(self) -> tuple[torch.Tensor, torch.Tensor]:
        if not self.advance():
            raise StopIteration
        return self.current()

    def __repr__(self) -> str:
        return f"BatchCursor(position={self._position})"

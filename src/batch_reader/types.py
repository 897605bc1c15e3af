"""Type aliases, TypedDicts and the Batch container shared across batch_reader."""

from __future__ import annotations

from collections.abc import Callable
from typing import TypedDict

import torch

from batch_reader.exceptions import UseAfterDisposeError

# External per-batch transform: takes ownership of its input, returns a new tensor.
BatchTransform = Callable[[torch.Tensor], torch.Tensor]


class ClassificationBatch(TypedDict):
    """A single batch in dict form, as consumed by Lightning training steps.

    images: Float tensor of shape (B, C, H, W), intensities in [0, 1).
    labels: Long tensor of shape (B,), integer class indices.
    """

    images: torch.Tensor
    labels: torch.Tensor


class Batch:
    """One materialized batch: a data tensor and its label tensor.

    The batch owns both tensors until :meth:`release` is called. After that,
    reading ``data`` or ``labels`` raises :class:`UseAfterDisposeError`.

    Args:
        data: Float32 tensor of shape ``(B, C, H, W)``.
        labels: Int64 tensor of shape ``(B,)``.
    """

    def __init__(self, data: torch.Tensor, labels: torch.Tensor) -> None:
        if data.shape[0] != labels.shape[0]:
            raise ValueError(
                f"data holds {data.shape[0]} samples but labels hold {labels.shape[0]}"
            )
        self._data: torch.Tensor | None = data
        self._labels: torch.Tensor | None = labels
        self._length = int(labels.shape[0])

    @property
    def released(self) -> bool:
        return self._data is None

    @property
    def data(self) -> torch.Tensor:
        if self._data is None:
            raise UseAfterDisposeError("Batch data accessed after release()")
        return self._data

    @property
    def labels(self) -> torch.Tensor:
        if self._labels is None:
            raise UseAfterDisposeError("Batch labels accessed after release()")
        return self._labels

    def as_tuple(self) -> tuple[torch.Tensor, torch.Tensor]:
        return self.data, self.labels

    def as_dict(self) -> ClassificationBatch:
        return {"images": self.data, "labels": self.labels}

    def release(self) -> None:
        """Drop both tensors. Safe to call more than once."""
        self._data = None
        self._labels = None

    def __len__(self) -> int:
        if self.released:
            raise UseAfterDisposeError("Batch length requested after release()")
        return self._length

    def __repr__(self) -> str:
        if self.released:
            return f"Batch(len={self._length}, released)"
        return f"Batch(len={self._length}, data={tuple(self._data.shape)})"  # type: ignore[union-attr]

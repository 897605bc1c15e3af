"""In-memory batched dataset over fixed-layout binary image files.

The whole split is read, permuted, normalized and cut into batches once, at
construction. Afterwards the batch list never changes: iteration only walks
it through :class:`~batch_reader.data.cursor.BatchCursor` objects, so
restarting an epoch costs nothing and several cursors can share one dataset.

Two ways to build one:

- ``BatchDataset(payload, ...)`` from an already-read :class:`RawPayload`.
- ``BatchDataset.from_files(path, split, ...)`` / ``from_config(cfg)``, which
  read the files through a format strategy first.

The dataset owns every tensor it creates. :meth:`BatchDataset.release` (also
run on context-manager exit) drops them all; any later access raises
:class:`UseAfterDisposeError`.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from pathlib import Path

import psutil  # type: ignore[import-untyped]
import torch
from loguru import logger
from torch.utils.data import Dataset

from batch_reader.config import ReaderConfig
from batch_reader.data.builder import build_batches, compose_transforms
from batch_reader.data.cursor import BatchCursor
from batch_reader.data.permutation import permute
from batch_reader.exceptions import UseAfterDisposeError
from batch_reader.formats import BaseSampleFormat, IdxFormat, RawPayload, get_format
from batch_reader.types import Batch, BatchTransform

__all__ = ["BatchDataset"]

_FLOAT32_BYTES = 4


class BatchDataset(Dataset[tuple[torch.Tensor, torch.Tensor]]):
    """Pre-built sequence of ``(data, labels)`` batches.

    As a torch ``Dataset`` it is indexed by *batch*: ``len(ds)`` is the
    number of batches and ``ds[i]`` is batch ``i``. Use
    ``DataLoader(ds, batch_size=None)`` to feed it through Lightning unchanged.
    The number of samples is :attr:`size`.

    Args:
        payload: Buffered samples and labels of one split.
        batch_size: Samples per batch; the last batch holds the remainder.
        shuffle: Draw a random traversal order instead of file order.
        device: Where the batch tensors are allocated.
        transform: Optional ``tensor -> tensor`` callable applied per batch
            (or a sequence of them, applied in order).
        seed: Makes ``shuffle=True`` reproducible when set.
        progress: Show a tqdm bar while building batches.
    """

    def __init__(
        self,
        payload: RawPayload,
        *,
        batch_size: int = 32,
        shuffle: bool = False,
        device: torch.device | str | None = None,
        transform: BatchTransform | Sequence[BatchTransform] | None = None,
        seed: int | None = None,
        progress: bool = False,
    ) -> None:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        self._size = payload.count
        self._batch_size = batch_size
        self._sample_shape = payload.sample_shape
        self._device = torch.device(device) if device is not None else torch.device("cpu")

        if transform is not None and not callable(transform):
            transform = compose_transforms(list(transform))

        _warn_if_large(payload.count, payload.sample_shape)

        permutation = permute(payload.count, shuffle, seed=seed)
        self._batches: list[Batch] | None = build_batches(
            payload,
            permutation,
            batch_size,
            device=self._device,
            transform=transform,
            progress=progress,
        )
        logger.info(
            f"BatchDataset: {self._size} samples in {len(self._batches)} batches "
            f"(batch_size={batch_size}, shuffle={shuffle}, device={self._device})"
        )

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------
    @classmethod
    def from_files(
        cls,
        path: str | Path,
        split: str,
        *,
        sample_format: BaseSampleFormat | None = None,
        batch_size: int = 32,
        shuffle: bool = False,
        device: torch.device | str | None = None,
        transform: BatchTransform | Sequence[BatchTransform] | None = None,
        seed: int | None = None,
        progress: bool = False,
    ) -> BatchDataset:
        """Read ``split`` under ``path`` and build the dataset.

        Args:
            path: Directory containing the split's files.
            split: Split prefix (e.g. ``train`` / ``t10k`` for IDX,
                ``train`` / ``test`` for CIFAR-10).
            sample_format: File layout strategy. Defaults to :class:`IdxFormat`.
        """
        fmt = sample_format if sample_format is not None else IdxFormat()
        logger.debug(f"Reading split '{split}' from {path} with {fmt!r}")
        payload = fmt.read(Path(path), split)
        return cls(
            payload,
            batch_size=batch_size,
            shuffle=shuffle,
            device=device,
            transform=transform,
            seed=seed,
            progress=progress,
        )

    @classmethod
    def from_config(
        cls,
        config: ReaderConfig,
        transform: BatchTransform | Sequence[BatchTransform] | None = None,
    ) -> BatchDataset:
        return cls.from_files(
            config.data_root,
            config.split,
            sample_format=get_format(config.format),
            batch_size=config.batch_size,
            shuffle=config.shuffle,
            device=config.device,
            transform=transform,
            seed=config.seed,
            progress=config.progress,
        )

    # ------------------------------------------------------------------
    # Public properties
    # ------------------------------------------------------------------
    @property
    def size(self) -> int:
        """Number of samples."""
        self._check_alive()
        return self._size

    @property
    def batch_size(self) -> int:
        self._check_alive()
        return self._batch_size

    @property
    def num_batches(self) -> int:
        return len(self._alive_batches())

    @property
    def sample_shape(self) -> tuple[int, int, int]:
        """``(channels, height, width)`` of one sample."""
        self._check_alive()
        return self._sample_shape

    @property
    def device(self) -> torch.device:
        self._check_alive()
        return self._device

    @property
    def released(self) -> bool:
        return self._batches is None

    # ------------------------------------------------------------------
    # Iteration
    # ------------------------------------------------------------------
    def cursor(self) -> BatchCursor:
        """A fresh cursor positioned before the first batch."""
        self._check_alive()
        return BatchCursor(self)

    def batch(self, index: int) -> Batch:
        return self._alive_batches()[index]

    def __iter__(self) -> Iterator[tuple[torch.Tensor, torch.Tensor]]:
        return self.cursor()

    def __len__(self) -> int:
        return self.num_batches

    def __getitem__(self, index: int) -> tuple[torch.Tensor, torch.Tensor]:
        return self.batch(index).as_tuple()

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------
    def release(self) -> None:
        """Release every batch tensor. Calling it again does nothing."""
        if self._batches is None:
            return
        for b in self._batches:
            b.release()
        n = len(self._batches)
        self._batches = None
        logger.debug(f"BatchDataset: released {n} batches")

    def __enter__(self) -> BatchDataset:
        self._check_alive()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()

    def _alive_batches(self) -> list[Batch]:
        if self._batches is None:
            raise UseAfterDisposeError("BatchDataset used after release()")
        return self._batches

    def _check_alive(self) -> None:
        self._alive_batches()

    def __repr__(self) -> str:
        if self._batches is None:
            return f"BatchDataset(size={self._size}, released)"
        return (
            f"BatchDataset(size={self._size}, batch_size={self._batch_size}, "
            f"num_batches={len(self._batches)}, sample_shape={self._sample_shape})"
        )


def _warn_if_large(count: int, sample_shape: tuple[int, int, int]) -> None:
    """Warn when the float32 batches would take over half of available RAM."""
    channels, height, width = sample_shape
    estimated_bytes = count * channels * height * width * _FLOAT32_BYTES
    available_bytes = psutil.virtual_memory().available
    logger.debug(
        f"Estimated batch memory={estimated_bytes / 1e9:.2f}GB, "
        f"available RAM={available_bytes / 1e9:.2f}GB"
    )
    if estimated_bytes > available_bytes * 0.5:
        logger.warning(
            f"Batches need ~{estimated_bytes / 1e9:.2f}GB, more than half of the "
            f"{available_bytes / 1e9:.2f}GB available; consider a smaller split"
        )

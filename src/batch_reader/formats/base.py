"""Raw payload container and the format-strategy interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from batch_reader.exceptions import FormatMismatchError


@dataclass(frozen=True)
class RawPayload:
    """Fully buffered samples and labels of one dataset split.

    images: uint8 array of shape ``(count, channels, height, width)``.
    labels: uint8 array of shape ``(count,)``.
    """

    images: np.ndarray
    labels: np.ndarray

    def __post_init__(self) -> None:
        if self.images.ndim != 4:
            raise ValueError(
                f"images must have shape (N, C, H, W), got {self.images.shape}"
            )
        if self.labels.shape != (self.images.shape[0],):
            raise FormatMismatchError(
                f"Image data and label counts are different: "
                f"{self.images.shape[0]} images, {self.labels.size} labels"
            )

    @property
    def count(self) -> int:
        return int(self.images.shape[0])

    @property
    def channels(self) -> int:
        return int(self.images.shape[1])

    @property
    def height(self) -> int:
        return int(self.images.shape[2])

    @property
    def width(self) -> int:
        return int(self.images.shape[3])

    @property
    def sample_shape(self) -> tuple[int, int, int]:
        return self.channels, self.height, self.width


class BaseSampleFormat(ABC):
    """Strategy that turns the files of one split into a :class:`RawPayload`.

    Every format shares the same batching and iteration machinery; only the
    on-disk layout differs. Subclasses implement :meth:`read`.
    """

    name: str

    @abstractmethod
    def read(self, root: Path, split: str) -> RawPayload:
        """Read and fully buffer the split ``split`` found under ``root``.

        Raises:
            FileNotFoundError: A required file does not exist.
            TruncatedFileError: A file is shorter than its header declares.
            FormatMismatchError: Sample and label counts disagree.
        """

"""IDX (MNIST-layout) binary reader.

Each split is stored as two files:

- ``{prefix}-images-idx3-ubyte``: int32 magic, int32 count, int32 height,
  int32 width, then ``count * height * width`` unsigned pixel bytes.
- ``{prefix}-labels-idx1-ubyte``: int32 magic, int32 count, then ``count``
  unsigned label bytes.

All header integers are big-endian. The magic number is consumed but never
validated, so any file following this layout (MNIST, Fashion-MNIST, KMNIST,
...) can be read.
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO

import numpy as np
from loguru import logger

from batch_reader.exceptions import FormatMismatchError, TruncatedFileError
from batch_reader.formats.base import BaseSampleFormat, RawPayload

IMAGES_SUFFIX = "-images-idx3-ubyte"
LABELS_SUFFIX = "-labels-idx1-ubyte"

_BE_INT32 = np.dtype(">i4")


def read_be_int32(stream: BinaryIO, n: int, *, source: str = "<stream>") -> list[int]:
    """Read ``n`` consecutive big-endian signed 32-bit integers."""
    nbytes = n * _BE_INT32.itemsize
    raw = stream.read(nbytes)
    if len(raw) != nbytes:
        raise TruncatedFileError(
            f"{source}: header truncated, expected {nbytes} bytes, got {len(raw)}"
        )
    return [int(v) for v in np.frombuffer(raw, dtype=_BE_INT32)]


def read_payload(stream: BinaryIO, nbytes: int, *, source: str = "<stream>") -> np.ndarray:
    """Read exactly ``nbytes`` unsigned bytes into a uint8 array."""
    raw = stream.read(nbytes)
    if len(raw) != nbytes:
        raise TruncatedFileError(
            f"{source}: payload truncated, expected {nbytes} bytes, got {len(raw)}"
        )
    # Copy so the array is writable and independent of the read buffer.
    return np.frombuffer(raw, dtype=np.uint8).copy()


def _check_dims(source: str, **dims: int) -> None:
    for name, value in dims.items():
        if value < 0:
            raise ValueError(f"{source}: negative {name} in header ({value})")


def read_idx_images(path: Path) -> np.ndarray:
    """Read an IDX3 image file into a ``(count, 1, height, width)`` uint8 array."""
    with open(path, "rb") as f:
        _magic, count, height, width = read_be_int32(f, 4, source=str(path))
        _check_dims(str(path), count=count, height=height, width=width)
        pixels = read_payload(f, count * height * width, source=str(path))
    logger.debug(f"Read {count} images of {height}x{width} from {path}")
    return pixels.reshape(count, 1, height, width)


def read_idx_labels(path: Path, expected_count: int | None = None) -> np.ndarray:
    """Read an IDX1 label file into a ``(count,)`` uint8 array.

    Args:
        path: Label file location.
        expected_count: When given, the header count must match it, otherwise
            :class:`FormatMismatchError` is raised before the payload is read.
    """
    with open(path, "rb") as f:
        _magic, count = read_be_int32(f, 2, source=str(path))
        _check_dims(str(path), count=count)
        if expected_count is not None and count != expected_count:
            raise FormatMismatchError(
                f"Image data and label counts are different: "
                f"{expected_count} images, {count} labels ({path})"
            )
        labels = read_payload(f, count, source=str(path))
    logger.debug(f"Read {count} labels from {path}")
    return labels


class IdxFormat(BaseSampleFormat):
    """Reads an image/label IDX file pair located by directory and split prefix.

    Args:
        images_suffix: File name suffix of the sample file.
        labels_suffix: File name suffix of the label file.
    """

    name = "idx"

    def __init__(
        self,
        images_suffix: str = IMAGES_SUFFIX,
        labels_suffix: str = LABELS_SUFFIX,
    ) -> None:
        self.images_suffix = images_suffix
        self.labels_suffix = labels_suffix

    def paths(self, root: Path, split: str) -> tuple[Path, Path]:
        root = Path(root)
        return root / f"{split}{self.images_suffix}", root / f"{split}{self.labels_suffix}"

    def read(self, root: Path, split: str) -> RawPayload:
        images_path, labels_path = self.paths(root, split)
        images = read_idx_images(images_path)
        labels = read_idx_labels(labels_path, expected_count=images.shape[0])
        return RawPayload(images=images, labels=labels)

    def __repr__(self) -> str:
        return (
            f"IdxFormat(images_suffix={self.images_suffix!r}, "
            f"labels_suffix={self.labels_suffix!r})"
        )

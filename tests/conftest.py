"""Shared pytest fixtures for batch_reader tests.

Every fixture writes real binary files to ``tmp_path`` so the readers are
exercised end to end; nothing touches the network or a real dataset.
"""

import struct
from collections.abc import Callable, Sequence
from pathlib import Path

import numpy as np
import pytest

IDX_IMAGES_MAGIC = 2051
IDX_LABELS_MAGIC = 2049

# Concrete four-sample, 2x2 split used across the suite.
SMALL_PIXELS = [0, 128, 255, 64, 10, 20, 30, 40, 5, 5, 5, 5, 200, 200, 200, 200]
SMALL_LABELS = [3, 1, 4, 1]

IdxWriter = Callable[..., tuple[Path, Path]]


def _write_idx_pair(
    root: Path,
    prefix: str,
    pixels: Sequence[int] | np.ndarray,
    labels: Sequence[int],
    *,
    count: int | None = None,
    label_count: int | None = None,
    height: int = 2,
    width: int = 2,
    images_magic: int = IDX_IMAGES_MAGIC,
) -> tuple[Path, Path]:
    n = len(labels) if count is None else count
    images_path = root / f"{prefix}-images-idx3-ubyte"
    labels_path = root / f"{prefix}-labels-idx1-ubyte"
    images_path.write_bytes(
        struct.pack(">iiii", images_magic, n, height, width)
        + bytes(np.asarray(pixels, dtype=np.uint8))
    )
    labels_path.write_bytes(
        struct.pack(">ii", IDX_LABELS_MAGIC, len(labels) if label_count is None else label_count)
        + bytes(np.asarray(labels, dtype=np.uint8))
    )
    return images_path, labels_path


@pytest.fixture()
def write_idx(tmp_path: Path) -> IdxWriter:
    """Factory writing an IDX image/label pair under ``tmp_path``.

    Call as ``write_idx(prefix, pixels, labels, height=..., width=...)``;
    ``count`` / ``label_count`` override the header counts to build corrupt files.
    """

    def _write(prefix: str, pixels: Sequence[int] | np.ndarray, labels: Sequence[int], **kw: int) -> tuple[Path, Path]:
        return _write_idx_pair(tmp_path, prefix, pixels, labels, **kw)

    return _write


@pytest.fixture()
def small_idx_dir(tmp_path: Path) -> Path:
    """The four-sample 2x2 split (prefix ``train``) with labels [3, 1, 4, 1]."""
    _write_idx_pair(tmp_path, "train", SMALL_PIXELS, SMALL_LABELS)
    return tmp_path


@pytest.fixture()
def mnist_like_dir(tmp_path: Path) -> Path:
    """MNIST-style directory: 10 train and 7 t10k samples of 4x4 pixels.

    Sample ``i`` has every pixel equal to ``i * 20`` and label ``i % 10``, so
    the original index is recoverable from the first pixel.
    """
    for prefix, n in (("train", 10), ("t10k", 7)):
        pixels = np.repeat(np.arange(n, dtype=np.uint8) * 20, 16)
        _write_idx_pair(tmp_path, prefix, pixels, [i % 10 for i in range(n)], height=4, width=4)
    return tmp_path


def _cifar_records(labels: Sequence[int], first_value: int) -> bytes:
    out = bytearray()
    for i, label in enumerate(labels):
        out.append(label)
        out.extend(bytes([(first_value + i) % 256]) * (3 * 32 * 32))
    return bytes(out)


@pytest.fixture()
def cifar_dir(tmp_path: Path) -> Path:
    """CIFAR-10 layout: five 2-record train files and one 3-record test file.

    Records are numbered globally (train 0..9, test 100..102); every pixel of a
    record equals its number and its label is ``number % 10``.
    """
    archive = tmp_path / "cifar-10-batches-bin"
    archive.mkdir()
    for b in range(5):
        first = b * 2
        labels = [(first + i) % 10 for i in range(2)]
        (archive / f"data_batch_{b + 1}.bin").write_bytes(_cifar_records(labels, first))
    (archive / "test_batch.bin").write_bytes(_cifar_records([0, 1, 2], 100))
    return tmp_path

"""CIFAR-10 binary-release reader.

Every ``*.bin`` file is a flat run of fixed-size records: one label byte
followed by 3 x 32 x 32 pixel bytes (the red plane, then green, then blue,
each row-major). There is no header, so the record count is the file size
divided by the record length.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
from loguru import logger

from batch_reader.exceptions import TruncatedFileError
from batch_reader.formats.base import BaseSampleFormat, RawPayload

CHANNELS = 3
HEIGHT = 32
WIDTH = 32
RECORD_BYTES = 1 + CHANNELS * HEIGHT * WIDTH

ARCHIVE_DIR = "cifar-10-batches-bin"
TRAIN_FILES = tuple(f"data_batch_{i}.bin" for i in range(1, 6))
TEST_FILES = ("test_batch.bin",)


def read_cifar_file(path: Path) -> tuple[np.ndarray, np.ndarray]:
    """Read one CIFAR-10 batch file.

    Returns:
        ``(images, labels)`` with shapes ``(n, 3, 32, 32)`` and ``(n,)``.
    """
    raw = Path(path).read_bytes()
    if len(raw) % RECORD_BYTES != 0:
        raise TruncatedFileError(
            f"{path}: size {len(raw)} is not a multiple of the "
            f"{RECORD_BYTES}-byte record length"
        )
    records = np.frombuffer(raw, dtype=np.uint8).reshape(-1, RECORD_BYTES)
    labels = records[:, 0].copy()
    images = records[:, 1:].reshape(-1, CHANNELS, HEIGHT, WIDTH).copy()
    logger.debug(f"Read {len(labels)} records from {path}")
    return images, labels


class CifarFormat(BaseSampleFormat):
    """Reads the ``train`` (five files) or ``test`` split of CIFAR-10.

    Files are looked up in ``{root}/cifar-10-batches-bin/`` if that directory
    exists, otherwise directly in ``root``. The training files are
    concatenated in ``data_batch_1`` .. ``data_batch_5`` order.
    """

    name = "cifar10"

    def files(self, root: Path, split: str) -> list[Path]:
        root = Path(root)
        if (root / ARCHIVE_DIR).is_dir():
            root = root / ARCHIVE_DIR
        if split == "train":
            names = TRAIN_FILES
        elif split == "test":
            names = TEST_FILES
        else:
            raise ValueError(f"Unknown CIFAR-10 split '{split}' (expected 'train' or 'test')")
        return [root / name for name in names]

    def read(self, root: Path, split: str) -> RawPayload:
        parts = [read_cifar_file(p) for p in self.files(root, split)]
        images = np.concatenate([img for img, _ in parts], axis=0)
        labels = np.concatenate([lbl for _, lbl in parts], axis=0)
        return RawPayload(images=images, labels=labels)

    def __repr__(self) -> str:
        return "CifarFormat()"

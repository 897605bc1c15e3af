"""Data pipeline for batch_reader: permutation, batching, datasets and cursors."""

from batch_reader.data.builder import build_batches, compose_transforms
from batch_reader.data.cursor import BatchCursor, CursorState
from batch_reader.data.datamodule import BatchDataModule
from batch_reader.data.dataset import BatchDataset
from batch_reader.data.permutation import permute

__all__ = [
    "BatchCursor",
    "BatchDataModule",
    "BatchDataset",
    "CursorState",
    "build_batches",
    "compose_transforms",
    "permute",
]

"""batch_reader: in-memory batching of fixed-layout binary image datasets."""

from batch_reader.data import BatchCursor, BatchDataModule, BatchDataset, CursorState
from batch_reader.exceptions import (
    BatchReaderError,
    FormatMismatchError,
    InvalidCursorStateError,
    TruncatedFileError,
    UseAfterDisposeError,
)
from batch_reader.formats import CifarFormat, IdxFormat, RawPayload
from batch_reader.types import Batch

__version__ = "0.0.1"

__all__ = [
    "Batch",
    "BatchCursor",
    "BatchDataModule",
    "BatchDataset",
    "BatchReaderError",
    "CifarFormat",
    "CursorState",
    "FormatMismatchError",
    "IdxFormat",
    "InvalidCursorStateError",
    "RawPayload",
    "TruncatedFileError",
    "UseAfterDisposeError",
    "__version__",
]

"""
Exception hierarchy for batch_reader.

BatchReaderError (base, Exception)
├── FormatMismatchError(BatchReaderError, ValueError)      ← image/label counts differ
├── TruncatedFileError(BatchReaderError, OSError)          ← short header or payload read
├── InvalidCursorStateError(BatchReaderError, RuntimeError) ← current() outside a position
└── UseAfterDisposeError(BatchReaderError, RuntimeError)   ← access after release()

The builtin parents keep ``except ValueError`` / ``except OSError`` blocks
working for callers that do not know about this package.
"""


class BatchReaderError(Exception):
    """Base exception for all batch_reader errors."""


class FormatMismatchError(BatchReaderError, ValueError):
    """Sample and label files disagree on the number of records."""


class TruncatedFileError(BatchReaderError, OSError):
    """A file ended before its declared header or payload was read."""


class InvalidCursorStateError(BatchReaderError, RuntimeError):
    """Cursor value requested before the first advance or after exhaustion."""


class UseAfterDisposeError(BatchReaderError, RuntimeError):
    """A dataset, batch or cursor was used after its buffers were released."""

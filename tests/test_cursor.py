"""Tests for the BatchCursor state machine."""

from pathlib import Path

import pytest
import torch

from batch_reader.data.cursor import BEFORE_FIRST, BatchCursor, CursorState
from batch_reader.data.dataset import BatchDataset
from batch_reader.exceptions import InvalidCursorStateError


@pytest.fixture()
def dataset(small_idx_dir: Path) -> BatchDataset:
    # Two batches: 3 samples, then 1.
    return BatchDataset.from_files(small_idx_dir, "train", batch_size=3)


class TestBatchCursorStates:
    def test_starts_before_first(self, dataset: BatchDataset) -> None:
        cursor = dataset.cursor()
        assert cursor.state is CursorState.NOT_STARTED
        assert cursor.position == BEFORE_FIRST

    def test_current_before_advance_raises(self, dataset: BatchDataset) -> None:
        with pytest.raises(InvalidCursorStateError, match="before advance"):
            dataset.cursor().current()

    def test_advance_walks_batches_then_exhausts(self, dataset: BatchDataset) -> None:
        cursor = dataset.cursor()
        assert cursor.advance() is True
        assert cursor.state is CursorState.POSITIONED
        assert cursor.position == 0
        assert cursor.advance() is True
        assert cursor.position == 1
        assert cursor.advance() is False
        assert cursor.state is CursorState.EXHAUSTED

    def test_current_after_exhaustion_raises(self, dataset: BatchDataset) -> None:
        cursor = dataset.cursor()
        while cursor.advance():
            pass
        with pytest.raises(InvalidCursorStateError, match="after the last batch"):
            cursor.current()

    def test_advance_past_end_stays_exhausted(self, dataset: BatchDataset) -> None:
        cursor = dataset.cursor()
        for _ in range(5):
            cursor.advance()
        assert cursor.advance() is False
        assert cursor.state is CursorState.EXHAUSTED
        assert cursor.position == dataset.num_batches

    def test_current_returns_data_and_labels(self, dataset: BatchDataset) -> None:
        cursor = dataset.cursor()
        cursor.advance()
        data, labels = cursor.current()
        assert data.shape == (3, 1, 2, 2)
        assert labels.tolist() == [3, 1, 4]

    def test_current_is_stable_without_advance(self, dataset: BatchDataset) -> None:
        cursor = dataset.cursor()
        cursor.advance()
        first, _ = cursor.current()
        again, _ = cursor.current()
        assert first is again

    @pytest.mark.parametrize("steps", [0, 1, 2, 3])
    def test_reset_from_any_state(self, dataset: BatchDataset, steps: int) -> None:
        cursor = dataset.cursor()
        for _ in range(steps):
            cursor.advance()
        cursor.reset()
        assert cursor.state is CursorState.NOT_STARTED
        with pytest.raises(InvalidCursorStateError):
            cursor.current()

    def test_reset_replays_same_batches(self, dataset: BatchDataset) -> None:
        cursor = dataset.cursor()
        first_pass = []
        while cursor.advance():
            first_pass.append(cursor.current())
        cursor.reset()
        second_pass = []
        while cursor.advance():
            second_pass.append(cursor.current())
        assert len(first_pass) == len(second_pass) == 2
        for (d1, l1), (d2, l2) in zip(first_pass, second_pass):
            assert torch.equal(d1, d2)
            assert torch.equal(l1, l2)

    def test_empty_dataset_exhausts_immediately(self, write_idx, tmp_path: Path) -> None:
        write_idx("empty", [], [])
        ds = BatchDataset.from_files(tmp_path, "empty")
        cursor = ds.cursor()
        assert cursor.advance() is False
        assert cursor.state is CursorState.EXHAUSTED


class TestIndependentCursors:
    def test_cursors_do_not_share_position(self, dataset: BatchDataset) -> None:
        a = dataset.cursor()
        b = dataset.cursor()
        a.advance()
        a.advance()
        b.advance()
        assert a.position == 1
        assert b.position == 0
        assert b.current()[1].tolist() == [3, 1, 4]

    def test_cursor_constructed_directly(self, dataset: BatchDataset) -> None:
        cursor = BatchCursor(dataset)
        assert cursor.advance()


class TestIteratorProtocol:
    def test_for_loop(self, dataset: BatchDataset) -> None:
        sizes = [labels.numel() for _, labels in dataset.cursor()]
        assert sizes == [3, 1]

    def test_next_raises_stop_iteration_at_end(self, dataset: BatchDataset) -> None:
        cursor = dataset.cursor()
        next(cursor)
        next(cursor)
        with pytest.raises(StopIteration):
            next(cursor)

    def test_iter_returns_self(self, dataset: BatchDataset) -> None:
        cursor = dataset.cursor()
        assert iter(cursor) is cursor

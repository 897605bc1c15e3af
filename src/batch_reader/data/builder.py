"""Groups permuted samples into fixed-size, normalized tensor batches."""

from __future__ import annotations

from collections.abc import Sequence

import torch
from loguru import logger
from tqdm import tqdm

from batch_reader.formats.base import RawPayload
from batch_reader.types import Batch, BatchTransform

# Raw bytes are divided by 256 (not 255) so intensities land in [0, 1).
INTENSITY_SCALE = 256.0


def compose_transforms(transforms: Sequence[BatchTransform]) -> BatchTransform | None:
    """Chain several batch transforms into one, applied left to right.

    Returns ``None`` for an empty sequence so callers can skip the call.
    """
    if not transforms:
        return None
    if len(transforms) == 1:
        return transforms[0]

    def _chained(data: torch.Tensor) -> torch.Tensor:
        for t in transforms:
            data = t(data)
        return data

    return _chained


def window_bounds(count: int, batch_size: int) -> list[tuple[int, int]]:
    """``(start, stop)`` of every batch window; the last one may be shorter."""
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    return [(i, min(i + batch_size, count)) for i in range(0, count, batch_size)]


def build_batches(
    payload: RawPayload,
    permutation: torch.Tensor,
    batch_size: int,
    *,
    device: torch.device | str | None = None,
    transform: BatchTransform | None = None,
    progress: bool = False,
) -> list[Batch]:
    """Materialize every batch of ``payload`` in ``permutation`` order.

    Each window of ``batch_size`` permuted indices becomes one :class:`Batch`
    whose data tensor has shape ``(take, C, H, W)`` (float32, raw byte / 256)
    and whose label tensor has shape ``(take,)`` (int64). Only the last window
    can be shorter than ``batch_size``; no empty batch is ever produced.

    If ``transform`` is given it replaces each assembled data tensor.

    If anything fails part-way, the batches built so far are released before
    the exception propagates.
    """
    if permutation.numel() != payload.count:
        raise ValueError(
            f"permutation has {permutation.numel()} entries, payload has {payload.count}"
        )
    bounds = window_bounds(payload.count, batch_size)

    # Zero-copy views of the byte buffers, flattened to one row per sample.
    channels, height, width = payload.sample_shape
    pixels = torch.from_numpy(payload.images).reshape(payload.count, channels * height * width)
    labels = torch.from_numpy(payload.labels)
    order = permutation.to(torch.long)

    batches: list[Batch] = []
    try:
        for start, stop in tqdm(bounds, desc="Batches", unit="batch", disable=not progress):
            take = stop - start
            idx = order[start:stop]

            data = torch.zeros((take, channels * height * width), dtype=torch.float32, device=device)
            lbls = torch.zeros((take,), dtype=torch.long, device=device)

            data[:] = pixels[idx].to(device=data.device, dtype=torch.float32) / INTENSITY_SCALE
            lbls[:] = labels[idx].to(device=lbls.device, dtype=torch.long)

            data = data.view(take, channels, height, width)
            if transform is not None:
                data = transform(data)

            batches.append(Batch(data, lbls))
    except Exception:
        for b in batches:
            b.release()
        batches.clear()
        raise

    logger.debug(
        f"Built {len(batches)} batches of up to {batch_size} samples "
        f"({payload.count} total, sample shape {payload.sample_shape})"
    )
    return batches

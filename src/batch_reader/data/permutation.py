"""Traversal order over sample indices."""

from __future__ import annotations

import torch


def permute(count: int, shuffle: bool, seed: int | None = None) -> torch.Tensor:
    """Return a permutation of ``range(count)`` as an int64 tensor.

    Args:
        count: Number of samples.
        shuffle: If ``False`` the identity order ``[0, 1, ..., count - 1]`` is
            returned. If ``True`` a uniformly random permutation is drawn.
        seed: Only used when ``shuffle`` is ``True``. ``None`` draws from the
            global torch RNG, so two calls differ; an integer uses a private
            ``torch.Generator`` and makes the draw reproducible without
            touching global RNG state.
    """
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")
    if not shuffle:
        return torch.arange(count, dtype=torch.long)
    generator = None
    if seed is not None:
        generator = torch.Generator().manual_seed(seed)
    return torch.randperm(count, generator=generator, dtype=torch.long)


def is_bijection(permutation: torch.Tensor, count: int) -> bool:
    """True if ``permutation`` holds every index in ``[0, count)`` exactly once."""
    if permutation.numel() != count:
        return False
    if count == 0:
        return True
    if int(permutation.min()) < 0 or int(permutation.max()) >= count:
        return False
    seen = torch.bincount(permutation.to(torch.long), minlength=count)
    return bool((seen == 1).all())

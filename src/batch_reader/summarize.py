"""Dataset summary entrypoint for batch_reader.

Builds the configured split, walks every batch once and prints a table of
sample count, batch layout, label histogram and intensity range.

Usage:
    batch-reader-summarize reader.data_root=/data/mnist
    batch-reader-summarize reader.data_root=/data/mnist reader.split=t10k reader.batch_size=1000
    batch-reader-summarize --config-name summarize_cifar10 reader.data_root=/data/cifar10
"""

import sys

import hydra
import torch
from loguru import logger
from omegaconf import DictConfig, OmegaConf
from pydantic import BaseModel
from rich import box
from rich.console import Console
from rich.table import Table

from batch_reader.config import ReaderConfig
from batch_reader.data.dataset import BatchDataset


class DatasetSummary(BaseModel, frozen=True):
    """Statistics gathered in one pass over a BatchDataset."""

    size: int
    batch_size: int
    num_batches: int
    last_batch_size: int
    sample_shape: tuple[int, int, int]
    label_counts: dict[int, int]
    min_intensity: float | None = None
    max_intensity: float | None = None


def summarize(dataset: BatchDataset) -> DatasetSummary:
    """Walk every batch of ``dataset`` through a fresh cursor."""
    counts: dict[int, int] = {}
    lo: float | None = None
    hi: float | None = None
    last = 0

    cursor = dataset.cursor()
    while cursor.advance():
        data, labels = cursor.current()
        last = int(labels.shape[0])
        values, freq = torch.unique(labels.cpu(), return_counts=True)
        for v, n in zip(values.tolist(), freq.tolist()):
            counts[v] = counts.get(v, 0) + n
        batch_lo, batch_hi = float(data.min()), float(data.max())
        lo = batch_lo if lo is None else min(lo, batch_lo)
        hi = batch_hi if hi is None else max(hi, batch_hi)

    return DatasetSummary(
        size=dataset.size,
        batch_size=dataset.batch_size,
        num_batches=dataset.num_batches,
        last_batch_size=last,
        sample_shape=dataset.sample_shape,
        label_counts=dict(sorted(counts.items())),
        min_intensity=lo,
        max_intensity=hi,
    )


def render_summary(summary: DatasetSummary, title: str = "Dataset") -> Table:
    """Rich table with one row per statistic and one per label."""
    table = Table(title=title, box=box.SIMPLE_HEAVY)
    table.add_column("Field", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("samples", str(summary.size))
    table.add_row("batch size", str(summary.batch_size))
    table.add_row("batches", str(summary.num_batches))
    table.add_row("last batch", str(summary.last_batch_size))
    table.add_row("sample shape", "x".join(str(d) for d in summary.sample_shape))
    if summary.min_intensity is not None and summary.max_intensity is not None:
        table.add_row(
            "intensity range",
            f"[{summary.min_intensity:.4f}, {summary.max_intensity:.4f}]",
        )
    for label, n in summary.label_counts.items():
        table.add_row(f"label {label}", str(n))
    return table


@hydra.main(version_base=None, config_path="conf", config_name="summarize_mnist")
def main(cfg: DictConfig) -> None:
    """Summarize the split described by ``cfg.reader``."""
    logger.remove()
    logger.add(sys.stderr, level=cfg.get("log_level", "INFO"))

    logger.info(f"Configuration:\n{OmegaConf.to_yaml(cfg)}")

    reader_cfg = ReaderConfig(**OmegaConf.to_container(cfg.reader, resolve=True))  # type: ignore[arg-type]

    transforms = None
    if cfg.get("transforms"):
        transforms = [hydra.utils.instantiate(t) for t in cfg.transforms]

    with BatchDataset.from_config(reader_cfg, transform=transforms) as dataset:
        summary = summarize(dataset)

    title = f"{reader_cfg.format}:{reader_cfg.split} ({reader_cfg.data_root})"
    Console().print(render_summary(summary, title=title))


if __name__ == "__main__":
    main()

"""LightningDataModule pairing a shuffled train split with an ordered test split."""

from collections.abc import Sequence
from typing import Any

import lightning as L
import torch
from loguru import logger
from torch.utils.data import DataLoader

from batch_reader.config import DataModuleConfig, FormatName
from batch_reader.data.dataset import BatchDataset
from batch_reader.types import BatchTransform
from batch_reader.utils.hydra import register


@register(group="data", name="batch_datamodule", config_model=DataModuleConfig)
class BatchDataModule(L.LightningDataModule):
    """DataModule over pre-built, in-memory batches.

    The train split is shuffled once at setup (a new order on every
    ``setup("fit")``); the test split keeps file order. Because the datasets
    already yield whole batches, every DataLoader uses ``batch_size=None`` and
    ``num_workers=0``: batches pass through untouched and stay on the device
    they were built on. The test split doubles as the validation split, as in
    the classic MNIST / CIFAR-10 train/test drivers.

    Args:
        config: DataModuleConfig frozen model. If provided, flat kwargs are ignored.
        data_root: Directory containing the split files (used when config is None, e.g. Hydra).
        format: ``"idx"`` or ``"cifar10"``.
        train_split: Train split prefix (default ``train``).
        test_split: Test split prefix; empty selects the format default.
        train_batch_size: Train batch size (default: 64).
        test_batch_size: Test batch size (default: 128).
        device: Device the batch tensors are allocated on.
        seed: Seed for the train shuffle; ``None`` draws a fresh order.
        train_transforms: Optional batch transform(s) for the train split only.
        **kwargs: Absorbs extra Hydra-injected keys (_target_, _recursive_, etc.).
    """

    def __init__(
        self,
        config: DataModuleConfig | None = None,
        *,
        data_root: str = "",
        format: FormatName = "idx",
        train_split: str = "train",
        test_split: str = "",
        train_batch_size: int = 64,
        test_batch_size: int = 128,
        device: str | None = None,
        seed: int | None = None,
        train_transforms: BatchTransform | Sequence[BatchTransform] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__()
        if config is not None:
            self._config = config
        else:
            self._config = DataModuleConfig(
                data_root=data_root,
                format=format,
                train_split=train_split,
                test_split=test_split,
                train_batch_size=train_batch_size,
                test_batch_size=test_batch_size,
                device=device,
                seed=seed,
            )
        self._train_transforms = train_transforms
        self._train_dataset: BatchDataset | None = None
        self._test_dataset: BatchDataset | None = None

    @property
    def config(self) -> DataModuleConfig:
        return self._config

    @property
    def train_dataset(self) -> BatchDataset | None:
        return self._train_dataset

    @property
    def test_dataset(self) -> BatchDataset | None:
        return self._test_dataset

    # ------------------------------------------------------------------
    # LightningDataModule lifecycle
    # ------------------------------------------------------------------

    def setup(self, stage: str | None = None) -> None:
        """Build datasets for the given stage.

        Args:
            stage: "fit" builds train + test (test serves validation),
                   "validate" / "test" / "predict" build test only,
                   None builds both.
        """
        if stage in ("fit", None):
            if self._train_dataset is not None:
                self._train_dataset.release()
            self._train_dataset = BatchDataset.from_config(
                self._config.reader("train"), transform=self._train_transforms
            )
            logger.info(
                f"Setup fit: train={self._train_dataset.size} samples "
                f"in {self._train_dataset.num_batches} batches"
            )

        if self._test_dataset is None:
            self._test_dataset = BatchDataset.from_config(self._config.reader("test"))
            logger.info(
                f"Setup {stage}: test={self._test_dataset.size} samples "
                f"in {self._test_dataset.num_batches} batches"
            )

    def teardown(self, stage: str | None = None) -> None:
        """Release every dataset this module built."""
        for ds in (self._train_dataset, self._test_dataset):
            if ds is not None:
                ds.release()
        self._train_dataset = None
        self._test_dataset = None

    # ------------------------------------------------------------------
    # DataLoaders
    # ------------------------------------------------------------------

    @staticmethod
    def _loader(dataset: BatchDataset) -> DataLoader[tuple[torch.Tensor, torch.Tensor]]:
        return DataLoader(dataset, batch_size=None, shuffle=False, num_workers=0)

    def train_dataloader(self) -> DataLoader[tuple[torch.Tensor, torch.Tensor]]:
        """Return the shuffled train batches."""
        if self._train_dataset is None:
            raise RuntimeError("Call setup('fit') first")
        return self._loader(self._train_dataset)

    def val_dataloader(self) -> DataLoader[tuple[torch.Tensor, torch.Tensor]]:
        """Return the ordered test batches (used for validation)."""
        if self._test_dataset is None:
            raise RuntimeError("Call setup('fit') or setup('validate') first")
        return self._loader(self._test_dataset)

    def test_dataloader(self) -> DataLoader[tuple[torch.Tensor, torch.Tensor]]:
        """Return the ordered test batches."""
        if self._test_dataset is None:
            raise RuntimeError("Call setup('test') first")
        return self._loader(self._test_dataset)

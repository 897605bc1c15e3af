"""Pydantic frozen configuration models for batch_reader."""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

FormatName = Literal["idx", "cifar10"]

# Split naming differs per format: MNIST ships "t10k", CIFAR-10 "test".
DEFAULT_TEST_SPLIT: dict[str, str] = {"idx": "t10k", "cifar10": "test"}


class ReaderConfig(BaseModel, frozen=True):
    """Construction parameters for a single BatchDataset.

    All fields are validated at construction time and frozen after that.
    """

    data_root: str
    split: str = "train"
    format: FormatName = "idx"
    batch_size: int = Field(default=32, gt=0)
    shuffle: bool = False
    device: str | None = None
    seed: int | None = None
    progress: bool = False


class DataModuleConfig(BaseModel, frozen=True):
    """Configuration for BatchDataModule (one shuffled train split, one ordered test split)."""

    data_root: str
    format: FormatName = "idx"
    train_split: str = "train"
    test_split: str = ""
    train_batch_size: int = Field(default=64, gt=0)
    test_batch_size: int = Field(default=128, gt=0)
    device: str | None = None
    seed: int | None = None

    @model_validator(mode="after")
    def _default_test_split(self) -> "DataModuleConfig":
        """An empty test_split means 'use the format's conventional name'."""
        if not self.test_split:
            # Use object.__setattr__ because model is frozen
            object.__setattr__(self, "test_split", DEFAULT_TEST_SPLIT[self.format])
        return self

    def reader(self, stage: Literal["train", "test"]) -> ReaderConfig:
        """Derive the ReaderConfig for one side of the train/test pair."""
        train = stage == "train"
        return ReaderConfig(
            data_root=self.data_root,
            split=self.train_split if train else self.test_split,
            format=self.format,
            batch_size=self.train_batch_size if train else self.test_batch_size,
            shuffle=train,
            device=self.device,
            seed=self.seed if train else None,
        )

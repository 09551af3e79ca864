"""
Configuration for dataset acquisition and loading.

The three splits are tab-separated files with columns Label, GroupId and a
fixed number of float features. Only the first split (train) carries a header
row; validation and test reuse its column names.
"""

from dataclasses import dataclass, field
from pathlib import Path

from ..shared_utils.paths import (
    TEST_DATASET_PATH,
    TRAIN_DATASET_PATH,
    VALIDATION_DATASET_PATH,
)

TRAIN_DATASET_URL = "https://aka.ms/mlnet-resources/benchmarks/MSLRWeb10KTrain720kRows.tsv"
VALIDATION_DATASET_URL = "https://aka.ms/mlnet-resources/benchmarks/MSLRWeb10KValidate240kRows.tsv"
TEST_DATASET_URL = "https://aka.ms/mlnet-resources/benchmarks/MSLRWeb10KTest240kRows.tsv"


@dataclass
class DataConfig:
    """
    Locations of the train/validation/test splits.

    Attributes:
        train_path: Training split (has a header row)
        validation_path: Validation split (no header)
        test_path: Test split (no header)
        train_url: Download URL for the training split
        validation_url: Download URL for the validation split
        test_url: Download URL for the test split
        download_timeout: Seconds to wait for the server per request
        chunk_size: Bytes per streamed download chunk
    """

    train_path: Path = field(default_factory=lambda: TRAIN_DATASET_PATH)
    validation_path: Path = field(default_factory=lambda: VALIDATION_DATASET_PATH)
    test_path: Path = field(default_factory=lambda: TEST_DATASET_PATH)
    train_url: str = TRAIN_DATASET_URL
    validation_url: str = VALIDATION_DATASET_URL
    test_url: str = TEST_DATASET_URL
    download_timeout: float = 60.0
    chunk_size: int = 1024 * 1024

    def __post_init__(self):
        """Ensure paths are Path objects."""
        for name in ("train_path", "validation_path", "test_path"):
            value = getattr(self, name)
            if isinstance(value, str):
                setattr(self, name, Path(value))

    def splits(self):
        """Return (name, path, url) for each split, in loading order."""
        return [
            ("train", self.train_path, self.train_url),
            ("validation", self.validation_path, self.validation_url),
            ("test", self.test_path, self.test_url),
        ]

"""
Centralized path definitions for the ranking system.

All path constants are defined here to avoid duplication and ensure
consistency across modules.
"""

from pathlib import Path

# Project root (repository checkout)
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Asset directories
ASSETS_DIR = PROJECT_ROOT / "assets"
INPUT_DIR = ASSETS_DIR / "input"
OUTPUT_DIR = ASSETS_DIR / "output"

# Dataset splits (MSLR-WEB10K sample)
TRAIN_DATASET_PATH = INPUT_DIR / "MSLRWeb10KTrain720kRows.tsv"
VALIDATION_DATASET_PATH = INPUT_DIR / "MSLRWeb10KValidate240kRows.tsv"
TEST_DATASET_PATH = INPUT_DIR / "MSLRWeb10KTest240kRows.tsv"

# Trained model artifact
MODEL_PATH = OUTPUT_DIR / "ranking_model.zip"

"""
Shared utilities for the ranking system.

This module provides common utilities used across ranking components:
- Path constants for project directories
- Logging setup for CLI scripts
- ModelStore for saving/loading trained models
  (import from search_ranking.shared_utils.model_store)
"""

from .log_config import setup_logging
from .paths import (
    ASSETS_DIR,
    INPUT_DIR,
    MODEL_PATH,
    OUTPUT_DIR,
    PROJECT_ROOT,
)

__all__ = [
    "PROJECT_ROOT",
    "ASSETS_DIR",
    "INPUT_DIR",
    "OUTPUT_DIR",
    "MODEL_PATH",
    "setup_logging",
]

"""
Serving module for the ranking system.

This module provides inference-side helpers:
- extract_top: Deterministic top-K re-ranking of one query group
"""

from .top_k import extract_top

__all__ = [
    "extract_top",
]

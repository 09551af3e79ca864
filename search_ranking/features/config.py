"""
Configuration for the feature pipeline.

This module defines configuration dataclasses for assembling the feature
vector and encoding labels / group ids, following the same pattern as
training/config.py.
"""

from dataclasses import dataclass, field
from typing import List

from ..errors import InvalidConfiguration


@dataclass
class FeatureConfig:
    """
    Configuration for the feature pipeline.

    Attributes:
        group_id_hash_bits: Width of the bucket space group ids are hashed into
        excluded_features: Feature columns left out of the model input
    """

    group_id_hash_bits: int = 20
    excluded_features: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not 1 <= self.group_id_hash_bits <= 31:
            raise InvalidConfiguration(
                f"group_id_hash_bits must be in [1, 31], got {self.group_id_hash_bits}"
            )

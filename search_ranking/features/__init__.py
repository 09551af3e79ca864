"""
Feature pipeline package for the ranking model.

Modules:
    config: FeatureConfig (group-id hash width, excluded columns)
    builders: FeaturePipelineBuilder and the fitted FeaturePipeline

Programmatic Usage:
    from search_ranking.features import FeatureConfig, FeaturePipelineBuilder

    pipeline = FeaturePipelineBuilder(FeatureConfig()).build(train_dataset)
"""

from .builders import FeaturePipeline, FeaturePipelineBuilder
from .config import FeatureConfig

__all__ = [
    "FeatureConfig",
    "FeaturePipeline",
    "FeaturePipelineBuilder",
]

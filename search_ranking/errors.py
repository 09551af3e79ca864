"""
Exception hierarchy for the ranking pipeline.

    RankingError (base)
    ├── InvalidConfiguration - bad configuration values (e.g. truncation level)
    ├── EmptyInput - a dataset or group has no rows where rows are required
    ├── SchemaMismatch - feature widths or input columns do not line up
    └── StageFailed - a training/evaluation stage of the pipeline failed

Value errors also derive from ValueError so callers validating input with
``except ValueError`` keep working.
"""


class RankingError(Exception):
    """Base class for all errors raised by the ranking pipeline."""

    pass


class InvalidConfiguration(RankingError, ValueError):
    """
    Configuration value is outside its valid domain.

    Raised for truncation levels outside [1, 10], negative scan windows and
    similar settings. Never silently clamped.
    """

    pass


class EmptyInput(RankingError, ValueError):
    """A dataset or query group has zero rows where at least one is required."""

    pass


class SchemaMismatch(RankingError, ValueError):
    """
    Feature layout differs where it must match.

    Examples:
        - Rows in one dataset with different feature-vector lengths
        - Scoring data with a different width than the training data
        - TSV file missing the Label/GroupId columns
    """

    pass


class StageFailed(RankingError):
    """
    A stage of the progressive training pipeline failed.

    Attributes:
        stage: Name of the stage that was being entered when the failure happened
        cause: The original exception, surfaced unchanged
    """

    def __init__(self, stage: str, cause: BaseException):
        self.stage = stage
        self.cause = cause
        super().__init__(f"Stage {stage} failed: {type(cause).__name__}: {cause}")

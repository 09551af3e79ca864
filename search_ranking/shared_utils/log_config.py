"""Logging setup shared by the CLI entry points."""

import logging


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging for a CLI script."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

"""
Download the train/validation/test splits if they are not present.

Files that already exist are never downloaded again. Downloads are streamed to
a temporary file next to the target and renamed into place once complete, so
an interrupted download does not leave a truncated split behind.

Usage:
    python -m search_ranking.data.prepare_data
    python -m search_ranking.data.prepare_data --input-dir assets/input
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List

import requests
from tqdm import tqdm

from ..shared_utils.log_config import setup_logging
from ..shared_utils.paths import INPUT_DIR, OUTPUT_DIR
from .config import DataConfig

logger = logging.getLogger(__name__)


def download_file(url: str, destination: Path, timeout: float = 60.0, chunk_size: int = 1024 * 1024) -> Path:
    """
    Stream a URL to a local file.

    Args:
        url: Source URL
        destination: Target file path
        timeout: Seconds to wait for the server
        chunk_size: Bytes per chunk written

    Returns:
        The destination path

    Raises:
        requests.HTTPError: If the server answers with an error status
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    partial = destination.with_name(destination.name + ".part")

    with requests.get(url, stream=True, timeout=timeout) as response:
        response.raise_for_status()
        total = int(response.headers.get("content-length", 0)) or None

        with open(partial, "wb") as f, tqdm(
            total=total, unit="B", unit_scale=True, desc=destination.name
        ) as pbar:
            for chunk in response.iter_content(chunk_size=chunk_size):
                if chunk:
                    f.write(chunk)
                    pbar.update(len(chunk))

    partial.replace(destination)
    return destination


def prepare_data(config: DataConfig, output_dir: Path = OUTPUT_DIR) -> List[Path]:
    """
    Make sure every split exists locally, downloading the missing ones.

    Args:
        config: Split locations and URLs
        output_dir: Directory for trained models, created if missing

    Returns:
        Paths of the files that were downloaded
    """
    logger.info("=" * 60)
    logger.info("Prepare data")
    logger.info("=" * 60)

    output_dir.mkdir(parents=True, exist_ok=True)

    downloaded = []
    for name, path, url in config.splits():
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.exists():
            logger.info(f"{name}: found {path}")
            continue

        logger.info(f"{name}: downloading {url} - this may take several minutes")
        download_file(url, path, timeout=config.download_timeout, chunk_size=config.chunk_size)
        downloaded.append(path)

    logger.info("Download is finished")
    return downloaded


def main() -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Download ranking dataset splits")
    parser.add_argument(
        "--input-dir",
        type=Path,
        default=INPUT_DIR,
        help=f"Directory for the TSV splits (default: {INPUT_DIR})",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=OUTPUT_DIR,
        help=f"Directory for trained models (default: {OUTPUT_DIR})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
    args = parser.parse_args()

    setup_logging(verbose=args.verbose)

    defaults = DataConfig()
    config = DataConfig(
        train_path=args.input_dir / defaults.train_path.name,
        validation_path=args.input_dir / defaults.validation_path.name,
        test_path=args.input_dir / defaults.test_path.name,
    )

    try:
        prepare_data(config, output_dir=args.output_dir)
        return 0
    except requests.exceptions.RequestException as e:
        logger.error(f"Download failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""
Ticker list input: a text file whose first line is a header and whose
remaining lines hold one ticker symbol each.
"""

from pathlib import Path
from typing import List, Optional, Union

from stock_financials.data_collector.config import eodhd_config
from stock_financials.utils.logger import get_logger

logger = get_logger(__name__, utility="data_collector")


def load_tickers(path: Optional[Union[str, Path]] = None) -> List[str]:
    """
    Read tickers from the ticker list file.

    Args:
        path: File to read (defaults to the configured TICKERS_FILE)

    Returns:
        Ticker symbols in file order, header and blank lines removed
    """
    file_path = Path(path or eodhd_config.TICKERS_FILE)
    content = file_path.read_text(encoding="utf-8")

    lines = content.splitlines()[1:]  # skip header row
    tickers = [line.strip() for line in lines]
    tickers = [t for t in tickers if t]

    logger.info(f"Loaded {len(tickers)} tickers from {file_path}")
    return tickers

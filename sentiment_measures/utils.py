"""
utils.py
--------
Logging, timing decorator, and calendar helpers shared across the pipeline.
"""

import os
import logging
import time
import functools
from datetime import datetime
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd


# pandas offset aliases for each bucket cadence
CADENCE_FREQ = {
    "day": "D",
    "week": "W-MON",
    "month": "MS",
    "year": "YS",
}


def get_logger(name: str, log_dir: Optional[str] = None,
               level: Optional[str] = None) -> logging.Logger:
    """
    Return a named logger writing to stdout and, optionally, a daily file.

    Parameters
    ----------
    name    : Logger name (typically the module __name__).
    log_dir : Directory for log files. Defaults to $SENTIMENT_LOG_DIR;
              no file handler when neither is set.
    level   : Logging level string. Defaults to $SENTIMENT_LOG_LEVEL or INFO.

    Returns
    -------
    logging.Logger
    """
    logger = logging.getLogger(name)

    if logger.handlers:          # avoid duplicate handlers on re-import
        return logger

    level = level or os.getenv("SENTIMENT_LOG_LEVEL", "INFO")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Console handler
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    # File handler
    log_dir = log_dir or os.getenv("SENTIMENT_LOG_DIR")
    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        log_file = os.path.join(
            log_dir, f"sentiment_measures_{datetime.now().strftime('%Y%m%d')}.log"
        )
        fh = logging.FileHandler(log_file)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger


def timeit(func):
    """Decorator that logs the execution time of any function."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger(func.__module__)
        t0 = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = time.perf_counter() - t0
        logger.debug("%s completed in %.3f s", func.__qualname__, elapsed)
        return result
    return wrapper


def floor_dates(dates, by: str) -> pd.DatetimeIndex:
    """
    Map timestamps onto the first day of their calendar bucket.

    Weeks start on Monday, months and years on their first day.
    """
    idx = pd.DatetimeIndex(pd.to_datetime(dates)).normalize()
    if by == "day":
        return idx
    if by == "week":
        return idx - pd.to_timedelta(idx.dayofweek, unit="D")
    if by == "month":
        return idx.to_period("M").to_timestamp()
    if by == "year":
        return idx.to_period("Y").to_timestamp()
    raise ValueError(f"Unknown bucket cadence {by!r}")


def bucket_range(start, end, by: str) -> pd.DatetimeIndex:
    """Complete cadence-spaced index between two bucket dates (inclusive)."""
    return pd.date_range(start, end, freq=CADENCE_FREQ[by], name="date")


def safe_divide(num, den, fill: float = 0.0):
    """Elementwise num / den with ``fill`` where den is zero or missing."""
    num = np.asarray(num, dtype=float)
    den = np.asarray(den, dtype=float)
    out = np.full(np.broadcast(num, den).shape, fill, dtype=float)
    mask = (den != 0) & np.isfinite(den)
    np.divide(num, den, out=out, where=mask)
    return out

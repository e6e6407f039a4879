"""
utils.py
--------
Logging, timing decorators, and small numeric helpers shared by the
analytics stages.
"""

import os
import logging
import time
import functools
from datetime import datetime
from pathlib import Path
from typing import Optional

import numpy as np


def get_logger(name: str, log_dir: Optional[str] = None,
               level: Optional[str] = None) -> logging.Logger:
    """
    Return a named logger writing to stdout and, optionally, a daily file.

    Parameters
    ----------
    name    : Logger name (typically the module __name__).
    log_dir : Directory for log files. Defaults to $PAIRS_LOG_DIR; when
              neither is set only the console handler is attached.
    level   : Logging level string ("DEBUG", "INFO", "WARNING", "ERROR").
              Defaults to $PAIRS_LOG_LEVEL or "INFO".

    Returns
    -------
    logging.Logger
    """
    logger = logging.getLogger(name)

    if logger.handlers:          # avoid duplicate handlers on re-import
        return logger

    level = level or os.getenv("PAIRS_LOG_LEVEL", "INFO")
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
    log_dir = log_dir or os.getenv("PAIRS_LOG_DIR")
    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        log_file = os.path.join(
            log_dir, f"pairs_spread_{datetime.now().strftime('%Y%m%d')}.log"
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


def pct_change(old: float, new: float) -> float:
    """Safe percentage change in percent; returns 0 if old is zero."""
    return (new - old) / old * 100.0 if old != 0 else 0.0


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp value to [lo, hi] range."""
    return max(lo, min(value, hi))


def is_negligible(value: float, scale: float, ulps: float = 64.0) -> bool:
    """
    True when |value| is indistinguishable from zero at floating-point
    precision, given the magnitude ``scale`` of the terms that produced it
    (e.g. n * sum(x^2) for a difference n * sum(x^2) - sum(x)^2).
    """
    return abs(value) <= ulps * np.finfo(float).eps * abs(scale)

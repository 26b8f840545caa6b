"""Timing decorator shared by training and batch encode/decode."""

import functools
import logging
import time
from typing import Callable


def timed(level: int = logging.INFO) -> Callable[[Callable], Callable]:
    """
    Log how long each call of the decorated function takes.

    The record goes to the logger of the module defining the function, so
    ``subtok.trainer`` timings can be silenced independently of encoding.

    :param level: Logging level of the timing record.
    """

    def decorator(func: Callable) -> Callable:
        log = logging.getLogger(func.__module__)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return func(*args, **kwargs)
            # a failed call is timed too
            finally:
                elapsed = time.perf_counter() - start
                log.log(level, f"{func.__name__} took {elapsed:.3f} s")

        return wrapper

    return decorator

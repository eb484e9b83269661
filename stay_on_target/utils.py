"""Utility functions for Stay on Target.

Retry handling for remote calls, day-granularity date helpers and chart
context configuration shared by the command line and the web application.
"""

import datetime
import logging
import os.path
import random
import time
from functools import wraps
from typing import Callable, Optional, Tuple, Type, TypeVar

import dateutil.parser
import seaborn as sns

T = TypeVar("T")
logger = logging.getLogger(__name__)


def retry_with_backoff(
    max_attempts: int = 5,
    base_delay: float = 1.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    should_retry: Optional[Callable[[Exception], bool]] = None,
):
    """Decorator for API calls with retry logic and exponential backoff.

    Args:
        max_attempts: Maximum number of attempts (default: 5)
        base_delay: Base delay in seconds for exponential backoff (default: 1.0)
        exceptions: Exception types to catch and retry (default: Exception)
        should_retry: Optional predicate deciding whether a caught exception
                      is worth another attempt. Exceptions it rejects are
                      re-raised immediately.

    Example:
        @retry_with_backoff(max_attempts=3, base_delay=2.0, exceptions=(JIRAError,))
        def fetch_page(self, token):
            ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as exception:
                    if should_retry and not should_retry(exception):
                        raise

                    if attempt >= max_attempts:
                        logger.error(
                            "%s failed after %d attempts: %s",
                            func.__name__,
                            max_attempts,
                            exception,
                        )
                        raise

                    # Exponential backoff with jitter
                    delay = base_delay * (2 ** (attempt - 1)) + random.uniform(0, 1)
                    logger.warning(
                        "%s failed (attempt %d/%d): %s. Retrying in %.2f seconds...",
                        func.__name__,
                        attempt,
                        max_attempts,
                        exception,
                        delay,
                    )
                    time.sleep(delay)

            raise RuntimeError("Retry loop completed without returning or raising")

        return wrapper

    return decorator


def get_extension(filename):
    """Get file extension from filename."""
    return os.path.splitext(filename)[1].lower()


def to_day(value) -> Optional[datetime.date]:
    """Truncate a timestamp to its calendar day.

    Accepts `datetime.datetime`, `datetime.date` or an ISO-8601 string. Any
    UTC offset is ignored so the day is the one written in the timestamp.
    Returns None for empty values and raises ValueError for strings that
    cannot be parsed.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        try:
            return dateutil.parser.parse(value, ignoretz=True).date()
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Invalid timestamp: {value}") from e
    raise ValueError(f"Invalid timestamp type: {type(value).__name__}")


def parse_day(value) -> datetime.date:
    """Parse a `YYYY-MM-DD` string (as used on the command line and in query
    strings) into a date."""
    return datetime.datetime.strptime(value, "%Y-%m-%d").date()


def current_day() -> datetime.date:
    """Today's date from the system clock.

    Only the outer layers read the clock; the forecast engine is always
    given `today` explicitly.
    """
    return datetime.date.today()


def set_chart_context(context):
    """Set seaborn chart context."""
    sns.set_context(context)


def set_chart_style(style="whitegrid", despine=True):
    """Set seaborn chart style."""
    sns.set_style(style)
    if despine:
        sns.despine()
